"""
Persistent storage for catalogs and comparison reports.

This module manages the files:

    data/courses.json            catalog extracted from the program page
    data/courses_from_sheet.json reference catalog converted from the sheet
    data/compare_report.json     machine-readable comparison report

Design rationale:
- every file is plain UTF-8 JSON, indented, so it can be diffed in version control
- the JSON shape is defined by the model classes, this module only reads and writes
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from curriculum_diff.errors import CatalogLoadError
from curriculum_diff.model import Catalog, Report

COURSES_FILE = "courses.json"
SHEET_FILE = "courses_from_sheet.json"
REPORT_FILE = "compare_report.json"


def read_json(path: str | Path) -> Any:
    """
    Load JSON from a file. Missing or unreadable files raise CatalogLoadError.
    """
    p = Path(path)
    if not p.exists():
        raise CatalogLoadError(f"Missing file: {p}")
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CatalogLoadError(f"Cannot read {p}: {exc}") from exc


def write_json(data: Any, path: str | Path) -> Path:
    """
    Write JSON to a file, creating parent directories if needed.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return p


def load_catalog(path: str | Path) -> Catalog:
    data = read_json(path)
    if not isinstance(data, dict):
        raise CatalogLoadError(f"Expected a catalog object in {path}")
    try:
        return Catalog.from_dict(data)
    except (TypeError, ValueError, AttributeError) as exc:
        raise CatalogLoadError(f"Malformed catalog in {path}: {exc}") from exc


def save_catalog(catalog: Catalog, path: str | Path) -> Path:
    return write_json(catalog.to_dict(), path)


def load_report(path: str | Path) -> Report:
    data = read_json(path)
    if not isinstance(data, dict):
        raise CatalogLoadError(f"Expected a report object in {path}")
    try:
        return Report.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CatalogLoadError(f"Malformed report in {path}: {exc}") from exc


def save_report(report: Report, path: str | Path) -> Path:
    return write_json(report.to_dict(), path)

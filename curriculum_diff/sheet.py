"""
Reference catalog from a spreadsheet export.

The authoritative curriculum is maintained as a spreadsheet and exported as
JSON: a list of row objects keyed by column name (empty header cells become
"__EMPTY", "__EMPTY_1", ...). A row whose group column names a semester
starts a new term; the rows below it are courses until the next such row.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from curriculum_diff.errors import CatalogLoadError
from curriculum_diff.log import get_logger
from curriculum_diff.model import Catalog, Course, Term, utc_now
from curriculum_diff.storage import read_json

logger = get_logger(__name__)

GROUP_PATTERN = re.compile(r"semester|pre-?\s*medical", re.IGNORECASE)
HEADER_WORDS = ("sno", "course", "subject")
UNKNOWN_GROUP = "Unknown Semester"


@dataclass(frozen=True)
class SheetSchema:
    """
    Which spreadsheet column holds which course field.

    credit_columns are (teaching, lab); both present gives "3+1".
    """

    group_column: str
    serial_column: str
    code_column: str
    title_column: str
    credit_columns: Sequence[str]
    prerequisite_column: Optional[str] = None
    title_pattern: str = r"bachelor|curriculum"
    default_title: str = "Curriculum (sheet)"


SCHEMAS: Dict[str, SheetSchema] = {
    # Semester name and serial share the first column, no prerequisites
    "basic": SheetSchema(
        group_column="Semester wise breakdown - BSDS",
        serial_column="Semester wise breakdown - BSDS",
        code_column="__EMPTY",
        title_column="__EMPTY_1",
        credit_columns=("__EMPTY_2", "__EMPTY_3"),
    ),
    # Everything shifted one column right, prerequisites in the last column
    "prerequisite": SheetSchema(
        group_column="__EMPTY",
        serial_column="__EMPTY",
        code_column="__EMPTY_1",
        title_column="__EMPTY_2",
        credit_columns=("__EMPTY_3", "__EMPTY_4"),
        prerequisite_column="__EMPTY_5",
        title_pattern=r"bachelor|curriculum|artificial intelligence",
    ),
}


def _value(row: Dict[str, Any], column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    raw = row.get(column)
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def make_credits(teaching: Optional[str], labs: Optional[str]) -> Optional[str]:
    if teaching and labs:
        return f"{teaching}+{labs}"
    return teaching or labs or None


def _is_header(row: Dict[str, Any], schema: SheetSchema) -> bool:
    # "SNo | Course Code | Course Title | ..." repeated under every semester
    if (_value(row, schema.serial_column) or "").lower() == "sno":
        return True
    code = (_value(row, schema.code_column) or "").lower()
    return any(word in code for word in HEADER_WORDS)


def _is_total(row: Dict[str, Any], schema: SheetSchema) -> bool:
    for column in (schema.group_column, schema.title_column, schema.code_column):
        if "total" in (_value(row, column) or "").lower():
            return True
    return False


def _sheet_title(rows: List[Dict[str, Any]], schema: SheetSchema) -> str:
    pattern = re.compile(schema.title_pattern, re.IGNORECASE)
    for row in rows:
        text = _value(row, schema.group_column)
        if text and pattern.search(text):
            return text
    return schema.default_title


def convert_rows(rows: List[Dict[str, Any]], schema: SheetSchema, source: str = "") -> Catalog:
    """
    Converts exported spreadsheet rows into a reference Catalog.
    """
    terms: List[Term] = []
    current: Optional[Term] = None

    for row in rows:
        if not isinstance(row, dict):
            continue

        marker = _value(row, schema.group_column)
        if marker and not marker.isdigit() and GROUP_PATTERN.search(marker):
            current = Term(name=marker)
            terms.append(current)
            continue

        if _is_header(row, schema):
            continue

        code = _value(row, schema.code_column)
        title = _value(row, schema.title_column)
        if not code and not title:
            continue
        if _is_total(row, schema):
            continue

        if current is None:
            current = Term(name=UNKNOWN_GROUP)
            terms.append(current)

        teaching, labs = (list(schema.credit_columns) + [None, None])[:2]
        serial = _value(row, schema.serial_column)
        current.courses.append(
            Course(
                serial=serial if serial and serial.isdigit() else None,
                code=code,
                title=title,
                credits=make_credits(_value(row, teaching), _value(row, labs)),
                prerequisite=_value(row, schema.prerequisite_column),
            )
        )

    logger.debug("Converted sheet", terms=len(terms), courses=sum(len(t.courses) for t in terms))
    return Catalog(source=source, captured_at=utc_now(), title=_sheet_title(rows, schema), terms=terms)


def convert_sheet_file(path: str | Path, schema: SheetSchema) -> Catalog:
    """
    Loads a spreadsheet JSON export and converts it.
    """
    p = Path(path)
    rows = read_json(p)
    if not isinstance(rows, list):
        raise CatalogLoadError(f"Expected a list of rows in {p}")
    return convert_rows(rows, schema, source=p.name)

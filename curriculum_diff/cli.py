"""
CLI (Command Line Interface).

    curriculum-diff scrape   [--url URL] [--out FILE]
    curriculum-diff convert  SHEET.json [--schema basic|prerequisite] [--out FILE]
    curriculum-diff compare  [--fetched FILE] [--reference FILE] [--out FILE] [--prerequisites] [--no-notify]
    curriculum-diff inspect  [--url URL [--render] | --file FILE]

Exit codes:
- 0: success / catalogs match
- 1: differences found
- 2: hard failure (page not retrievable, no semester blocks, unreadable files)
"""

from __future__ import annotations

import argparse
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from curriculum_diff.config import Settings
from curriculum_diff.errors import CatalogLoadError, ExtractionEmpty, FetchError
from curriculum_diff.log import get_logger, setup_logging
from curriculum_diff.notify import Notifier
from curriculum_diff.reconcile import ReconcileOptions, build_report, exit_status
from curriculum_diff.report import print_report
from curriculum_diff.scrape import inspect_page, load_page, scrape_catalog
from curriculum_diff.sheet import SCHEMAS, convert_sheet_file
from curriculum_diff.storage import COURSES_FILE, REPORT_FILE, SHEET_FILE, load_catalog, save_catalog, save_report

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_FAILURE = 2

logger = get_logger(__name__)


def _path(value: str | None, settings: Settings, default_name: str) -> Path:
    return Path(value) if value else settings.data_dir / default_name


def _cmd_scrape(args: argparse.Namespace, settings: Settings) -> int:
    """
    Fetch the program page and write the extracted catalog.
    """
    url = (args.url or settings.source_url).strip()
    try:
        catalog = scrape_catalog(url, settings)
    except (FetchError, ExtractionEmpty) as exc:
        logger.error("Scrape failed", url=url, error=str(exc))
        return EXIT_FAILURE

    out = save_catalog(catalog, _path(args.out, settings, COURSES_FILE))
    print(f"Wrote {out} ({len(catalog.terms)} terms)")
    return EXIT_OK


def _cmd_convert(args: argparse.Namespace, settings: Settings) -> int:
    """
    Convert the authoritative spreadsheet export into a reference catalog.
    """
    try:
        catalog = convert_sheet_file(args.sheet, SCHEMAS[args.schema])
    except CatalogLoadError as exc:
        logger.error("Sheet conversion failed", sheet=args.sheet, error=str(exc))
        return EXIT_FAILURE

    out = save_catalog(catalog, _path(args.out, settings, SHEET_FILE))
    print(f"Wrote {out} ({len(catalog.terms)} terms)")
    return EXIT_OK


def _cmd_compare(args: argparse.Namespace, settings: Settings) -> int:
    """
    Compare the fetched catalog with the reference catalog.
    """
    fetched_path = _path(args.fetched, settings, COURSES_FILE)
    reference_path = _path(args.reference, settings, SHEET_FILE)
    try:
        fetched = load_catalog(fetched_path)
        reference = load_catalog(reference_path)
    except CatalogLoadError as exc:
        logger.error("Cannot load catalogs", error=str(exc))
        return EXIT_FAILURE

    options = ReconcileOptions(prerequisite_aware=args.prerequisites or settings.prerequisite_aware)
    report = build_report(fetched, reference, options)

    print_report(report, Console(), source=str(fetched_path), reference=str(reference_path))

    out = _path(args.out, settings, REPORT_FILE)
    try:
        save_report(report, out)
        logger.info("Wrote machine-readable report", path=str(out), diffs=report.total_diffs)
    except OSError as exc:
        logger.error("Cannot write report", path=str(out), error=str(exc))

    if not args.no_notify:
        result = Notifier(settings).send(report)
        if not result.ok:
            logger.error("Sending report failed", errors=result.errors)

    return exit_status(report)


def _cmd_inspect(args: argparse.Namespace, settings: Settings) -> int:
    """
    Print headings and course-code samples of a page.
    """
    try:
        if args.file:
            html = Path(args.file).read_text(encoding="utf-8")
        else:
            html = load_page((args.url or settings.source_url).strip(), settings, render=args.render)
    except (OSError, FetchError) as exc:
        logger.error("Cannot load page", error=str(exc))
        return EXIT_FAILURE

    found = inspect_page(html)
    print("Headings:")
    for h in found["headings"]:
        print(f"  {h}")
    print("Found codes sample:")
    print("  " + ", ".join(found["codes"]) if found["codes"] else "  (none)")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="curriculum-diff", description="Curriculum page vs reference sheet checker")
    parser.add_argument("--log-level", type=str, default=None, help="Override CURRICULUM_DIFF_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scrape = sub.add_parser("scrape", help="Fetch the program page and extract its courses")
    p_scrape.add_argument("--url", type=str, default=None, help="Program page URL")
    p_scrape.add_argument("--out", type=str, default=None, help="Output catalog JSON")

    p_convert = sub.add_parser("convert", help="Convert the reference spreadsheet export")
    p_convert.add_argument("sheet", type=str, help="Spreadsheet exported as JSON rows")
    p_convert.add_argument("--schema", choices=sorted(SCHEMAS), default="basic", help="Column layout of the sheet")
    p_convert.add_argument("--out", type=str, default=None, help="Output catalog JSON")

    p_compare = sub.add_parser("compare", help="Compare fetched and reference catalogs")
    p_compare.add_argument("--fetched", type=str, default=None, help="Catalog extracted from the website")
    p_compare.add_argument("--reference", type=str, default=None, help="Authoritative catalog")
    p_compare.add_argument("--out", type=str, default=None, help="Output report JSON")
    p_compare.add_argument("--prerequisites", action="store_true", help="Also compare prerequisite codes")
    p_compare.add_argument("--no-notify", action="store_true", help="Do not deliver the report")

    p_inspect = sub.add_parser("inspect", help="Show headings and course codes found on a page")
    group = p_inspect.add_mutually_exclusive_group()
    group.add_argument("--url", type=str, default=None, help="Page URL")
    group.add_argument("--file", type=str, default=None, help="Saved HTML file")
    p_inspect.add_argument("--render", action="store_true", help="Load the page in a headless browser")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}")
        raise SystemExit(EXIT_FAILURE)

    setup_logging(args.log_level or settings.log_level, settings.log_format)

    if args.command == "scrape":
        raise SystemExit(_cmd_scrape(args, settings))
    if args.command == "convert":
        raise SystemExit(_cmd_convert(args, settings))
    if args.command == "compare":
        raise SystemExit(_cmd_compare(args, settings))
    if args.command == "inspect":
        raise SystemExit(_cmd_inspect(args, settings))

    raise SystemExit(EXIT_FAILURE)

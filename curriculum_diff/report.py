"""
Human-readable report output.

- format_report_text(): plain text, used as the e-mail body
- print_report(): terminal rendering with rich, grouped by difference type
"""

from __future__ import annotations

import re
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from curriculum_diff.model import Course, DiffEntry, DiffType, Report, TermReport
from curriculum_diff.normalize import normalize_credits


def _s(value: Optional[str]) -> str:
    return value or ""


def display_name(name: str) -> str:
    """
    "Semester-3" -> "Semester 3"; the unmatched-reference label is kept.
    """
    return re.sub(r"^(Semester|Term)-", r"\1 ", name)


def describe_diff(d: DiffEntry) -> str:
    """
    One line of text for one difference.
    """
    if d.type is DiffType.MISSING:
        c = d.course or Course()
        return f"MISSING: code='{_s(c.code)}' title='{_s(c.title)}' credits='{_s(c.credits)}' (count={d.count})"
    if d.type is DiffType.EXTRA:
        c = d.course or Course()
        return f"EXTRA IN WEBSITE: code='{_s(c.code)}' title='{_s(c.title)}' credits='{_s(c.credits)}' (count={d.count})"
    if d.type is DiffType.COUNT_MISMATCH:
        c = d.course or Course()
        return (
            f"COUNT MISMATCH: code='{_s(c.code)}' title='{_s(c.title)}' "
            f"website={d.fetched_count} sheet={d.valid_count}"
        )

    f = d.fetched or Course()
    v = d.valid or Course()
    if d.type is DiffType.CODE_MISMATCH:
        credits = normalize_credits(f.credits) or normalize_credits(v.credits)
        return f"CODE MISMATCH: website='{_s(f.code)}' vs sheet='{_s(v.code)}' credits='{credits}'"
    code = f.code or v.code or "(no code)"
    return (
        f"PREREQUISITE MISMATCH: {code} - website='{f.prerequisite or '(none)'}' "
        f"vs sheet='{v.prerequisite or '(none)'}'"
    )


def format_report_text(report: Report) -> str:
    lines: List[str] = [f"Comparison report (FETCHED vs VALID) - comparedAt: {report.compared_at.isoformat()}", ""]
    for term in report.terms:
        lines.append(f"{term.name}: {term.diff_count} difference(s)")
        lines.extend(describe_diff(d) for d in term.diffs)
        lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Terminal output
# ---------------------------------------------------------------------------

_SECTIONS = [
    (DiffType.CODE_MISMATCH, "Code mismatches"),
    (DiffType.PREREQUISITE_MISMATCH, "Prerequisite mismatches"),
    (DiffType.MISSING, "Missing from website"),
    (DiffType.EXTRA, "Extra on website"),
    (DiffType.COUNT_MISMATCH, "Count mismatches"),
]


def _diff_row(d: DiffEntry) -> List[str]:
    if d.type in (DiffType.CODE_MISMATCH, DiffType.PREREQUISITE_MISMATCH):
        f = d.fetched or Course()
        v = d.valid or Course()
        if d.type is DiffType.CODE_MISMATCH:
            return [f.code or "(none)", f"should be {v.code or '(none)'}", _s(v.title)]
        return [f.code or v.code or "(no code)", f"website='{f.prerequisite or '(none)'}'",
                f"sheet='{v.prerequisite or '(none)'}'"]

    c = d.course or Course()
    if d.type is DiffType.COUNT_MISMATCH:
        return [c.code or "(no code)", c.title or "(no title)", f"website has {d.fetched_count}, sheet has {d.valid_count}"]
    return [c.code or "(no code)", c.title or "(no title)", _s(c.credits)]


def _print_term(term: TermReport, console: Console) -> None:
    console.rule(display_name(term.name))
    if not term.diff_count:
        console.print("No differences")
        return

    for kind, label in _SECTIONS:
        diffs = [d for d in term.diffs if d.type is kind]
        if not diffs:
            continue
        table = Table(title=label, box=box.SIMPLE, show_header=False, title_justify="left")
        table.add_column("code", style="bold")
        table.add_column("detail")
        table.add_column("info")
        for d in diffs:
            table.add_row(*_diff_row(d))
        console.print(table)


def print_report(report: Report, console: Optional[Console] = None, source: str = "", reference: str = "") -> None:
    console = console or Console()
    console.rule("CURRICULUM COMPARISON REPORT")
    console.print(f"Compared at: {report.compared_at.isoformat()}")
    if source:
        console.print(f"Website data: {source}")
    if reference:
        console.print(f"Authoritative data: {reference}")
    console.print(f"Total terms compared: {len(report.terms)}")
    console.print(f"Total differences found: {report.total_diffs}")

    for term in report.terms:
        _print_term(term, console)

    console.rule("END OF REPORT")

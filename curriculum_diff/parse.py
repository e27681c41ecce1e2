"""
Parsing (program page HTML -> Catalog).

- Finds term groups (semesters) on the page
- Turns every table row / list item / text line inside a group into a Course
- Returns the groups in document order

Three strategies, in fixed precedence:
  A. headings containing "semester", followed by tables, lists and text blocks
  B. tables whose first header cell names a semester
  C. (only when A and B found nothing) tables that contain a "Total" row,
     numbered Term-1, Term-2, ...

Important rules:
- Credits are never parsed as numbers ("3+1" stays "3+1")
- Duplicate courses (same code + title) inside a group: first one wins
- Rows that cannot be parsed are dropped, they never abort the extraction
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from curriculum_diff.errors import ExtractionEmpty
from curriculum_diff.log import get_logger
from curriculum_diff.model import Catalog, Course, Term, utc_now
from curriculum_diff.normalize import CODE_PATTERN, CREDITS_PATTERN, is_total_marker

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Patterns & column layout
# ---------------------------------------------------------------------------

SEMESTER_PATTERN = re.compile(r"semester", re.IGNORECASE)
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

_SERIAL_CELL = re.compile(r"^\d+$")
_SERIAL_PREFIX = re.compile(r"^\s*(\d+)\s*[.)-]?\s*")
_DIGIT = re.compile(r"\d+")


@dataclass(frozen=True)
class ColumnSchema:
    """
    Positions of the course fields in a table row, counted after the serial column.

    The default matches: No | Code | Title | Credit Hours | Related SDGs | Pre-requisites
    """

    code: int = 0
    title: int = 1
    credits: int = 2
    prerequisite: Optional[int] = 4

    @property
    def min_cells(self) -> int:
        return max(self.code, self.title, self.credits) + 1


DEFAULT_COLUMNS = ColumnSchema()

DocumentLike = Union[str, BeautifulSoup]


# ---------------------------------------------------------------------------
# Row / line parsing
# ---------------------------------------------------------------------------


def _cell(cells: Sequence[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(cells):
        return None
    value = (cells[index] or "").strip()
    return value or None


def parse_course_from_cells(cells: Sequence[str], schema: ColumnSchema = DEFAULT_COLUMNS) -> Course:
    """
    Parses the texts of one table row into a Course.

    Rows with enough cells are mapped by position, shorter rows are
    scanned token by token.
    """
    first = (cells[0] if cells else "") or ""
    has_serial = bool(_SERIAL_CELL.match(first.strip()))
    offset = 1 if has_serial else 0

    if len(cells) >= offset + schema.min_cells:
        shifted = list(cells[offset:])
        return Course(
            serial=first.strip() if has_serial else None,
            code=_cell(shifted, schema.code),
            title=_cell(shifted, schema.title),
            credits=_cell(shifted, schema.credits),
            prerequisite=_cell(shifted, schema.prerequisite),
        )

    # Fallback: classify each token on its own
    serial: Optional[str] = None
    code: Optional[str] = None
    credits: Optional[str] = None
    remaining: List[str] = []
    for raw in cells:
        token = (raw or "").strip()
        if not token:
            continue
        if serial is None and _SERIAL_CELL.match(token):
            serial = token
            continue
        if code is None:
            m = CODE_PATTERN.search(token)
            if m:
                code = re.sub(r"\s+", " ", m.group(0)).strip()
                continue
        if credits is None:
            m = CREDITS_PATTERN.search(token)
            if m:
                credits = m.group(1)
                continue
        remaining.append(token)

    title = " - ".join(remaining).strip()
    return Course(serial=serial, code=code, title=title or None, credits=credits)


def parse_course_from_line(line: str) -> Course:
    """
    Parses one free-text line such as "3. CS 212 Data Structures (4)".
    """
    rest = line.strip()
    serial: Optional[str] = None
    code: Optional[str] = None
    credits: Optional[str] = None

    m = _SERIAL_PREFIX.match(rest)
    if m:
        serial = m.group(1)
        rest = rest[m.end():]

    m = CODE_PATTERN.search(rest)
    if m:
        code = re.sub(r"\s+", " ", m.group(0)).strip()
        rest = rest.replace(m.group(0), "", 1)

    m = CREDITS_PATTERN.search(rest)
    if m:
        credits = m.group(1)
        rest = rest.replace(m.group(0), "", 1)

    title = re.sub(r"[-–—]+", " ", rest)
    title = re.sub(r"\s{2,}", " ", title).strip()
    return Course(serial=serial, code=code, title=title or None, credits=credits)


def _keep(course: Course) -> bool:
    if not (course.code or course.title):
        logger.debug("Dropped unparseable row")
        return False
    return not is_total_marker(course)


def _dedupe(courses: Iterable[Course]) -> List[Course]:
    seen: set[str] = set()
    out: List[Course] = []
    for c in courses:
        key = f"{c.code or ''}||{c.title or ''}"
        if key in seen:
            continue
        seen.add(key)
        out.append(c)
    return out


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def _text(node: Tag) -> str:
    return node.get_text(" ", strip=True)


def _text_lines(node: Tag) -> List[str]:
    """
    Text of a block element split into lines; <br> counts as a line break.
    """
    parts: List[str] = []
    for el in node.descendants:
        if isinstance(el, Comment):
            continue
        if isinstance(el, NavigableString):
            parts.append(str(el))
        elif isinstance(el, Tag) and el.name == "br":
            parts.append("\n")
    return [line.strip() for line in re.split(r"\r\n|\n|\r", "".join(parts)) if line.strip()]


def _row_cells(tr: Tag) -> List[Tag]:
    return tr.find_all(["th", "td"])


def _is_heading(node: Tag) -> bool:
    return node.name in HEADING_TAGS and bool(SEMESTER_PATTERN.search(node.get_text()))


def _to_soup(document: DocumentLike) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document, "html.parser")


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _courses_in_span(node: Tag, schema: ColumnSchema) -> List[Course]:
    courses: List[Course] = []
    tag = node.name

    if tag == "table":
        for tr in node.find_all("tr"):
            cells = _row_cells(tr)
            # header rows (only <th>) are labels, not courses
            if cells and all(c.name == "th" for c in cells):
                continue
            cols = [t for t in (_text(c) for c in cells) if t]
            if len(cols) >= 2:
                parsed = parse_course_from_cells(cols, schema)
                if _keep(parsed):
                    courses.append(parsed)

    if tag in ("ul", "ol"):
        for li in node.find_all("li"):
            parsed = parse_course_from_line(_text(li))
            if _keep(parsed):
                courses.append(parsed)

    if tag in ("p", "div"):
        for line in _text_lines(node):
            if not _DIGIT.search(line) and not CODE_PATTERN.search(line):
                continue
            parsed = parse_course_from_line(line)
            if _keep(parsed):
                courses.append(parsed)

    return courses


def _heading_terms(soup: BeautifulSoup, schema: ColumnSchema) -> List[Term]:
    terms: List[Term] = []
    for heading in soup.find_all(HEADING_TAGS):
        if not _is_heading(heading):
            continue
        courses: List[Course] = []
        for sib in heading.find_next_siblings():
            if _is_heading(sib):
                break
            courses.extend(_courses_in_span(sib, schema))
        terms.append(Term(name=heading.get_text().strip(), courses=_dedupe(courses)))
    return terms


def _header_table_terms(soup: BeautifulSoup, schema: ColumnSchema, known: List[Term]) -> List[Term]:
    terms: List[Term] = []
    for table in soup.find_all("table"):
        head = table.select_one("thead tr th")
        if head is None:
            continue
        name = head.get_text().strip()
        if not SEMESTER_PATTERN.search(name):
            continue
        if any(t.name == name for t in known) or any(t.name == name for t in terms):
            continue

        courses: List[Course] = []
        for tr in table.select("tbody tr"):
            # empty cells stay in place so the columns keep their positions
            cells: List[str] = []
            serial = tr.select_one('th[scope="row"]')
            if serial is not None and _text(serial):
                cells.append(_text(serial))
            cells.extend(_text(td) for td in tr.find_all("td"))
            if not cells:
                continue
            parsed = parse_course_from_cells(cells, schema)
            if _keep(parsed):
                courses.append(parsed)
        terms.append(Term(name=name, courses=_dedupe(courses)))
    return terms


def _total_table_terms(soup: BeautifulSoup, schema: ColumnSchema, prefix: str) -> List[Term]:
    terms: List[Term] = []
    for table in soup.find_all("table"):
        courses: List[Course] = []
        has_total = False
        for tr in table.find_all("tr"):
            cells = _row_cells(tr)
            cols = [_text(c) for c in cells]
            non_empty = [c for c in cols if c]
            if not non_empty:
                continue
            if all(c.name == "th" for c in cells) and "total" not in " ".join(cols).lower():
                continue
            if "total" in " ".join(cols).lower():
                has_total = True
                continue
            parsed = parse_course_from_cells(non_empty, schema)
            if _keep(parsed):
                courses.append(parsed)
        if courses and has_total:
            terms.append(Term(name=f"{prefix}-{len(terms) + 1}", courses=_dedupe(courses)))
    return terms


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_terms(
    document: DocumentLike,
    schema: ColumnSchema = DEFAULT_COLUMNS,
    fallback_prefix: str = "Term",
) -> List[Term]:
    """
    Extracts all term groups from a program page.

    Raises ExtractionEmpty when no strategy finds a single group.
    """
    soup = _to_soup(document)

    terms = _heading_terms(soup, schema)
    from_headings = len(terms)
    terms.extend(_header_table_terms(soup, schema, terms))
    logger.debug("Structured extraction", heading_terms=from_headings, table_terms=len(terms) - from_headings)

    if not terms:
        terms = _total_table_terms(soup, schema, fallback_prefix)
        logger.debug("Fallback extraction", total_tables=len(terms))

    if not terms:
        raise ExtractionEmpty("No semester blocks found in document")
    return terms


def extract_catalog(
    document: DocumentLike,
    source: str,
    schema: ColumnSchema = DEFAULT_COLUMNS,
) -> Catalog:
    """
    Extracts a full Catalog (page title + terms) from a program page.
    """
    soup = _to_soup(document)
    title_el = soup.find("title")
    title = title_el.get_text().strip() if title_el else ""
    return Catalog(
        source=source,
        captured_at=utc_now(),
        title=title,
        terms=extract_terms(soup, schema),
    )

"""
Central data model definitions used across the project.

This module defines the canonical structure of Course, Term, Catalog and the
comparison report so that:
- the extractor, the sheet converter and the reconciliation engine share the same field names
- absent fields (None) stay distinguishable from empty strings
- the JSON shape written to disk is produced in exactly one place
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def _parse_iso(value: Any) -> datetime:
    if not value:
        return utc_now()
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _opt_str(value: Any) -> Optional[str]:
    # JSON numbers (e.g. credits written as 3) are kept as their string form
    if value is None:
        return None
    return str(value)


@dataclass
class Course:
    """
    One course row as listed on the program page or in the reference sheet.

    Every field is optional: a row may carry only a title, only a code, etc.
    Credits are kept as the raw string ("3+1" must not become 4).
    """

    serial: Optional[str] = None
    code: Optional[str] = None
    title: Optional[str] = None
    credits: Optional[str] = None
    prerequisite: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serial": self.serial,
            "code": self.code,
            "title": self.title,
            "credits": self.credits,
            "prerequisite": self.prerequisite,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Course":
        return cls(
            serial=_opt_str(data.get("serial")),
            code=_opt_str(data.get("code")),
            title=_opt_str(data.get("title")),
            credits=_opt_str(data.get("credits")),
            prerequisite=_opt_str(data.get("prerequisite")),
        )


@dataclass
class Term:
    """
    A semester (or any other course group) with its courses in extraction order.
    """

    name: str
    courses: List[Course] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "courses": [c.to_dict() for c in self.courses]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Term":
        return cls(
            name=str(data.get("name") or ""),
            courses=[Course.from_dict(c) for c in data.get("courses") or []],
        )


@dataclass
class Catalog:
    source: str
    captured_at: datetime
    title: str
    terms: List[Term] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceIdentifier": self.source,
            "capturedAt": _iso(self.captured_at),
            "title": self.title,
            "terms": [t.to_dict() for t in self.terms],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """
        Build a Catalog from its JSON form.

        Older files used url/fetchedAt (scraped pages), sourceFile/convertedAt
        (converted sheets) and "semesters" instead of "terms"; both are accepted.
        """
        source = data.get("sourceIdentifier") or data.get("url") or data.get("sourceFile") or ""
        captured = data.get("capturedAt") or data.get("fetchedAt") or data.get("convertedAt")
        terms = data.get("terms")
        if terms is None:
            terms = data.get("semesters") or []
        return cls(
            source=str(source),
            captured_at=_parse_iso(captured),
            title=str(data.get("title") or ""),
            terms=[Term.from_dict(t) for t in terms],
        )


class DiffType(str, Enum):
    MISSING = "missing"
    EXTRA = "extra"
    COUNT_MISMATCH = "count-mismatch"
    CODE_MISMATCH = "code-mismatch"
    PREREQUISITE_MISMATCH = "prerequisite-mismatch"


@dataclass
class DiffEntry:
    """
    One classified difference between a live term and its reference term.

    Which fields are set depends on the type:
    - missing / extra: course, count
    - count-mismatch: course (reference sample), fetched_count, valid_count
    - code-mismatch / prerequisite-mismatch: fetched, valid
    """

    type: DiffType
    course: Optional[Course] = None
    count: Optional[int] = None
    fetched: Optional[Course] = None
    valid: Optional[Course] = None
    fetched_count: Optional[int] = None
    valid_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type.value}
        if self.type in (DiffType.MISSING, DiffType.EXTRA):
            out["count"] = self.count
            out["course"] = self.course.to_dict() if self.course else None
        elif self.type is DiffType.COUNT_MISMATCH:
            out["course"] = self.course.to_dict() if self.course else None
            out["fetchedCount"] = self.fetched_count
            out["validCount"] = self.valid_count
        else:
            out["fetched"] = self.fetched.to_dict() if self.fetched else None
            out["valid"] = self.valid.to_dict() if self.valid else None
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiffEntry":
        def course(key: str) -> Optional[Course]:
            value = data.get(key)
            return Course.from_dict(value) if isinstance(value, dict) else None

        return cls(
            type=DiffType(data["type"]),
            course=course("course"),
            count=data.get("count"),
            fetched=course("fetched"),
            valid=course("valid"),
            fetched_count=data.get("fetchedCount"),
            valid_count=data.get("validCount"),
        )


@dataclass
class TermReport:
    name: str
    valid_key: str
    diffs: List[DiffEntry] = field(default_factory=list)

    @property
    def diff_count(self) -> int:
        return len(self.diffs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "validKey": self.valid_key,
            "diffCount": self.diff_count,
            "diffs": [d.to_dict() for d in self.diffs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TermReport":
        return cls(
            name=str(data.get("name") or ""),
            valid_key=str(data.get("validKey") or ""),
            diffs=[DiffEntry.from_dict(d) for d in data.get("diffs") or []],
        )


@dataclass
class Report:
    compared_at: datetime
    terms: List[TermReport] = field(default_factory=list)

    @property
    def total_diffs(self) -> int:
        return sum(t.diff_count for t in self.terms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparedAt": _iso(self.compared_at),
            "terms": [t.to_dict() for t in self.terms],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        terms = data.get("terms")
        if terms is None:
            terms = data.get("semesters") or []
        return cls(
            compared_at=_parse_iso(data.get("comparedAt")),
            terms=[TermReport.from_dict(t) for t in terms],
        )

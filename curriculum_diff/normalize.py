"""
Record normalization.

Turns course fields into comparable strings. Everything here is pure and is
shared by the extractor (to spot total rows) and the reconciliation engine
(to build fingerprints).
"""

from __future__ import annotations

import re
from typing import Optional

from curriculum_diff.model import Course


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# "CS101", "CS 101", "CS-101", "HU 1006"
CODE_PATTERN = re.compile(r"[A-Z]{2,}\s*-?\s*\d{2,4}")

# "3", "3 Cr", "3 credits", "(3)"; group 1 is the number
CREDITS_PATTERN = re.compile(r"(?:\b|\()([0-9]+(?:\.[0-9]+)?)(?:\s*Cr|\s*credit|\)|$)", re.IGNORECASE)

_PREREQ_CODE_PATTERN = re.compile(r"[A-Z]{2,}[-\s]?\d{2,4}")

TOTAL_CODES = ("TOTAL", "GRAND TOTAL")

FINGERPRINT_SEPARATOR = "|"


# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------


def normalize_code(code: Optional[str]) -> str:
    if not code:
        return ""
    return str(code).strip().upper()


def normalize_credits(credits: Optional[str]) -> str:
    """
    Credits are an opaque token: "3+1" and "4" are different values.
    """
    if not credits:
        return ""
    return str(credits).strip()


def normalize_title(title: Optional[str]) -> str:
    if not title:
        return ""
    text = re.sub(r"\s+", " ", str(title))
    text = re.sub("[‘’“”]", "'", text)
    return text.strip().lower()


def normalize_prerequisite(text: Optional[str]) -> Optional[str]:
    """
    Reduce a prerequisite cell to the course codes it mentions.

    "cs 101 and MT-100" -> "CS-101|MT-100". Prose without any code
    ("None", "Consent of instructor") gives None.
    """
    if not text:
        return None
    upper = str(text).strip().upper()
    codes = {re.sub(r"\s+", "-", m) for m in _PREREQ_CODE_PATTERN.findall(upper)}
    if not codes:
        return None
    return "|".join(sorted(codes))


# ---------------------------------------------------------------------------
# Course-level helpers
# ---------------------------------------------------------------------------


def is_total_marker(course: Course) -> bool:
    """
    True for "Total" / "Grand Total" rows, which never take part in comparison.
    """
    code = normalize_code(course.code)
    title = (course.title or "").lower()
    if not code and not title:
        return False
    if code in TOTAL_CODES:
        return True
    return "total" in title


def fingerprint(course: Course, with_prerequisite: bool = False) -> str:
    """
    Comparison key of a course: code and credits, plus prerequisite codes
    when the prerequisite-aware comparison is enabled.
    """
    parts = [normalize_code(course.code), normalize_credits(course.credits)]
    if with_prerequisite:
        parts.append(normalize_prerequisite(course.prerequisite) or "")
    return FINGERPRINT_SEPARATOR.join(parts)

"""
Term matching.

Pairs every extracted term with at most one reference term. Rules, first hit wins:
1. identical name
2. identical normalized name ("Semester-2" == "Semester II")
3. identical ordinal (first number after "semester", else after "term")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from curriculum_diff.model import Catalog, Term

_ROMAN = {"i": "1", "ii": "2", "iii": "3", "iv": "4", "v": "5"}

_SEMESTER_ORDINAL = re.compile(r"semester\s*[-:]?\s*(\d+)", re.IGNORECASE)
_TERM_ORDINAL = re.compile(r"term\s*[-:]?\s*(\d+)", re.IGNORECASE)


@dataclass
class TermMatch:
    live: Term
    reference: Optional[Term]


def _roman(m: re.Match) -> str:
    return _ROMAN.get(m.group(1).lower(), m.group(1))


def normalize_term_name(name: Optional[str]) -> str:
    if not name:
        return ""
    s = str(name).lower()
    s = re.sub(r"[-–—]", " ", s)
    s = re.sub(r"[(),.:]", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    s = re.sub(r"\bsemester\s+(i{1,3}|iv|v)\b", lambda m: "semester " + _roman(m), s)
    s = re.sub(r"\b(i{1,3}|iv|v)\b", _roman, s)
    s = re.sub(r"pre\s*-?\s*medical", "pre medical", s)
    return s


def term_ordinal(name: Optional[str]) -> Optional[int]:
    if not name:
        return None
    m = _SEMESTER_ORDINAL.search(name) or _TERM_ORDINAL.search(name)
    return int(m.group(1)) if m else None


def reference_groups(catalog: Catalog) -> Dict[str, Term]:
    """
    Reference terms keyed by name, in catalog order.

    Groups that appear more than once under the same name are merged.
    """
    groups: Dict[str, Term] = {}
    for term in catalog.terms:
        key = term.name or "(unknown)"
        if key not in groups:
            groups[key] = Term(name=key)
        groups[key].courses.extend(term.courses)
    return groups


def find_reference(name: str, groups: Dict[str, Term]) -> Optional[str]:
    if name in groups:
        return name

    norm = normalize_term_name(name)
    for key in groups:
        if normalize_term_name(key) == norm:
            return key

    num = term_ordinal(name)
    if num is not None:
        for key in groups:
            if term_ordinal(key) == num:
                return key
    return None


def match_terms(live_terms: Iterable[Term], groups: Dict[str, Term]) -> Tuple[List[TermMatch], List[Term]]:
    """
    Returns (matches in live order, reference groups that no live term matched).
    """
    matches: List[TermMatch] = []
    used: set[str] = set()
    for term in live_terms:
        key = find_reference(term.name, groups)
        if key is not None:
            used.add(key)
        matches.append(TermMatch(live=term, reference=groups[key] if key is not None else None))

    unmatched = [group for key, group in groups.items() if key not in used]
    return matches, unmatched

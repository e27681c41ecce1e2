"""
Reconciliation (live catalog vs reference catalog -> Report).

Courses of a term are compared as multisets keyed by fingerprint
(code + credits, optionally + prerequisite codes). Leftovers on both sides
are then paired greedily to explain *why* they differ:

- same code, different prerequisites  -> prerequisite-mismatch
- same credits, similar title          -> code-mismatch
- anything else                        -> missing / extra

The pairing is first-fit in a fixed order (reference order outside, live
order inside) and never backtracks, so the result is deterministic but not
guaranteed to be the best possible assignment.

Nothing in this module performs I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from curriculum_diff.model import Catalog, Course, DiffEntry, DiffType, Report, Term, TermReport, utc_now
from curriculum_diff.normalize import (
    fingerprint,
    is_total_marker,
    normalize_code,
    normalize_credits,
    normalize_prerequisite,
    normalize_title,
)
from curriculum_diff.terms import match_terms, reference_groups

UNMATCHED_REFERENCE_LABEL = "(extra in reference)"


@dataclass(frozen=True)
class ReconcileOptions:
    """
    prerequisite_aware: include prerequisite codes in the fingerprint
    jaccard_threshold: minimum title similarity for a code-mismatch pairing
    """

    prerequisite_aware: bool = False
    jaccard_threshold: float = 0.15


DEFAULT_OPTIONS = ReconcileOptions()


# ---------------------------------------------------------------------------
# Title similarity
# ---------------------------------------------------------------------------


def title_words(title: Optional[str]) -> List[str]:
    """
    Lowercase word tokens of a title, plural "s" stripped, short words dropped.
    """
    text = re.sub(r"[\W_]+", " ", (title or "").lower())
    words = [re.sub(r"s$", "", w) for w in text.split()]
    return [w for w in words if len(w) > 2]


def jaccard(a: Optional[str], b: Optional[str]) -> float:
    wa = set(title_words(a))
    wb = set(title_words(b))
    if not wa or not wb:
        return 0.0
    return len(wa & wb) / len(wa | wb)


def acronym(title: Optional[str]) -> str:
    return "".join(w[0] for w in title_words(title)).upper()


def titles_similar(a: Optional[str], b: Optional[str], threshold: float = DEFAULT_OPTIONS.jaccard_threshold) -> bool:
    if jaccard(a, b) >= threshold:
        return True

    acr_a, acr_b = acronym(a), acronym(b)
    if acr_a and acr_b and (acr_a in acr_b or acr_b in acr_a):
        return True

    norm_a, norm_b = normalize_title(a), normalize_title(b)
    if norm_a and norm_b and (norm_a in norm_b or norm_b in norm_a):
        return True

    return bool(set(title_words(a)) & set(title_words(b)))


# ---------------------------------------------------------------------------
# Term comparison
# ---------------------------------------------------------------------------


@dataclass
class _Bucket:
    count: int
    sample: Course


def _count_map(courses: List[Course], with_prerequisite: bool) -> Dict[str, _Bucket]:
    buckets: Dict[str, _Bucket] = {}
    for c in courses:
        if is_total_marker(c):
            continue
        key = fingerprint(c, with_prerequisite)
        if key in buckets:
            buckets[key].count += 1
        else:
            buckets[key] = _Bucket(count=1, sample=c)
    return buckets


def _pair(missing: Course, extra: Course, options: ReconcileOptions) -> Optional[DiffType]:
    if normalize_credits(missing.credits) != normalize_credits(extra.credits):
        return None
    if normalize_code(missing.code) == normalize_code(extra.code):
        if normalize_prerequisite(missing.prerequisite) != normalize_prerequisite(extra.prerequisite):
            return DiffType.PREREQUISITE_MISMATCH
    if titles_similar(missing.title, extra.title, options.jaccard_threshold):
        return DiffType.CODE_MISMATCH
    return None


def compare_terms(live: Term, reference: Term, options: ReconcileOptions = DEFAULT_OPTIONS) -> List[DiffEntry]:
    """
    Compares the courses of one live term with its reference term.

    Output order: paired diffs (pairing order), missing, extra, count-mismatch.
    """
    live_map = _count_map(live.courses, options.prerequisite_aware)
    ref_map = _count_map(reference.courses, options.prerequisite_aware)

    missing: List[_Bucket] = []
    count_mismatches: List[DiffEntry] = []
    for key, ref in ref_map.items():
        got = live_map.get(key)
        if got is None:
            missing.append(ref)
        elif got.count != ref.count:
            count_mismatches.append(
                DiffEntry(
                    type=DiffType.COUNT_MISMATCH,
                    course=ref.sample,
                    fetched_count=got.count,
                    valid_count=ref.count,
                )
            )

    extra = [bucket for key, bucket in live_map.items() if key not in ref_map]

    diffs: List[DiffEntry] = []
    paired_missing: set[int] = set()
    paired_extra: set[int] = set()
    for i, m in enumerate(missing):
        for j, e in enumerate(extra):
            if j in paired_extra:
                continue
            kind = _pair(m.sample, e.sample, options)
            if kind is None:
                continue
            diffs.append(DiffEntry(type=kind, fetched=e.sample, valid=m.sample))
            paired_missing.add(i)
            paired_extra.add(j)
            break

    for i, m in enumerate(missing):
        if i not in paired_missing:
            diffs.append(DiffEntry(type=DiffType.MISSING, course=m.sample, count=m.count))

    for j, e in enumerate(extra):
        if j not in paired_extra:
            diffs.append(DiffEntry(type=DiffType.EXTRA, course=e.sample, count=e.count))

    diffs.extend(count_mismatches)
    return diffs


# ---------------------------------------------------------------------------
# Catalog comparison
# ---------------------------------------------------------------------------


def build_report(
    live: Catalog,
    reference: Catalog,
    options: ReconcileOptions = DEFAULT_OPTIONS,
) -> Report:
    """
    Compares every live term with its matched reference term.

    Reference groups that no live term matched are appended at the end,
    but only when they actually contain something to report.
    """
    groups = reference_groups(reference)
    matches, unmatched = match_terms(live.terms, groups)

    report = Report(compared_at=utc_now())
    for match in matches:
        ref_term = match.reference or Term(name=match.live.name)
        report.terms.append(
            TermReport(
                name=match.live.name,
                valid_key=ref_term.name,
                diffs=compare_terms(match.live, ref_term, options),
            )
        )

    for group in unmatched:
        diffs = compare_terms(Term(name=group.name), group, options)
        if diffs:
            report.terms.append(
                TermReport(name=f"{UNMATCHED_REFERENCE_LABEL} {group.name}", valid_key=group.name, diffs=diffs)
            )

    return report


def exit_status(report: Report) -> int:
    return 0 if report.total_diffs == 0 else 1

import unittest
from datetime import datetime, timezone

from curriculum_diff.model import Catalog, Course, Term
from curriculum_diff.terms import match_terms, normalize_term_name, reference_groups, term_ordinal


def _catalog(*terms: Term) -> Catalog:
    return Catalog(source="test", captured_at=datetime(2025, 1, 1, tzinfo=timezone.utc), title="", terms=list(terms))


class TestNormalizeTermName(unittest.TestCase):
    def test_roman_and_arabic_agree(self) -> None:
        self.assertEqual(normalize_term_name("Semester-2"), "semester 2")
        self.assertEqual(normalize_term_name("Semester II"), "semester 2")
        self.assertEqual(normalize_term_name("SEMESTER: IV"), "semester 4")

    def test_pre_medical_variants(self) -> None:
        self.assertEqual(
            normalize_term_name("For Pre- medical Students only (Summer)"),
            normalize_term_name("For Pre-Medical Students Only (Summer)"),
        )

    def test_empty(self) -> None:
        self.assertEqual(normalize_term_name(None), "")


class TestTermOrdinal(unittest.TestCase):
    def test_ordinals(self) -> None:
        self.assertEqual(term_ordinal("Semester - 3"), 3)
        self.assertEqual(term_ordinal("semester7"), 7)
        self.assertEqual(term_ordinal("Term-4"), 4)
        self.assertIsNone(term_ordinal("Summer"))

    def test_semester_number_preferred_over_term_number(self) -> None:
        self.assertEqual(term_ordinal("Term 1 (Semester 2)"), 2)
        self.assertEqual(term_ordinal("Semester 2, Term 1"), 2)


class TestMatchTerms(unittest.TestCase):
    def test_precedence_and_unmatched(self) -> None:
        reference = _catalog(
            Term("Semester II"),
            Term("Semester 5 (Fall)"),
            Term("Summer"),
        )
        live = [Term("Semester-2"), Term("Semester 5"), Term("Electives")]

        matches, unmatched = match_terms(live, reference_groups(reference))

        self.assertEqual([m.reference.name if m.reference else None for m in matches],
                         ["Semester II", "Semester 5 (Fall)", None])
        self.assertEqual([g.name for g in unmatched], ["Summer"])

    def test_exact_name_wins_over_ordinal(self) -> None:
        reference = _catalog(Term("Semester 1"), Term("Pre-Medical (Semester 1)"))
        matches, _ = match_terms([Term("Pre-Medical (Semester 1)")], reference_groups(reference))
        self.assertEqual(matches[0].reference.name, "Pre-Medical (Semester 1)")

    def test_repeated_reference_names_are_merged(self) -> None:
        reference = _catalog(
            Term("Semester 1", [Course(code="CS101")]),
            Term("Semester 1", [Course(code="MT100")]),
        )
        groups = reference_groups(reference)
        self.assertEqual(list(groups), ["Semester 1"])
        self.assertEqual([c.code for c in groups["Semester 1"].courses], ["CS101", "MT100"])


if __name__ == "__main__":
    unittest.main()

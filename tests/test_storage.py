import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from curriculum_diff.errors import CatalogLoadError
from curriculum_diff.model import Catalog, Course, DiffEntry, DiffType, Report, Term, TermReport
from curriculum_diff.storage import load_catalog, load_report, read_json, save_catalog, save_report, write_json


class TestJsonFiles(unittest.TestCase):
    def test_write_creates_parent_dirs(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = write_json({"title": "Datenbanken für Anfänger"}, Path(d) / "nested" / "out.json")
            text = p.read_text(encoding="utf-8")
            self.assertIn("Anfänger", text)
            self.assertEqual(read_json(p)["title"], "Datenbanken für Anfänger")

    def test_missing_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(CatalogLoadError):
                read_json(Path(d) / "missing.json")

    def test_corrupt_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "broken.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertRaises(CatalogLoadError):
                load_catalog(p)

    def test_catalog_must_be_object(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "list.json"
            p.write_text("[]", encoding="utf-8")
            with self.assertRaises(CatalogLoadError):
                load_catalog(p)


class TestCatalogFiles(unittest.TestCase):
    def test_catalog_file_shape(self) -> None:
        catalog = Catalog(
            source="https://example.edu/program",
            captured_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
            title="BS Data Science",
            terms=[Term("Semester 1", [Course(serial="1", code="CS101", title="Programming", credits="3")])],
        )
        with tempfile.TemporaryDirectory() as d:
            p = save_catalog(catalog, Path(d) / "courses.json")
            data = json.loads(p.read_text(encoding="utf-8"))
            loaded = load_catalog(p)

        self.assertEqual(data["sourceIdentifier"], "https://example.edu/program")
        self.assertEqual(data["capturedAt"], "2025-03-01T12:00:00Z")
        self.assertEqual(data["terms"][0]["courses"][0]["code"], "CS101")
        self.assertEqual(loaded, catalog)

    def test_legacy_scrape_keys(self) -> None:
        legacy = {
            "url": "https://example.edu/program",
            "fetchedAt": "2024-09-01T08:30:00.000Z",
            "semesters": [{"name": "Semester 1", "courses": [{"code": "CS101", "credits": 3}]}],
        }
        with tempfile.TemporaryDirectory() as d:
            p = write_json(legacy, Path(d) / "courses.json")
            catalog = load_catalog(p)

        self.assertEqual(catalog.source, "https://example.edu/program")
        self.assertEqual(catalog.captured_at.year, 2024)
        self.assertEqual(catalog.terms[0].courses[0].credits, "3")

    def test_legacy_sheet_keys(self) -> None:
        legacy = {"sourceFile": "curriculum.json", "convertedAt": "2024-09-01T08:30:00Z", "semesters": []}
        with tempfile.TemporaryDirectory() as d:
            catalog = load_catalog(write_json(legacy, Path(d) / "sheet.json"))
        self.assertEqual(catalog.source, "curriculum.json")
        self.assertEqual(catalog.terms, [])


class TestReportFiles(unittest.TestCase):
    def test_report_file(self) -> None:
        report = Report(
            compared_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
            terms=[
                TermReport(
                    name="Semester 1",
                    valid_key="Semester I",
                    diffs=[
                        DiffEntry(type=DiffType.MISSING, course=Course(code="CS102", credits="3"), count=1),
                        DiffEntry(
                            type=DiffType.COUNT_MISMATCH,
                            course=Course(code="MT101", credits="3"),
                            fetched_count=1,
                            valid_count=2,
                        ),
                    ],
                )
            ],
        )
        with tempfile.TemporaryDirectory() as d:
            p = save_report(report, Path(d) / "compare_report.json")
            data = json.loads(p.read_text(encoding="utf-8"))
            loaded = load_report(p)

        self.assertEqual(data["terms"][0]["diffCount"], 2)
        self.assertEqual(data["terms"][0]["diffs"][1]["fetchedCount"], 1)
        self.assertEqual(loaded.total_diffs, 2)
        self.assertEqual(loaded.terms[0].diffs[0].type, DiffType.MISSING)


if __name__ == "__main__":
    unittest.main()

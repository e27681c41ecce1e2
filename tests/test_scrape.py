import unittest
from unittest.mock import MagicMock, patch

import requests
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PWTimeoutError

from curriculum_diff.config import Settings
from curriculum_diff.errors import ExtractionEmpty, FetchError
from curriculum_diff.scrape import fetch_html, inspect_page, render_html, scrape_catalog

URL = "https://example.edu/program"

GATED_PAGE = "<html><head><title>Just a moment...</title></head><body><p>Checking your browser</p></body></html>"

PROGRAM_PAGE = """
<html><head><title>BS Data Science</title></head><body>
<h2>Semester 1</h2>
<table><tr><td>1</td><td>CS101</td><td>Programming Fundamentals</td><td>3</td></tr></table>
</body></html>
"""


def _get(text: str) -> MagicMock:
    resp = MagicMock()
    resp.text = text
    resp.raise_for_status.return_value = None
    return resp


def _browser(html: str = PROGRAM_PAGE) -> MagicMock:
    """sync_playwright() stand-in; returns the factory, the page is reachable through it."""
    factory = MagicMock()
    p = factory.return_value.__enter__.return_value
    page = p.chromium.launch.return_value.new_context.return_value.new_page.return_value
    page.content.return_value = html
    return factory


def _page(factory: MagicMock) -> MagicMock:
    p = factory.return_value.__enter__.return_value
    return p.chromium.launch.return_value.new_context.return_value.new_page.return_value


class TestFetch(unittest.TestCase):
    def test_fetch_sends_browser_headers(self) -> None:
        settings = Settings(request_timeout=10)
        with patch("curriculum_diff.scrape.requests.get", return_value=_get(PROGRAM_PAGE)) as get:
            html = fetch_html(URL, settings)

        self.assertEqual(html, PROGRAM_PAGE)
        kwargs = get.call_args.kwargs
        self.assertEqual(kwargs["timeout"], 10)
        self.assertIn("User-Agent", kwargs["headers"])

    def test_http_error_becomes_fetch_error(self) -> None:
        resp = _get("")
        resp.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")
        with patch("curriculum_diff.scrape.requests.get", return_value=resp):
            with self.assertRaises(FetchError):
                fetch_html(URL, Settings())


class TestRender(unittest.TestCase):
    def test_waits_for_network_idle(self) -> None:
        settings = Settings(render_timeout=60, user_agent="TestAgent/1.0")
        factory = _browser()
        with patch("curriculum_diff.scrape.sync_playwright", factory):
            html = render_html(URL, settings)

        self.assertEqual(html, PROGRAM_PAGE)
        p = factory.return_value.__enter__.return_value
        browser = p.chromium.launch.return_value
        self.assertEqual(browser.new_context.call_args.kwargs["user_agent"], "TestAgent/1.0")
        _page(factory).goto.assert_called_once_with(URL, wait_until="networkidle", timeout=60000)
        browser.close.assert_called_once()

    def test_timeout(self) -> None:
        factory = _browser()
        _page(factory).goto.side_effect = PWTimeoutError("Timeout 120000ms exceeded")
        with patch("curriculum_diff.scrape.sync_playwright", factory):
            with self.assertRaises(FetchError):
                render_html(URL, Settings())
        factory.return_value.__enter__.return_value.chromium.launch.return_value.close.assert_called_once()

    def test_browser_error(self) -> None:
        factory = _browser()
        factory.return_value.__enter__.return_value.chromium.launch.side_effect = PlaywrightError(
            "Executable doesn't exist"
        )
        with patch("curriculum_diff.scrape.sync_playwright", factory):
            with self.assertRaises(FetchError):
                render_html(URL, Settings())

    def test_empty_page(self) -> None:
        with patch("curriculum_diff.scrape.sync_playwright", _browser("  ")):
            with self.assertRaises(FetchError):
                render_html(URL, Settings())


class TestScrapeCatalog(unittest.TestCase):
    def test_plain_fetch(self) -> None:
        factory = _browser()
        with patch("curriculum_diff.scrape.requests.get", return_value=_get(PROGRAM_PAGE)), \
                patch("curriculum_diff.scrape.sync_playwright", factory):
            catalog = scrape_catalog(URL, Settings())

        factory.assert_not_called()
        self.assertEqual(catalog.source, URL)
        self.assertEqual([t.name for t in catalog.terms], ["Semester 1"])

    def test_gated_page_falls_back_to_rendering_by_default(self) -> None:
        factory = _browser()
        with patch("curriculum_diff.scrape.requests.get", return_value=_get(GATED_PAGE)), \
                patch("curriculum_diff.scrape.sync_playwright", factory):
            catalog = scrape_catalog(URL, Settings())

        factory.assert_called_once()
        self.assertEqual(catalog.title, "BS Data Science")
        self.assertEqual(catalog.terms[0].courses[0].code, "CS101")

    def test_gated_page_with_rendering_disabled_fails(self) -> None:
        with patch("curriculum_diff.scrape.requests.get", return_value=_get(GATED_PAGE)):
            with self.assertRaises(ExtractionEmpty):
                scrape_catalog(URL, Settings(render_fallback=False))

    def test_rendered_page_still_gated_fails(self) -> None:
        with patch("curriculum_diff.scrape.requests.get", return_value=_get(GATED_PAGE)), \
                patch("curriculum_diff.scrape.sync_playwright", _browser(GATED_PAGE)):
            with self.assertRaises(ExtractionEmpty):
                scrape_catalog(URL, Settings())

    def test_network_error_falls_back_to_rendering(self) -> None:
        with patch("curriculum_diff.scrape.requests.get", side_effect=requests.ConnectionError("reset")), \
                patch("curriculum_diff.scrape.sync_playwright", _browser()):
            catalog = scrape_catalog(URL, Settings())
        self.assertEqual(len(catalog.terms), 1)


class TestInspectPage(unittest.TestCase):
    def test_headings_and_codes(self) -> None:
        found = inspect_page(PROGRAM_PAGE + "<p>See also CS 101 and MT-200, CS101 again</p>")
        self.assertEqual(found["headings"], ["Semester 1"])
        self.assertEqual(found["codes"], ["CS101", "CS 101", "MT-200"])


if __name__ == "__main__":
    unittest.main()

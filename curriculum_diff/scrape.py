from __future__ import annotations

import re
from typing import Dict, List

import requests
from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PWTimeoutError
from playwright.sync_api import sync_playwright

from curriculum_diff.config import Settings
from curriculum_diff.errors import ExtractionEmpty, FetchError
from curriculum_diff.log import get_logger
from curriculum_diff.model import Catalog
from curriculum_diff.normalize import CODE_PATTERN
from curriculum_diff.parse import HEADING_TAGS, extract_catalog

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


def fetch_html(url: str, settings: Settings) -> str:
    """
    Plain HTTP fetch of the program page.
    """
    try:
        resp = requests.get(url, headers=settings.get_headers(), timeout=settings.request_timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"Fetch failed for {url}: {exc}") from exc
    return resp.text


def render_html(url: str, settings: Settings) -> str:
    """
    Load the page in headless Chromium so script-gated content is present.

    Waits for network idle, bounded by settings.render_timeout.
    """
    timeout_ms = settings.render_timeout * 1000
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=settings.render_headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            try:
                context = browser.new_context(
                    user_agent=settings.user_agent,
                    extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
                )
                page = context.new_page()
                page.goto(url, wait_until="networkidle", timeout=timeout_ms)
                page.wait_for_load_state("networkidle", timeout=timeout_ms)
                html = page.content()
                context.close()
            finally:
                browser.close()
    except PWTimeoutError as exc:
        raise FetchError(f"Rendering timed out after {settings.render_timeout}s: {url}") from exc
    except PlaywrightError as exc:
        raise FetchError(f"Rendering failed for {url}: {exc}") from exc

    if not html.strip():
        raise FetchError(f"Rendering returned an empty page: {url}")
    return html


def load_page(url: str, settings: Settings, render: bool = False) -> str:
    return render_html(url, settings) if render else fetch_html(url, settings)


def scrape_catalog(url: str, settings: Settings) -> Catalog:
    """
    Fetch and extract the program page, retrying through the browser when
    the plain fetch fails or yields no semester blocks.
    """
    log = logger.bind(url=url)
    try:
        log.info("Fetching page")
        catalog = extract_catalog(fetch_html(url, settings), source=url)
        log.info("Extracted catalog", terms=len(catalog.terms))
        return catalog
    except (FetchError, ExtractionEmpty) as exc:
        if not settings.render_fallback:
            raise
        log.warning("Initial fetch/parse failed, trying rendered page", error=str(exc))

    log.info("Launching headless browser")
    catalog = extract_catalog(render_html(url, settings), source=url)
    log.info("Extracted catalog from rendered page", terms=len(catalog.terms))
    return catalog


# ---------------------------------------------------------------------------
# Debug helper
# ---------------------------------------------------------------------------


def inspect_page(html: str, limit: int = 50) -> Dict[str, List[str]]:
    """
    Headings and distinct course-code-like strings found on a page.

    Useful to see why extraction finds nothing on a new page layout.
    """
    soup = BeautifulSoup(html, "html.parser")
    headings = [t for t in (h.get_text(" ", strip=True) for h in soup.find_all(HEADING_TAGS)) if t]

    codes: List[str] = []
    for m in CODE_PATTERN.finditer(soup.get_text("\n")):
        code = re.sub(r"\s+", " ", m.group(0)).strip()
        if code not in codes:
            codes.append(code)

    return {"headings": headings[:limit], "codes": codes[:limit]}

"""Shared fakes for crawler tests."""

from typing import Dict, List, Optional

import pytest

from hospital_scraper.crawler.fetcher import FetchResult
from hospital_scraper.errors import FetchError


def html_page(title: str = "", body: str = "", links: Optional[List[str]] = None, head: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in (links or []))
    title_tag = f"<title>{title}</title>" if title else ""
    return f"<html><head>{title_tag}{head}</head><body><main>{body}{anchors}</main></body></html>"


class FakeFetcher:
    """In-memory fetcher: URL -> HTML, or URL -> FetchError to raise."""

    def __init__(self, pages: Dict[str, object], probe_error: Optional[Exception] = None) -> None:
        self.pages = pages
        self.probe_error = probe_error
        self.fetched: List[str] = []
        self.probed: List[str] = []

    def fetch(self, url: str, timeout: float = 10.0) -> FetchResult:
        self.fetched.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise FetchError(url, "HTTP 404 Not Found", status_code=404)
        return FetchResult(url=url, status_code=200, content_type="text/html", body=page)

    def probe(self, url: str, timeout: float = 5.0) -> int:
        self.probed.append(url)
        if self.probe_error:
            raise self.probe_error
        return 200


@pytest.fixture
def make_fetcher():
    return FakeFetcher

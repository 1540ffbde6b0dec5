"""Turns fetched HTML into a classified page with metadata."""

from __future__ import annotations

import json
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from hospital_scraper.crawler.utils import title_from_url
from hospital_scraper.logger import logger
from hospital_scraper.models.page_model import MAX_CONTENT_LENGTH, PageModel, PageType


CONTENT_SELECTORS = [
    "main",
    "article",
    '[role="main"]',
    ".content",
    "#content",
    ".main-content",
    ".post-content",
    ".entry-content",
    ".article-content",
    "body",
]

UNWANTED_SELECTORS = [
    "script",
    "style",
    "noscript",
    "template",
    "nav",
    "header",
    "footer",
    ".advertisement",
    ".ads",
    ".sidebar",
    ".menu",
    '[role="navigation"]',
    ".navigation",
    "#navigation",
]

# Checked in order; the first matching URL substring wins
URL_PATTERNS: List[Tuple[PageType, Tuple[str, ...]]] = [
    (PageType.CONTACT, ("/contact",)),
    (PageType.ABOUT, ("/about",)),
    (PageType.SERVICES, ("/service", "/department")),
    (PageType.DOCTORS, ("/doctor", "/staff", "/physician")),
    (PageType.EMERGENCY, ("/emergency",)),
    (PageType.APPOINTMENTS, ("/appointment", "/booking")),
    (PageType.BLOG, ("/blog", "/news", "/article")),
    (PageType.LABORATORY, ("/laborator", "/lab/", "/lab-tests")),
]

CONTENT_PATTERNS: List[Tuple[PageType, Tuple[str, ...]]] = [
    (PageType.EMERGENCY, ("emergency", "24/7", "urgent care", "trauma", "ambulance")),
    (PageType.SERVICES, ("services", "specialties", "treatment", "procedures")),
    (PageType.DOCTORS, ("doctors", "physicians", "specialists", "medical staff", "consultants")),
    (PageType.CONTACT, ("contact", "phone", "email", "address", "location", "reach us")),
    (PageType.ABOUT, ("about", "history", "mission", "vision", "our hospital")),
    (PageType.APPOINTMENTS, ("appointment", "booking", "schedule", "reserve")),
    (PageType.LABORATORY, ("laboratory", "lab tests", "pathology", "blood test")),
    (PageType.DEPARTMENT, ("department",)),
]

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"(?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
MAX_CONTACTS = 5

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.I)
_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.I)
_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.I)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def classify_page(url: str, content: str) -> PageType:
    """Assign a page type. URL rules take precedence over content keywords.

    Args:
        url: Absolute page URL
        content: Cleaned page text

    Returns:
        Matching PageType, GENERAL when nothing matches
    """
    parsed = urlparse(url)
    path = parsed.path.lower()

    for page_type, needles in URL_PATTERNS:
        if any(needle in path for needle in needles):
            return page_type

    if path in ("", "/") and not parsed.query:
        return PageType.HOME

    lowered = content.lower()
    for page_type, keywords in CONTENT_PATTERNS:
        if any(keyword in lowered for keyword in keywords):
            return page_type

    return PageType.GENERAL


def find_contacts(text: str) -> Dict[str, List[str]]:
    """Distinct emails and phone numbers in *text*, at most five of each."""
    contacts: Dict[str, List[str]] = {}

    emails = list(dict.fromkeys(EMAIL_PATTERN.findall(text)))[:MAX_CONTACTS]
    if emails:
        contacts["emails"] = emails

    phones = list(dict.fromkeys(match.strip() for match in PHONE_PATTERN.findall(text)))[:MAX_CONTACTS]
    if phones:
        contacts["phones"] = phones

    return contacts


class ContentExtractor:
    """Extracts title, main text, page type and metadata from HTML."""

    def __init__(self, max_content_length: int = MAX_CONTENT_LENGTH) -> None:
        self.max_content_length = max_content_length

    def extract(self, html: str, url: str, method: str = "native", scraped_from: Optional[str] = None) -> PageModel:
        """Build a page from raw HTML.

        Markup that cannot be parsed falls back to regex extraction, so this
        never raises for bad HTML.

        Args:
            html: Raw HTML of the page
            url: URL the HTML was fetched from
            method: Extraction method tag stored in the metadata
            scraped_from: Seed URL of the run

        Returns:
            PageModel with content capped at max_content_length
        """
        try:
            soup = BeautifulSoup(html or "", "html.parser")
            title, content, metadata = self._extract_from_soup(soup, url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to parse HTML from {}: {}. Using fallback extraction", url, exc)
            return self._fallback(html or "", url, method, scraped_from)

        metadata = {"method": method, "url": url, **metadata}
        if scraped_from:
            metadata["scraped_from"] = scraped_from

        return PageModel(
            url=url,
            title=title,
            content=content,
            page_type=classify_page(url, content),
            metadata=metadata,
        )

    def from_text(self, text: str, url: str, title: Optional[str], method: str, metadata: Optional[Dict] = None) -> PageModel:
        """Build a page from content a provider already extracted (markdown or text)."""
        content = (text or "")[: self.max_content_length]
        return PageModel(
            url=url,
            title=(title or "").strip() or title_from_url(url),
            content=content,
            page_type=classify_page(url, content),
            metadata={**(metadata or {}), "method": method, **find_contacts(content)},
        )

    def _extract_from_soup(self, soup: BeautifulSoup, url: str) -> Tuple[str, str, Dict]:
        title_tag = soup.find("title")
        title = collapse_whitespace(title_tag.get_text()) if title_tag else ""

        # Metadata first: footers and headers removed below often hold contact details
        metadata = self._extract_metadata(soup)
        content = self._extract_main_content(soup)

        return title or title_from_url(url), content, metadata

    def _extract_main_content(self, soup: BeautifulSoup) -> str:
        """Text of the most specific content container, without page chrome.

        Args:
            soup: Parsed document (mutated: unwanted subtrees are removed)

        Returns:
            Whitespace-collapsed text capped at max_content_length
        """
        container = None
        for selector in CONTENT_SELECTORS:
            container = soup.select_one(selector)
            if container is not None:
                break
        if container is None:
            container = soup

        for selector in UNWANTED_SELECTORS:
            for element in container.select(selector):
                element.decompose()

        text = collapse_whitespace(container.get_text(" "))
        return text[: self.max_content_length]

    def _extract_metadata(self, soup: BeautifulSoup) -> Dict:
        """Meta tags, JSON-LD blocks and contact details.

        Args:
            soup: Parsed document

        Returns:
            Dictionary with "meta", and when present "structured_data",
            "emails" and "phones"
        """
        metadata: Dict = {}

        meta: Dict[str, str] = {}
        for tag in soup.find_all("meta"):
            name = tag.get("name") or tag.get("property")
            content = tag.get("content")
            if name and content:
                meta[name] = content
        metadata["meta"] = meta

        structured_data = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = script.string or script.get_text()
            try:
                structured_data.append(json.loads(raw))
            except (TypeError, ValueError):
                logger.debug("Skipping malformed JSON-LD block")
        if structured_data:
            metadata["structured_data"] = structured_data

        body = soup.find("body") or soup
        metadata.update(find_contacts(body.get_text(" ")))

        return metadata

    def _fallback(self, html: str, url: str, method: str, scraped_from: Optional[str]) -> PageModel:
        match = _TITLE_RE.search(html)
        title = collapse_whitespace(match.group(1)) if match else ""

        text = _STYLE_RE.sub(" ", _SCRIPT_RE.sub(" ", html))
        content = collapse_whitespace(_TAG_RE.sub(" ", text))[: self.max_content_length]

        metadata = {"method": f"{method}_fallback", "url": url, **find_contacts(content)}
        if scraped_from:
            metadata["scraped_from"] = scraped_from

        return PageModel(
            url=url,
            title=title or title_from_url(url),
            content=content,
            page_type=classify_page(url, content),
            metadata=metadata,
        )

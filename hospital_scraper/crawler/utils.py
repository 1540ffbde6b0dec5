"""URL normalisation and same-origin link filtering."""

from __future__ import annotations

import re
from typing import List, Optional, Set
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup


SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "#")

ASSET_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".rtf",
    ".zip", ".rar", ".tar", ".gz", ".7z",
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".bmp", ".tif", ".tiff", ".ico",
    ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv",
    ".mp3", ".wav", ".ogg", ".flac", ".m4a",
    ".css", ".js", ".xml", ".json", ".woff", ".woff2", ".ttf", ".eot",
    ".exe", ".dmg", ".apk",
)

EXCLUDED_PATH_PREFIXES = re.compile(r"/(wp-admin|wp-login|login|signin|sign-in)", re.I)


def extract_hostname(url: str) -> str:
    """Lower-cased hostname without port. Subdomains are kept as-is."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_same_origin(url: str, origin_url: str) -> bool:
    host = extract_hostname(url)
    return bool(host) and host == extract_hostname(origin_url)


def is_valid_seed_url(url: Optional[str]) -> bool:
    """True when *url* is an absolute http(s) URL with a hostname."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        return False


def normalize_url(url: str, base_url: str) -> str:
    """Normalize a URL by resolving relative URLs and removing fragments.

    Args:
        url: URL to normalize (can be relative or absolute)
        base_url: Base URL for resolving relative URLs

    Returns:
        Normalized absolute URL without fragment, or "" for unusable input
    """
    if not url:
        return ""

    url = url.strip()
    if not url or url.lower().startswith(SKIPPED_SCHEMES):
        return ""

    try:
        parsed = urlparse(urljoin(base_url, url))
        # Accessing .port validates the netloc
        parsed.port
    except ValueError:
        return ""

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return ""

    path = parsed.path or "/"
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]

    return urlunparse((
        parsed.scheme,
        parsed.netloc.lower(),
        path,
        parsed.params,
        parsed.query,
        "",
    ))


def is_crawlable_path(url: str) -> bool:
    """Reject binary/asset downloads and admin or login areas."""
    path = unquote(urlparse(url).path).lower()
    if path.endswith(ASSET_EXTENSIONS):
        return False
    if EXCLUDED_PATH_PREFIXES.search(path):
        return False
    return True


def resolve_link(href: str, base_url: str, origin_url: Optional[str] = None) -> Optional[str]:
    """Resolve *href* found on *base_url* into a crawlable same-origin URL.

    Returns None for malformed, cross-origin, asset, and admin/login links.
    Never raises.
    """
    normalized = normalize_url(href, base_url)
    if not normalized:
        return None
    if not is_same_origin(normalized, origin_url or base_url):
        return None
    if not is_crawlable_path(normalized):
        return None
    return normalized


def extract_links_from_html(html: str, base_url: str, origin_url: Optional[str] = None) -> List[str]:
    """Extract same-origin crawlable links from HTML, in document order.

    Args:
        html: HTML content
        base_url: URL the HTML was fetched from
        origin_url: Seed URL defining the allowed hostname (defaults to base_url)

    Returns:
        De-duplicated list of normalized absolute URLs
    """
    soup = BeautifulSoup(html, "html.parser")
    return links_from_soup(soup, base_url, origin_url)


def links_from_soup(soup: BeautifulSoup, base_url: str, origin_url: Optional[str] = None) -> List[str]:
    seen: Set[str] = set()
    links: List[str] = []

    for tag in soup.find_all("a", href=True):
        resolved = resolve_link(tag.get("href", ""), base_url, origin_url)
        if resolved and resolved not in seen:
            seen.add(resolved)
            links.append(resolved)

    return links


def title_from_url(url: str) -> str:
    """Human-readable label from the last path segment.

    ``/our-services/cardiology_unit.html`` becomes ``Cardiology Unit``.
    """
    try:
        segments = [segment for segment in urlparse(url).path.split("/") if segment]
    except ValueError:
        return "Unknown Page"

    if not segments:
        return "Home"

    label = unquote(segments[-1])
    label = re.sub(r"\.\w+$", "", label)
    label = re.sub(r"[-_]+", " ", label).strip()
    if not label:
        return "Home"
    return " ".join(word[:1].upper() + word[1:] for word in label.split())

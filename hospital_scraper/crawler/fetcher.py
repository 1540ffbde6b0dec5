"""HTTP fetching shared by every scraping strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import requests

from hospital_scraper.errors import ConnectivityError, FetchError
from hospital_scraper.logger import logger


BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchResult:
    """A successfully fetched HTML document."""

    url: str
    status_code: int
    content_type: str
    body: str


class Fetcher:
    """Issues browser-like GET requests and gates on status and content type."""

    def __init__(self, session: Optional[requests.Session] = None, headers: Optional[Dict[str, str]] = None) -> None:
        self.session = session or requests.Session()
        self.session.headers.update(BROWSER_HEADERS)
        if headers:
            self.session.headers.update(headers)

    def build_request(self, url: str) -> Tuple[str, Optional[Dict[str, str]]]:
        """Target URL and query params for fetching *url*."""
        return url, None

    def fetch(self, url: str, timeout: float = 10.0) -> FetchResult:
        """GET *url* and return its HTML.

        Raises:
            FetchError: on timeout, network failure, non-2xx status, or a
                response that is not HTML.
        """
        request_url, params = self.build_request(url)
        try:
            with self.session.get(request_url, params=params, timeout=timeout, allow_redirects=True) as response:
                status = response.status_code
                content_type = response.headers.get("content-type", "").lower()

                if not 200 <= status < 300:
                    raise FetchError(url, f"HTTP {status} {response.reason or ''}".strip(), status_code=status)

                if not content_type.startswith(HTML_CONTENT_TYPES):
                    raise FetchError(url, f"unsupported content type '{content_type or 'unknown'}'", status_code=status)

                body = response.text
        except requests.Timeout as exc:
            raise FetchError(url, f"timed out after {timeout:g}s") from exc
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

        logger.debug("Fetched {} bytes from {}", len(body), url)
        return FetchResult(url=url, status_code=status, content_type=content_type, body=body)

    def probe(self, url: str, timeout: float = 5.0) -> int:
        """Check that *url* accepts connections at all.

        Any HTTP answer counts as reachable; only transport failures raise.

        Raises:
            ConnectivityError: with a message telling apart a silent server,
                an unreachable host, and a refused connection.
        """
        request_url, params = self.build_request(url)
        try:
            with self.session.head(request_url, params=params, timeout=timeout, allow_redirects=True) as response:
                logger.info("Connection test to {} succeeded, status: {}", url, response.status_code)
                return response.status_code
        except requests.Timeout as exc:
            raise ConnectivityError(
                "Website is not responding. The server may be down, overloaded, or blocking automated "
                "requests. Please verify the URL is correct and the website is accessible from your browser."
            ) from exc
        except requests.ConnectionError as exc:
            detail = str(exc)
            if "refused" in detail.lower():
                raise ConnectivityError(
                    "Connection refused by the website server. The server may be down or not accepting connections."
                ) from exc
            raise ConnectivityError(
                "Cannot connect to this website. The server may be down or unreachable, it may be "
                "blocking cloud service IP addresses, or the URL may be incorrect."
            ) from exc
        except requests.RequestException as exc:
            raise ConnectivityError(
                "Unable to access the website. Please verify the URL is correct and the website is publicly accessible."
            ) from exc

    def close(self) -> None:
        self.session.close()

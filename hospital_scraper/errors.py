"""Run-level errors raised by strategies and surfaced by the API."""

from __future__ import annotations

from typing import Dict, Optional


DEFAULT_SUGGESTION = (
    "The website may be blocking automated requests, experiencing downtime, or have "
    "connectivity issues. Try again later or check if the URL is correct."
)


class ScrapeError(Exception):
    """Base class for failures that end a scraping run.

    Carries a user-facing message, an optional remediation suggestion and the
    HTTP status the API layer responds with.
    """

    status_code = 500

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion or DEFAULT_SUGGESTION

    @property
    def looks_like_auth_failure(self) -> bool:
        lowered = self.message.lower()
        return any(marker in lowered for marker in ("unauthorized", "401", "403", "forbidden"))

    def to_dict(self) -> Dict[str, object]:
        body: Dict[str, object] = {"error": self.message, "suggestion": self.suggestion}
        if self.looks_like_auth_failure:
            body["authError"] = True
        return body


class InvalidURLError(ScrapeError):
    """Seed URL cannot be parsed as an absolute http(s) URL."""

    def __init__(self, url: str) -> None:
        super().__init__(
            f"Invalid URL: {url}",
            "Check that the hospital website URL starts with http:// or https:// and includes a domain.",
        )
        self.url = url


class ConnectivityError(ScrapeError):
    """The seed site could not be reached at all."""


class ProviderError(ScrapeError):
    """A managed scraping provider rejected the request or reported a failed job."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            message,
            f"Check the {provider} API key and account quota, or remove the key to use the built-in scraper.",
        )
        self.provider = provider


class ProviderTimeoutError(ScrapeError):
    """A managed crawl job did not finish within the polling budget."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(
            message,
            f"The {provider} crawl is still running. Try again later or reduce the crawl limit.",
        )
        self.provider = provider


class CrawlTimeoutError(ScrapeError):
    """The bounded crawl exceeded its global deadline."""

    status_code = 546

    def __init__(self, seconds: float) -> None:
        super().__init__(
            f"Scraping timed out after {seconds:g} seconds",
            "The website is too slow or too large for the quick scraper. "
            "Reduce the page or depth limits, or use the standard scraper instead.",
        )
        self.seconds = seconds


class FetchError(Exception):
    """A single page could not be fetched or was not usable HTML."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        self.url = url
        self.reason = message
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")

"""Credential-driven strategy selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from hospital_scraper.strategies.base import ScrapeStrategy
from hospital_scraper.strategies.firecrawl import FirecrawlStrategy
from hospital_scraper.strategies.native import AdvancedNativeStrategy, NativeStrategy
from hospital_scraper.strategies.scraperapi import ScraperAPIStrategy


@dataclass(frozen=True)
class Credentials:
    """Provider API keys supplied by the caller for a single run."""

    firecrawl_api_key: Optional[str] = None
    scraperapi_key: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Credentials":
        """Read the ``firecrawlApiKey`` / ``scraperApiKey`` request fields."""
        return cls(
            firecrawl_api_key=_clean_key(payload.get("firecrawlApiKey")),
            scraperapi_key=_clean_key(payload.get("scraperApiKey")),
        )


def _clean_key(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def select_strategy(credentials: Optional[Credentials] = None, advanced: bool = False) -> ScrapeStrategy:
    """Pick the strategy for one run.

    Firecrawl wins over ScraperAPI, which wins over the native crawler.
    ``advanced`` selects the bounded native crawl and ignores credentials.
    """
    if advanced:
        return AdvancedNativeStrategy()

    credentials = credentials or Credentials()
    if credentials.firecrawl_api_key:
        return FirecrawlStrategy(credentials.firecrawl_api_key)
    if credentials.scraperapi_key:
        return ScraperAPIStrategy(credentials.scraperapi_key)
    return NativeStrategy()

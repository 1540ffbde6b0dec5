"""ScraperAPI proxy-rotation strategy."""

from __future__ import annotations

import os
from dataclasses import replace
from typing import Dict, Optional, Tuple

import requests

from hospital_scraper.crawler.crawler_config import CrawlerConfig
from hospital_scraper.crawler.fetcher import Fetcher
from hospital_scraper.crawler.utils import normalize_url
from hospital_scraper.crawler.web_crawler import CrawlResult, WebCrawler
from hospital_scraper.errors import FetchError, ProviderError
from hospital_scraper.logger import logger
from hospital_scraper.strategies.base import ScrapeStrategy


SCRAPERAPI_URL = os.getenv("SCRAPERAPI_URL", "http://api.scraperapi.com")


class ScraperAPIFetcher(Fetcher):
    """Fetcher that routes every GET through ScraperAPI."""

    def __init__(self, api_key: str, endpoint: str = SCRAPERAPI_URL, session: Optional[requests.Session] = None) -> None:
        super().__init__(session=session)
        self.api_key = api_key
        self.endpoint = endpoint

    def build_request(self, url: str) -> Tuple[str, Optional[Dict[str, str]]]:
        return self.endpoint, {"api_key": self.api_key, "url": url}


class ScraperAPIStrategy(ScrapeStrategy):
    """Seed plus up to 49 same-origin links, each fetched via ScraperAPI."""

    name = "scraperapi"
    display_name = "ScraperAPI"

    def __init__(self, api_key: str, config: Optional[CrawlerConfig] = None, fetcher: Optional[Fetcher] = None) -> None:
        self.api_key = api_key
        # The provider retries internally and can take close to a minute per page
        base = config or CrawlerConfig(page_timeout=60.0, seed_timeout=60.0)
        self.config = replace(base, probe_timeout=None, require_seed=False)
        self.fetcher = fetcher or ScraperAPIFetcher(api_key)

    def run(self, seed_url: str) -> CrawlResult:
        logger.info("Initiating ScraperAPI scrape for: {}", seed_url)
        crawler = WebCrawler(self.config, fetcher=self.fetcher, method=self.name)
        result = crawler.crawl(seed_url)

        seed = normalize_url(seed_url, seed_url)
        failure = result.errors.get(seed)
        if failure is not None:
            if isinstance(failure, FetchError) and failure.status_code:
                raise ProviderError("ScraperAPI", f"ScraperAPI error: {failure.reason}")
            raise ProviderError("ScraperAPI", f"ScraperAPI request failed: {failure}")

        logger.info("Found {} pages via ScraperAPI", len(result.pages))
        return result

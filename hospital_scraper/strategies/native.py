"""Self-hosted crawling strategies."""

from __future__ import annotations

from typing import Optional

from hospital_scraper.crawler.crawler_config import CrawlerConfig
from hospital_scraper.crawler.fetcher import Fetcher
from hospital_scraper.crawler.web_crawler import CrawlResult, WebCrawler
from hospital_scraper.strategies.base import ScrapeStrategy


class NativeStrategy(ScrapeStrategy):
    """Probe the site, fetch the seed, then up to 49 of its links."""

    name = "native"
    display_name = "Native"

    def __init__(self, config: Optional[CrawlerConfig] = None, fetcher: Optional[Fetcher] = None) -> None:
        self.config = config or CrawlerConfig.native()
        self.fetcher = fetcher

    def run(self, seed_url: str) -> CrawlResult:
        crawler = WebCrawler(self.config, fetcher=self.fetcher, method=self.name)
        return crawler.crawl(seed_url)


class AdvancedNativeStrategy(NativeStrategy):
    """Small crawl raced against a 20 second deadline."""

    name = "advanced_native"
    display_name = "Advanced Native Scraper"

    def __init__(self, config: Optional[CrawlerConfig] = None, fetcher: Optional[Fetcher] = None) -> None:
        super().__init__(config or CrawlerConfig.advanced(), fetcher)

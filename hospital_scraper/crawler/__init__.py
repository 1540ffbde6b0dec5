"""Same-origin crawling, fetching and content extraction."""

from hospital_scraper.crawler.content_extractor import ContentExtractor, classify_page
from hospital_scraper.crawler.crawler_config import CrawlerConfig, Deadline
from hospital_scraper.crawler.fetcher import Fetcher, FetchResult
from hospital_scraper.crawler.utils import resolve_link
from hospital_scraper.crawler.web_crawler import CrawlResult, WebCrawler, traverse

__all__ = [
    "ContentExtractor",
    "CrawlResult",
    "CrawlerConfig",
    "Deadline",
    "FetchResult",
    "Fetcher",
    "WebCrawler",
    "classify_page",
    "resolve_link",
    "traverse",
]

from hospital_scraper.strategies.base import ScrapeStrategy
from hospital_scraper.strategies.firecrawl import FirecrawlStrategy
from hospital_scraper.strategies.native import AdvancedNativeStrategy, NativeStrategy
from hospital_scraper.strategies.scraperapi import ScraperAPIFetcher, ScraperAPIStrategy
from hospital_scraper.strategies.selector import Credentials, select_strategy

__all__ = [
    "AdvancedNativeStrategy",
    "Credentials",
    "FirecrawlStrategy",
    "NativeStrategy",
    "ScrapeStrategy",
    "ScraperAPIFetcher",
    "ScraperAPIStrategy",
    "select_strategy",
]

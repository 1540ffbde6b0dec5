from __future__ import annotations

from abc import ABC, abstractmethod

from hospital_scraper.crawler.web_crawler import CrawlResult


class ScrapeStrategy(ABC):
    """One way of turning a seed URL into pages.

    Implementations normalise whatever their backend returns into
    ``PageModel`` objects, so nothing above this layer sees provider formats.
    """

    name: str = ""
    display_name: str = ""

    @abstractmethod
    def run(self, seed_url: str) -> CrawlResult:
        """Scrape the site rooted at *seed_url*.

        Raises:
            ScrapeError: when the run as a whole cannot produce content
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

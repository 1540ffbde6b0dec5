"""Runs one scraping attempt end to end and records its outcome."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from pymongo.errors import PyMongoError

from hospital_scraper.crawler.utils import is_valid_seed_url
from hospital_scraper.errors import InvalidURLError
from hospital_scraper.logger import logger
from hospital_scraper.models import PageModel, ScrapeStatsModel
from hospital_scraper.strategies import Credentials, ScrapeStrategy, select_strategy


NO_PAGES_MESSAGE = "No pages could be scraped from the website"


@dataclass
class RunResult:
    hospital_id: str
    website_url: str
    method: str
    display_name: str
    pages_scraped: int
    pages_failed: int
    duration_seconds: float
    success: bool
    message: str


class ScrapeCoordinator:
    """Selects a strategy, persists its pages and writes the run's stats row.

    Exactly one stats row is written per call, whatever the outcome. Pages
    are replaced only when the strategy returned at least one page, so a
    failed run leaves the previous snapshot in place.
    """

    def __init__(
        self,
        store,
        strategy_factory: Callable[[Optional[Credentials], bool], ScrapeStrategy] = select_strategy,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            store: Persistence object, normally a MongoClientManager
            strategy_factory: Maps (credentials, advanced) to a strategy
            clock: Monotonic clock used for run duration
        """
        self.store = store
        self.strategy_factory = strategy_factory
        self.clock = clock

    def run_scrape(
        self,
        hospital_id: str,
        website_url: str,
        credentials: Optional[Credentials] = None,
        advanced: bool = False,
    ) -> RunResult:
        """Scrape *website_url* and replace the hospital's page set.

        Raises:
            ScrapeError: invalid URL, unreachable site, provider failure or
                global timeout. Nothing is persisted except the stats row.
        """
        started = self.clock()
        strategy = self.strategy_factory(credentials, advanced)
        logger.info("Scraping hospital {} ({}) using {}", hospital_id, website_url, strategy.name)

        pages: List[PageModel] = []
        # Pages committed by this run, counted even if a later step fails
        stored: List[PageModel] = []
        pages_failed = 0
        success = False
        error_message: Optional[str] = None

        try:
            if not is_valid_seed_url(website_url):
                raise InvalidURLError(website_url)

            result = strategy.run(website_url.strip())
            pages = _dedupe_by_url(result.pages)
            pages_failed = result.pages_failed

            if pages:
                inserted = self.store.replace_hospital_pages(hospital_id, pages)
                logger.info("Stored {} pages for hospital {}", inserted, hospital_id)
                stored = pages
            else:
                error_message = NO_PAGES_MESSAGE
                logger.warning("No pages scraped from {}. Check if the site is accessible and has content.", website_url)

            # An empty run still counts as an attempt
            self.store.mark_hospital_scraped(hospital_id)
            success = bool(stored)
        except Exception as exc:
            success = False
            error_message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            logger.error("Scrape of {} with {} failed: {}", website_url, strategy.name, error_message)
            raise
        finally:
            duration = round(self.clock() - started, 2)
            self._record_stats(
                ScrapeStatsModel(
                    hospital_id=hospital_id,
                    method=strategy.name,
                    pages_scraped=len(stored),
                    pages_failed=pages_failed,
                    duration_seconds=duration,
                    success=success,
                    error_message=error_message,
                )
            )

        message = (
            f"Successfully scraped {len(stored)} pages from {website_url}" if success else NO_PAGES_MESSAGE
        )
        return RunResult(
            hospital_id=hospital_id,
            website_url=website_url,
            method=strategy.name,
            display_name=strategy.display_name,
            pages_scraped=len(stored),
            pages_failed=pages_failed,
            duration_seconds=duration,
            success=success,
            message=message,
        )

    def _record_stats(self, stats: ScrapeStatsModel) -> None:
        try:
            self.store.insert_scrape_stats(stats)
        except PyMongoError as exc:
            logger.error("Failed to record scrape stats for {}: {}", stats.hospital_id, exc)


def _dedupe_by_url(pages: List[PageModel]) -> List[PageModel]:
    seen = set()
    unique = []
    for page in pages:
        if page.url in seen:
            continue
        seen.add(page.url)
        unique.append(page)
    return unique

"""Bounded same-origin crawler."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Set, Tuple

from bs4 import BeautifulSoup

from hospital_scraper.crawler.content_extractor import ContentExtractor
from hospital_scraper.crawler.crawler_config import CrawlerConfig, Deadline
from hospital_scraper.crawler.fetcher import Fetcher
from hospital_scraper.crawler.utils import links_from_soup, normalize_url
from hospital_scraper.errors import ConnectivityError, CrawlTimeoutError, FetchError
from hospital_scraper.logger import logger
from hospital_scraper.models.page_model import PageModel


# (url, depth) -> (page, same-origin links found on it)
PageProcessor = Callable[[str, int], Tuple[PageModel, List[str]]]


@dataclass
class CrawlResult:
    """Pages gathered by one strategy run."""

    pages: List[PageModel] = field(default_factory=list)
    failed_urls: List[str] = field(default_factory=list)
    errors: Dict[str, Exception] = field(default_factory=dict)
    visited: Set[str] = field(default_factory=set)

    @property
    def pages_failed(self) -> int:
        return len(self.failed_urls)


def traverse(
    seed_url: str,
    config: CrawlerConfig,
    process: PageProcessor,
    deadline: Optional[Deadline] = None,
    visited: Optional[Set[str]] = None,
    executor: Optional[ThreadPoolExecutor] = None,
) -> CrawlResult:
    """Breadth-first traversal over an explicit (url, depth) frontier.

    The seed is processed alone first; discovered links are then processed
    in batches of ``config.batch_size``, each batch awaited before the next
    starts. At most ``config.max_pages`` URLs are attempted and nothing
    deeper than ``config.max_depth`` is visited. A page whose processing
    raises is recorded as failed and the traversal continues.

    Args:
        seed_url: Normalized seed URL
        config: Crawl budgets
        process: Fetches and extracts one URL
        deadline: Global wall-clock budget; expiry raises CrawlTimeoutError
        visited: URLs already attempted (updated in place and returned)
        executor: Pool used for batches, a private one is created if None

    Returns:
        CrawlResult with pages in processing order
    """
    deadline = deadline or Deadline(None)
    result = CrawlResult(visited=visited if visited is not None else set())
    frontier: Deque[Tuple[str, int]] = deque([(seed_url, 0)])

    own_executor = executor is None
    pool = executor or ThreadPoolExecutor(max_workers=config.batch_size, thread_name_prefix="crawl")

    try:
        while frontier and len(result.visited) < config.max_pages:
            if deadline.expired:
                raise CrawlTimeoutError(deadline.seconds or 0)

            batch = _next_batch(frontier, result.visited, config)
            if not batch:
                continue

            futures = [pool.submit(process, url, depth) for url, depth in batch]
            _, not_done = wait(futures, timeout=deadline.remaining())
            if not_done:
                for future in not_done:
                    future.cancel()
                raise CrawlTimeoutError(deadline.seconds or 0)

            for (url, depth), future in zip(batch, futures):
                try:
                    page, links = future.result()
                except CrawlTimeoutError:
                    raise
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Skipping {}: {}", url, exc)
                    result.failed_urls.append(url)
                    result.errors[url] = exc
                    continue

                result.pages.append(page)
                logger.info("Scraped page: {} (depth: {}, type: {})", url, depth, page.page_type.value)

                if depth < config.max_depth:
                    for link in links:
                        if link not in result.visited:
                            frontier.append((link, depth + 1))
    finally:
        if own_executor:
            pool.shutdown(wait=False, cancel_futures=True)

    return result


def _next_batch(frontier: Deque[Tuple[str, int]], visited: Set[str], config: CrawlerConfig) -> List[Tuple[str, int]]:
    """Pop up to one batch of unvisited URLs within budget and mark them visited."""
    batch: List[Tuple[str, int]] = []
    budget = min(config.batch_size, config.max_pages - len(visited))

    while frontier and len(batch) < budget:
        url, depth = frontier.popleft()
        if depth > config.max_depth or url in visited:
            continue
        visited.add(url)
        batch.append((url, depth))
        # The seed runs on its own so its links feed the next batches
        if depth == 0:
            break

    return batch


class WebCrawler:
    """Native strategy engine: probe, fetch the seed, follow same-origin links."""

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[ContentExtractor] = None,
        method: str = "native",
    ) -> None:
        """Initialize web crawler.

        Args:
            config: Crawl budgets, CrawlerConfig.native() when omitted
            fetcher: HTTP fetcher (ScraperAPI passes a proxying one)
            extractor: Content extractor
            method: Tag recorded in each page's metadata
        """
        self.config = config or CrawlerConfig.native()
        self.fetcher = fetcher or Fetcher()
        self.extractor = extractor or ContentExtractor()
        self.method = method

        # Statistics (written from worker threads)
        self.stats_lock = threading.Lock()
        self.stats = {
            "total_crawled": 0,
            "total_failed": 0,
            "total_links_found": 0,
        }

    def crawl(self, seed_url: str) -> CrawlResult:
        """Crawl from *seed_url* within the configured budgets.

        Raises:
            ConnectivityError: the probe failed, or the seed failed and the
                config requires it
            CrawlTimeoutError: the global deadline expired
        """
        seed = normalize_url(seed_url, seed_url)
        deadline = Deadline(self.config.run_timeout)
        logger.info("Starting {} crawl of {} with config: {}", self.method, seed, self.config)

        if self.config.probe_timeout:
            self.fetcher.probe(seed, timeout=deadline.clamp(self.config.probe_timeout))

        def process(url: str, depth: int) -> Tuple[PageModel, List[str]]:
            return self._process_page(url, depth, seed, deadline)

        result = traverse(seed, self.config, process, deadline=deadline)

        if self.config.require_seed and seed in result.errors:
            raise self._seed_error(result.errors[seed])

        self.stats["total_crawled"] = len(result.pages)
        self.stats["total_failed"] = result.pages_failed
        logger.info(
            "Crawling completed. Stats: crawled={}, failed={}, links_found={}",
            self.stats["total_crawled"],
            self.stats["total_failed"],
            self.stats["total_links_found"],
        )
        return result

    def _process_page(self, url: str, depth: int, seed: str, deadline: Deadline) -> Tuple[PageModel, List[str]]:
        """Fetch and extract one page.

        Args:
            url: URL to crawl
            depth: Current depth level
            seed: Seed URL of the run, defines the allowed origin
            deadline: Global deadline clamping the request timeout

        Returns:
            The extracted page and its same-origin links
        """
        timeout = self.config.seed_timeout if depth == 0 else self.config.page_timeout
        try:
            fetched = self.fetcher.fetch(url, timeout=deadline.clamp(timeout))
        except FetchError as exc:
            if deadline.expired:
                raise CrawlTimeoutError(deadline.seconds or 0) from exc
            raise

        page = self.extractor.extract(fetched.body, url, method=self.method, scraped_from=seed)

        links: List[str] = []
        if depth < self.config.max_depth:
            try:
                links = links_from_soup(BeautifulSoup(fetched.body, "html.parser"), url, seed)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Could not extract links from {}: {}", url, exc)
            with self.stats_lock:
                self.stats["total_links_found"] += len(links)
            if depth == 0 and not links:
                logger.warning("No links found on {}, scraping main page only", url)

        return page, links

    @staticmethod
    def _seed_error(failure: Exception) -> ConnectivityError:
        if isinstance(failure, FetchError) and failure.status_code and not 200 <= failure.status_code < 300:
            return ConnectivityError(f"Website returned error: {failure.reason}")
        return ConnectivityError(
            "Failed to retrieve website content. The website may have changed or is experiencing issues."
        )

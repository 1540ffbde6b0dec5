"""Firecrawl managed-crawl strategy."""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from hospital_scraper.crawler.content_extractor import ContentExtractor
from hospital_scraper.crawler.utils import is_same_origin, normalize_url
from hospital_scraper.crawler.web_crawler import CrawlResult
from hospital_scraper.errors import ProviderError, ProviderTimeoutError
from hospital_scraper.logger import logger
from hospital_scraper.strategies.base import ScrapeStrategy


FIRECRAWL_API_URL = os.getenv("FIRECRAWL_API_URL", "https://api.firecrawl.dev/v1")


class FirecrawlStrategy(ScrapeStrategy):
    """Submits a crawl job to Firecrawl and polls it to completion."""

    name = "firecrawl"
    display_name = "Firecrawl API"

    def __init__(
        self,
        api_key: str,
        base_url: str = FIRECRAWL_API_URL,
        limit: int = 50,
        poll_interval: float = 5.0,
        max_polls: int = 60,
        request_timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        extractor: Optional[ContentExtractor] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self.extractor = extractor or ContentExtractor()
        self._sleep = sleep

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def run(self, seed_url: str) -> CrawlResult:
        logger.info("Initiating Firecrawl scrape for: {}", seed_url)
        crawl_id = self._start_crawl(seed_url)
        logger.info("Firecrawl crawl started, ID: {}", crawl_id)

        items = self._wait_for_completion(crawl_id)
        logger.info("Processing {} pages from Firecrawl", len(items))
        return self._to_result(items, seed_url)

    def _start_crawl(self, seed_url: str) -> str:
        payload = {
            "url": seed_url,
            "limit": self.limit,
            "scrapeOptions": {"formats": ["markdown", "html"], "onlyMainContent": True},
        }
        response = self._request("post", f"{self.base_url}/crawl", json=payload)
        if not response.ok:
            raise ProviderError("Firecrawl", f"Firecrawl API error: {response.status_code} - {response.text}")

        crawl_id = self._json(response).get("id")
        if not crawl_id:
            raise ProviderError("Firecrawl", "Failed to start Firecrawl crawl")
        return crawl_id

    def _wait_for_completion(self, crawl_id: str) -> List[Dict[str, Any]]:
        """Poll the job until it completes.

        Raises:
            ProviderError: the status check failed or the job reported failure
            ProviderTimeoutError: still running after max_polls checks
        """
        status_url = f"{self.base_url}/crawl/{crawl_id}"

        for attempt in range(1, self.max_polls + 1):
            self._sleep(self.poll_interval)

            response = self._request("get", status_url)
            if not response.ok:
                raise ProviderError("Firecrawl", f"Failed to check crawl status: {response.status_code}")

            body = self._json(response)
            status = body.get("status")
            logger.debug("Crawl status check {}/{}: {}", attempt, self.max_polls, status)

            if status == "completed":
                return self._collect_pages(body)
            if status in ("failed", "cancelled"):
                raise ProviderError("Firecrawl", f"Firecrawl crawl {status}")

        raise ProviderTimeoutError("Firecrawl", "Crawl timeout - taking longer than expected")

    def _collect_pages(self, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Gather results, following ``next`` links for paginated jobs."""
        items = list(body.get("data") or [])
        next_url = body.get("next")

        while next_url and len(items) < self.limit:
            response = self._request("get", next_url)
            if not response.ok:
                logger.warning("Stopping Firecrawl pagination at {}: HTTP {}", next_url, response.status_code)
                break
            page_body = self._json(response)
            items.extend(page_body.get("data") or [])
            next_url = page_body.get("next")

        return items[: self.limit]

    def _to_result(self, items: List[Dict[str, Any]], seed_url: str) -> CrawlResult:
        result = CrawlResult()

        for item in items:
            provider_meta = item.get("metadata") or {}
            raw_url = item.get("url") or provider_meta.get("sourceURL") or provider_meta.get("url")
            url = normalize_url(raw_url or "", seed_url)
            if not url or url in result.visited:
                continue
            if not is_same_origin(url, seed_url):
                logger.debug("Dropping off-site Firecrawl result {}", url)
                continue
            result.visited.add(url)

            content = item.get("markdown") or item.get("html") or ""
            page = self.extractor.from_text(
                content,
                url,
                provider_meta.get("title"),
                method=self.name,
                metadata={**provider_meta, "scraped_from": seed_url},
            )
            result.pages.append(page)

        return result

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, headers=self._headers, timeout=self.request_timeout, **kwargs)
        except requests.RequestException as exc:
            raise ProviderError("Firecrawl", f"Firecrawl request failed: {exc}") from exc

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError("Firecrawl", "Firecrawl returned an invalid JSON response") from exc
        return body if isinstance(body, dict) else {}

"""Tests for strategy selection and the managed-provider adapters."""

from unittest.mock import MagicMock

import pytest
import requests

from hospital_scraper.errors import ConnectivityError, FetchError, ProviderError, ProviderTimeoutError
from hospital_scraper.models import PageType
from hospital_scraper.strategies import (
    AdvancedNativeStrategy,
    Credentials,
    FirecrawlStrategy,
    NativeStrategy,
    ScraperAPIStrategy,
    select_strategy,
)

from tests.conftest import FakeFetcher, html_page

SEED = "https://h.org/"


class TestSelectStrategy:
    def test_firecrawl_wins_over_scraperapi(self):
        strategy = select_strategy(Credentials(firecrawl_api_key="fc", scraperapi_key="sa"))
        assert isinstance(strategy, FirecrawlStrategy)
        assert strategy.api_key == "fc"

    def test_scraperapi_when_only_key(self):
        strategy = select_strategy(Credentials(scraperapi_key="sa"))
        assert isinstance(strategy, ScraperAPIStrategy)
        assert strategy.name == "scraperapi"

    def test_native_without_credentials(self):
        assert isinstance(select_strategy(None), NativeStrategy)
        assert select_strategy(Credentials()).name == "native"

    def test_advanced_ignores_credentials(self):
        strategy = select_strategy(Credentials(firecrawl_api_key="fc"), advanced=True)
        assert isinstance(strategy, AdvancedNativeStrategy)
        assert strategy.config.run_timeout == 20.0

    def test_credentials_from_payload(self):
        credentials = Credentials.from_payload({"firecrawlApiKey": "  ", "scraperApiKey": " sa "})
        assert credentials == Credentials(firecrawl_api_key=None, scraperapi_key="sa")

    def test_non_string_keys_coerced(self):
        credentials = Credentials.from_payload({"firecrawlApiKey": 12345, "scraperApiKey": None})
        assert credentials == Credentials(firecrawl_api_key="12345", scraperapi_key=None)


def json_response(body, status=200):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.json.return_value = body
    response.text = str(body)
    return response


@pytest.fixture
def session():
    return MagicMock()


def firecrawl(session, **kwargs):
    sleeps = []
    strategy = FirecrawlStrategy("fc-key", base_url="https://api.firecrawl.dev/v1", session=session, sleep=sleeps.append, **kwargs)
    return strategy, sleeps


class TestFirecrawlStrategy:
    def test_completed_job_normalised_to_pages(self, session):
        session.request.side_effect = [
            json_response({"success": True, "id": "job-1"}),
            json_response({"status": "scraping"}),
            json_response({
                "status": "completed",
                "data": [
                    {"markdown": "# Contact\nCall 555-123-4567", "metadata": {"title": "Contact", "sourceURL": "https://h.org/contact"}},
                    {"html": "<p>Elsewhere</p>", "metadata": {"sourceURL": "https://other.org/"}},
                    {"markdown": "dup", "metadata": {"sourceURL": "https://h.org/contact#top"}},
                ],
            }),
        ]
        strategy, sleeps = firecrawl(session)

        result = strategy.run(SEED)

        assert len(sleeps) == 2
        assert [page.url for page in result.pages] == ["https://h.org/contact"]
        page = result.pages[0]
        assert page.title == "Contact"
        assert page.page_type == PageType.CONTACT
        assert page.metadata["method"] == "firecrawl"
        assert page.metadata["scraped_from"] == SEED
        assert page.metadata["phones"] == ["555-123-4567"]

        method, url = session.request.call_args_list[0].args
        assert (method, url) == ("post", "https://api.firecrawl.dev/v1/crawl")
        kwargs = session.request.call_args_list[0].kwargs
        assert kwargs["json"]["limit"] == 50
        assert kwargs["headers"]["Authorization"] == "Bearer fc-key"
        assert session.request.call_args_list[1].args == ("get", "https://api.firecrawl.dev/v1/crawl/job-1")

    def test_seed_origin_overrides_provider_scraped_from(self, session):
        session.request.side_effect = [
            json_response({"id": "job-1"}),
            json_response({
                "status": "completed",
                "data": [{"markdown": "text", "url": "https://h.org/about", "metadata": {"scraped_from": "https://cache.example/"}}],
            }),
        ]
        strategy, _ = firecrawl(session)
        assert strategy.run(SEED).pages[0].metadata["scraped_from"] == SEED

    def test_missing_title_derived_from_url(self, session):
        session.request.side_effect = [
            json_response({"id": "job-1"}),
            json_response({"status": "completed", "data": [{"markdown": "text", "url": "https://h.org/our-team"}]}),
        ]
        strategy, _ = firecrawl(session)
        assert strategy.run(SEED).pages[0].title == "Our Team"

    def test_paginated_results_followed(self, session):
        session.request.side_effect = [
            json_response({"id": "job-1"}),
            json_response({"status": "completed", "data": [{"markdown": "a", "url": "https://h.org/a"}], "next": "https://api.firecrawl.dev/v1/crawl/job-1?skip=1"}),
            json_response({"status": "completed", "data": [{"markdown": "b", "url": "https://h.org/b"}]}),
        ]
        strategy, _ = firecrawl(session)
        assert [page.url for page in strategy.run(SEED).pages] == ["https://h.org/a", "https://h.org/b"]

    def test_rejected_submission_is_provider_error(self, session):
        session.request.return_value = json_response({"error": "Unauthorized"}, status=401)
        strategy, sleeps = firecrawl(session)

        with pytest.raises(ProviderError) as exc_info:
            strategy.run(SEED)

        assert "401" in exc_info.value.message
        assert exc_info.value.looks_like_auth_failure
        assert sleeps == []

    def test_missing_job_id(self, session):
        session.request.return_value = json_response({"success": False})
        strategy, _ = firecrawl(session)
        with pytest.raises(ProviderError, match="Failed to start Firecrawl crawl"):
            strategy.run(SEED)

    def test_failed_job_is_provider_error_not_timeout(self, session):
        session.request.side_effect = [json_response({"id": "job-1"}), json_response({"status": "failed"})]
        strategy, _ = firecrawl(session)

        with pytest.raises(ProviderError) as exc_info:
            strategy.run(SEED)
        assert not isinstance(exc_info.value, ProviderTimeoutError)

    def test_status_check_failure(self, session):
        session.request.side_effect = [json_response({"id": "job-1"}), json_response({}, status=500)]
        strategy, _ = firecrawl(session)
        with pytest.raises(ProviderError, match="Failed to check crawl status: 500"):
            strategy.run(SEED)

    def test_polling_budget_exhausted_is_timeout(self, session):
        session.request.side_effect = [json_response({"id": "job-1"})] + [json_response({"status": "scraping"})] * 3
        strategy, sleeps = firecrawl(session, max_polls=3, poll_interval=5)

        with pytest.raises(ProviderTimeoutError, match="Crawl timeout"):
            strategy.run(SEED)
        assert sleeps == [5, 5, 5]

    def test_network_failure_is_provider_error(self, session):
        session.request.side_effect = requests.ConnectionError("dns")
        strategy, _ = firecrawl(session)
        with pytest.raises(ProviderError, match="Firecrawl request failed"):
            strategy.run(SEED)


class TestScraperAPIStrategy:
    def test_pages_tagged_with_provider(self):
        fetcher = FakeFetcher({
            SEED: html_page("Home", "Welcome", ["/services", "https://elsewhere.org/"]),
            "https://h.org/services": html_page("Services", "Cardiology"),
        })
        result = ScraperAPIStrategy("sa-key", fetcher=fetcher).run(SEED)

        assert fetcher.probed == []
        assert [page.url for page in result.pages] == [SEED, "https://h.org/services"]
        assert {page.metadata["method"] for page in result.pages} == {"scraperapi"}

    def test_seed_rejection_is_provider_error(self):
        fetcher = FakeFetcher({SEED: FetchError(SEED, "HTTP 401 Unauthorized", status_code=401)})

        with pytest.raises(ProviderError, match="ScraperAPI error: HTTP 401 Unauthorized") as exc_info:
            ScraperAPIStrategy("bad-key", fetcher=fetcher).run(SEED)
        assert exc_info.value.looks_like_auth_failure

    def test_default_budget_matches_native(self):
        strategy = ScraperAPIStrategy("sa-key")
        assert strategy.config.max_pages == 50
        assert strategy.config.probe_timeout is None


class TestNativeStrategy:
    def test_runs_crawler_with_given_fetcher(self):
        fetcher = FakeFetcher({SEED: html_page("Home", "Welcome")})
        result = NativeStrategy(fetcher=fetcher).run(SEED)
        assert [page.title for page in result.pages] == ["Home"]
        assert fetcher.probed == [SEED]

    def test_connectivity_errors_propagate(self):
        fetcher = FakeFetcher({}, probe_error=ConnectivityError("down"))
        with pytest.raises(ConnectivityError):
            NativeStrategy(fetcher=fetcher).run(SEED)

"""Tests for MongoClientManager against a mocked client."""

from unittest.mock import MagicMock

import pytest
from pymongo.errors import OperationFailure, PyMongoError

from hospital_scraper.database import MongoClientManager
from hospital_scraper.models import HospitalModel, PageModel, PageType, ScrapeStatsModel


@pytest.fixture
def collections():
    return {name: MagicMock(name=name) for name in ("hospitals", "hospital_pages", "hospital_scraping_stats")}


@pytest.fixture
def client(collections):
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.side_effect = collections.__getitem__
    return client


@pytest.fixture
def manager(client, monkeypatch):
    monkeypatch.setenv("MONGO_DB", "hospitals_db")
    return MongoClientManager(client=client)


def pages():
    return [
        PageModel(url="https://h.org/", title="Home", content="hi", page_type=PageType.HOME),
        PageModel(url="https://h.org/contact", title="Contact", content="call", page_type=PageType.CONTACT),
    ]


class TestSetup:
    def test_database_selection(self, client, monkeypatch):
        monkeypatch.setenv("MONGO_DB", "hospitals_db")
        MongoClientManager(client=client)
        MongoClientManager(test_db=True, client=client)
        assert [call.args[0] for call in client.__getitem__.call_args_list] == ["hospitals_db", "hospitals_db_test"]

    def test_missing_uri(self, monkeypatch):
        monkeypatch.delenv("MONGO_URI", raising=False)
        with pytest.raises(ValueError, match="MONGO_URI"):
            MongoClientManager()

    def test_index_failure_is_logged(self, client, collections):
        collections["hospital_pages"].create_index.side_effect = PyMongoError("no perms")
        MongoClientManager(client=client)


class TestReplacePages:
    def test_inside_transaction(self, manager, client, collections):
        session = client.start_session.return_value.__enter__.return_value
        collections["hospital_pages"].insert_many.return_value.inserted_ids = ["a", "b"]

        assert manager.replace_hospital_pages("h1", pages()) == 2

        collections["hospital_pages"].delete_many.assert_called_once_with({"hospital_id": "h1"}, session=session)
        docs = collections["hospital_pages"].insert_many.call_args.args[0]
        assert [d["url"] for d in docs] == ["https://h.org/", "https://h.org/contact"]
        assert all(d["hospital_id"] == "h1" for d in docs)
        assert docs[1]["page_type"] == "contact"

    def test_falls_back_without_transactions(self, manager, client, collections):
        session = client.start_session.return_value.__enter__.return_value
        session.start_transaction.side_effect = OperationFailure(
            "Transaction numbers are only allowed on a replica set member or mongos", code=20
        )
        collections["hospital_pages"].insert_many.return_value.inserted_ids = ["a", "b"]

        assert manager.replace_hospital_pages("h1", pages()) == 2

        collections["hospital_pages"].delete_many.assert_called_once_with({"hospital_id": "h1"}, session=None)

    def test_other_operation_failures_propagate(self, manager, client):
        session = client.start_session.return_value.__enter__.return_value
        session.start_transaction.side_effect = OperationFailure("not authorized", code=13)

        with pytest.raises(OperationFailure):
            manager.replace_hospital_pages("h1", pages())


class TestPages:
    def test_get_pages_by_type(self, manager, collections):
        collections["hospital_pages"].find.return_value = [
            {"_id": "x", "url": "https://h.org/contact", "title": "Contact", "content": "call", "page_type": "contact", "hospital_id": "h1"}
        ]

        result = manager.get_hospital_pages("h1", page_type="contact")

        collections["hospital_pages"].find.assert_called_once_with({"hospital_id": "h1", "page_type": "contact"})
        assert result[0].page_type == PageType.CONTACT


class TestHospitals:
    def test_auto_scrape_skips_missing_urls(self, manager, collections):
        collections["hospitals"].find.return_value = [
            {"_id": "h1", "website_url": "https://h.org", "auto_scrape_enabled": True, "scrape_frequency": "daily"},
            {"_id": "h2", "auto_scrape_enabled": True},
        ]

        hospitals = manager.get_auto_scrape_hospitals()

        collections["hospitals"].find.assert_called_once_with({"auto_scrape_enabled": True})
        assert [h.id for h in hospitals] == ["h1"]
        assert hospitals[0].scrape_frequency == "daily"

    def test_mark_scraped(self, manager, collections):
        manager.mark_hospital_scraped("h1")
        query, update = collections["hospitals"].update_one.call_args.args
        assert query == {"_id": "h1"}
        assert "scraped_at" in update["$set"]

    def test_upsert_hospital(self, manager, collections):
        manager.upsert_hospital(HospitalModel(id="h1", website_url="https://h.org", scrape_frequency="weekly"))

        query, update = collections["hospitals"].update_one.call_args.args
        assert query == {"_id": "h1"}
        assert update["$set"]["website_url"] == "https://h.org"
        assert "id" not in update["$set"]
        assert collections["hospitals"].update_one.call_args.kwargs == {"upsert": True}

    def test_get_missing_hospital(self, manager, collections):
        collections["hospitals"].find_one.return_value = None
        assert manager.get_hospital("nope") is None


class TestRunHistory:
    def test_insert_stats(self, manager, collections):
        manager.insert_scrape_stats(ScrapeStatsModel(hospital_id="h1", method="native", pages_scraped=3, success=True))
        doc = collections["hospital_scraping_stats"].insert_one.call_args.args[0]
        assert doc["hospital_id"] == "h1"
        assert doc["pages_scraped"] == 3
        assert doc["success"] is True

    def test_summary(self, manager, collections):
        collections["hospital_scraping_stats"].aggregate.return_value = iter([
            {"_id": "h1", "total_runs": 4, "successful_runs": 3, "average_duration_seconds": 2.456, "last_method": "firecrawl"}
        ])

        summary = manager.get_scrape_summary("h1")

        assert summary.total_runs == 4
        assert summary.success_rate == 0.75
        assert summary.average_duration_seconds == 2.46
        assert summary.last_method == "firecrawl"

    def test_summary_without_history(self, manager, collections):
        collections["hospital_scraping_stats"].aggregate.return_value = iter([])
        summary = manager.get_scrape_summary("h1")
        assert summary.total_runs == 0
        assert summary.success_rate == 0.0

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import OperationFailure, PyMongoError

from hospital_scraper.logger import logger
from hospital_scraper.models import HospitalModel, PageModel, ScrapeStatsModel, ScrapeSummary

load_dotenv()


class MongoClientManager:
    """Persistence for hospitals, their page snapshots and run history."""

    def __init__(self, test_db: bool = False, client: Optional[MongoClient] = None) -> None:
        if client is None:
            mongo_uri = os.getenv("MONGO_URI")
            if not mongo_uri:
                raise ValueError("MONGO_URI missing in .env")
            client = MongoClient(mongo_uri)

        self.client = client
        db_name = os.getenv("MONGO_DB", "hospital_scraper")
        # Use test database if requested
        if test_db:
            db_name = f"{db_name}_test"
        self.db = self.client[db_name]

        self.hospitals = self.db["hospitals"]
        self.hospital_pages = self.db["hospital_pages"]
        self.scraping_stats = self.db["hospital_scraping_stats"]

        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes; failures are logged, queries still work without them."""
        try:
            self.hospital_pages.create_index([("hospital_id", ASCENDING)])
            self.hospital_pages.create_index([("hospital_id", ASCENDING), ("url", ASCENDING)], unique=True)
            self.scraping_stats.create_index([("hospital_id", ASCENDING), ("created_at", DESCENDING)])
            self.hospitals.create_index([("auto_scrape_enabled", ASCENDING)])
        except PyMongoError as exc:
            logger.error("Failed to create indexes: {}", exc)

    # ------------ Hospitals -----------------
    def get_hospital(self, hospital_id: str) -> Optional[HospitalModel]:
        doc = self.hospitals.find_one({"_id": hospital_id})
        if not doc:
            return None
        return HospitalModel(id=str(doc.pop("_id")), **doc)

    def upsert_hospital(self, hospital: HospitalModel) -> None:
        data = hospital.model_dump(exclude={"id"})
        self.hospitals.update_one({"_id": hospital.id}, {"$set": data}, upsert=True)

    def mark_hospital_scraped(self, hospital_id: str, when: Optional[datetime] = None) -> None:
        """Stamp the hospital's last scrape attempt."""
        when = when or datetime.now(timezone.utc)
        self.hospitals.update_one({"_id": hospital_id}, {"$set": {"scraped_at": when}})

    def get_auto_scrape_hospitals(self) -> List[HospitalModel]:
        hospitals = []
        for doc in self.hospitals.find({"auto_scrape_enabled": True}):
            hospital_id = str(doc.pop("_id"))
            if not doc.get("website_url"):
                logger.warning("Hospital {} has auto-scrape enabled but no website URL", hospital_id)
                continue
            hospitals.append(HospitalModel(id=hospital_id, **doc))
        return hospitals

    # ------------ Pages -----------------
    def replace_hospital_pages(self, hospital_id: str, pages: Sequence[PageModel]) -> int:
        """Swap the hospital's page set for *pages*.

        Runs delete + insert in one transaction when the deployment supports
        it (replica set), otherwise sequentially.

        Args:
            hospital_id: Owning hospital
            pages: New snapshot, already de-duplicated by URL

        Returns:
            Number of inserted pages
        """
        docs = [page.to_document(hospital_id) for page in pages]

        try:
            with self.client.start_session() as session:
                with session.start_transaction():
                    return self._replace_pages(hospital_id, docs, session=session)
        except OperationFailure as exc:
            # IllegalOperation: standalone servers reject transactions
            if exc.code != 20 and "transaction" not in str(exc).lower():
                raise
            logger.debug("Transactions unsupported, replacing pages without one: {}", exc)

        return self._replace_pages(hospital_id, docs)

    def _replace_pages(self, hospital_id: str, docs: List[Dict], session=None) -> int:
        deleted = self.hospital_pages.delete_many({"hospital_id": hospital_id}, session=session)
        logger.info("Deleted {} old pages for hospital {}", deleted.deleted_count, hospital_id)
        if not docs:
            return 0
        inserted = self.hospital_pages.insert_many(docs, ordered=True, session=session)
        return len(inserted.inserted_ids)

    def get_hospital_pages(self, hospital_id: str, page_type: Optional[str] = None) -> List[PageModel]:
        query: Dict = {"hospital_id": hospital_id}
        if page_type:
            query["page_type"] = page_type
        return [PageModel(**{k: v for k, v in doc.items() if k != "_id"}) for doc in self.hospital_pages.find(query)]

    # ------------ Run history -----------------
    def insert_scrape_stats(self, stats: ScrapeStatsModel) -> None:
        self.scraping_stats.insert_one(stats.model_dump())

    def get_scrape_summary(self, hospital_id: str) -> ScrapeSummary:
        """Average duration, success rate and last method for a hospital."""
        pipeline = [
            {"$match": {"hospital_id": hospital_id}},
            {"$sort": {"created_at": ASCENDING}},
            {"$group": {
                "_id": "$hospital_id",
                "total_runs": {"$sum": 1},
                "successful_runs": {"$sum": {"$cond": ["$success", 1, 0]}},
                "average_duration_seconds": {"$avg": "$duration_seconds"},
                "last_method": {"$last": "$method"},
                "last_run_at": {"$last": "$created_at"},
            }},
        ]
        rows = list(self.scraping_stats.aggregate(pipeline))
        if not rows:
            return ScrapeSummary(hospital_id=hospital_id)

        row = rows[0]
        total = row["total_runs"]
        return ScrapeSummary(
            hospital_id=hospital_id,
            total_runs=total,
            successful_runs=row["successful_runs"],
            success_rate=row["successful_runs"] / total if total else 0.0,
            average_duration_seconds=round(row.get("average_duration_seconds") or 0.0, 2),
            last_method=row.get("last_method"),
            last_run_at=row.get("last_run_at"),
        )

    def close(self) -> None:
        self.client.close()

"""Periodic re-scraping of hospitals that opted in."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from hospital_scraper.coordinator import ScrapeCoordinator
from hospital_scraper.errors import ScrapeError
from hospital_scraper.logger import logger
from hospital_scraper.models import HospitalModel


FREQUENCY_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
}


def is_due(hospital: HospitalModel, now: Optional[datetime] = None) -> bool:
    """Whether *hospital* should be scraped according to its frequency.

    Never-scraped hospitals are always due; unknown frequencies never are.
    """
    if hospital.scraped_at is None:
        return True

    days = FREQUENCY_DAYS.get((hospital.scrape_frequency or "").lower())
    if days is None:
        return False

    now = now or datetime.now(timezone.utc)
    last = hospital.scraped_at
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    return (now - last).total_seconds() / 86400 >= days


def run_scheduled_scrapes(store, coordinator: Optional[ScrapeCoordinator] = None, now: Optional[datetime] = None) -> Dict:
    """Scrape every auto-scrape hospital that is due, one after another.

    A failing hospital is reported in the results and does not stop the batch.

    Returns:
        Dictionary with totalHospitals, hospitalsScraped, results and timestamp
    """
    coordinator = coordinator or ScrapeCoordinator(store)
    now = now or datetime.now(timezone.utc)

    hospitals = store.get_auto_scrape_hospitals()
    logger.info("Found {} hospitals with auto-scrape enabled", len(hospitals))

    due = [hospital for hospital in hospitals if is_due(hospital, now)]
    logger.info("{} hospitals need scraping based on frequency", len(due))

    results: List[Dict] = []
    for hospital in due:
        entry: Dict = {"hospitalId": hospital.id, "hospitalName": hospital.name}
        try:
            run = coordinator.run_scrape(hospital.id, hospital.website_url)
            entry.update(success=run.success, pagesScraped=run.pages_scraped, method=run.display_name)
        except ScrapeError as exc:
            entry.update(success=False, **exc.to_dict())
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error scraping {}: {}", hospital.name or hospital.id, exc)
            entry.update(success=False, error=str(exc) or "Unknown error")

        logger.info("Scrape completed for {}: {}", hospital.name or hospital.id, "SUCCESS" if entry["success"] else "FAILED")
        results.append(entry)

    return {
        "success": True,
        "totalHospitals": len(hospitals),
        "hospitalsScraped": len(due),
        "results": results,
        "timestamp": now.isoformat(),
    }

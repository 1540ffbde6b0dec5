from __future__ import annotations

import argparse
import sys

from hospital_scraper.coordinator import ScrapeCoordinator
from hospital_scraper.database import MongoClientManager
from hospital_scraper.errors import ScrapeError
from hospital_scraper.logger import configure_logging, logger
from hospital_scraper.models import HospitalModel
from hospital_scraper.scheduler import run_scheduled_scrapes
from hospital_scraper.strategies import Credentials


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hospital website scraper")
    parser.add_argument("--hospital-id", help="Hospital whose pages are replaced")
    parser.add_argument("--url", help="Hospital website (seed URL)")
    parser.add_argument(
        "--firecrawl-key",
        default=None,
        help="Firecrawl API key (takes precedence over --scraperapi-key)",
    )
    parser.add_argument(
        "--scraperapi-key",
        default=None,
        help="ScraperAPI key",
    )
    parser.add_argument(
        "--advanced",
        action="store_true",
        help="Quick bounded crawl (5 pages, 20 second limit)",
    )
    parser.add_argument(
        "--scheduled",
        action="store_true",
        help="Scrape every auto-scrape hospital that is due",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API instead of a single scrape",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL (DEBUG shows filtered links and poll iterations)",
    )
    parser.add_argument(
        "--test-db",
        action="store_true",
        help="Use the test database instead of production",
    )

    args = parser.parse_args(argv)
    if not (args.serve or args.scheduled) and not (args.hospital_id and args.url):
        parser.error("--hospital-id and --url are required unless --serve or --scheduled is given")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.log_level:
        configure_logging(level=args.log_level)
    logger.info("Starting scraper with args: {}", {k: v for k, v in vars(args).items() if not k.endswith("_key")})

    mongo = MongoClientManager(test_db=args.test_db)

    try:
        if args.serve:
            from hospital_scraper.api import create_app

            create_app(store=mongo).run(host=args.host, port=args.port)
            return 0

        coordinator = ScrapeCoordinator(mongo)

        if args.scheduled:
            summary = run_scheduled_scrapes(mongo, coordinator)
            logger.info(
                "=== Scheduled scrape finished ===\nHospitals with auto-scrape: {}\nScraped: {}",
                summary["totalHospitals"],
                summary["hospitalsScraped"],
            )
            return 0

        if mongo.get_hospital(args.hospital_id) is None:
            logger.info("Registering hospital {} ({})", args.hospital_id, args.url)
            mongo.upsert_hospital(HospitalModel(id=args.hospital_id, website_url=args.url))

        credentials = Credentials(firecrawl_api_key=args.firecrawl_key, scraperapi_key=args.scraperapi_key)
        try:
            run = coordinator.run_scrape(args.hospital_id, args.url, credentials, advanced=args.advanced)
        except ScrapeError as exc:
            logger.error("Scrape failed: {}\nSuggestion: {}", exc.message, exc.suggestion)
            return 1

        logger.info(
            "=== Scraping finished ===\nMethod: {}\nPages scraped: {}\nPages failed: {}\nDuration: {}s",
            run.display_name,
            run.pages_scraped,
            run.pages_failed,
            run.duration_seconds,
        )
        return 0 if run.success else 2
    finally:
        mongo.close()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

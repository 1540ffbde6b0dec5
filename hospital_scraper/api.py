"""HTTP entry points for the hospital-management UI."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from hospital_scraper.coordinator import RunResult, ScrapeCoordinator
from hospital_scraper.errors import DEFAULT_SUGGESTION, ScrapeError
from hospital_scraper.logger import logger
from hospital_scraper.scheduler import run_scheduled_scrapes
from hospital_scraper.strategies import Credentials


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

ADVANCED_SUGGESTION = "The advanced scraper encountered an issue. Please verify the URL is accessible and try again."
EMPTY_RUN_WARNING = (
    "No pages could be scraped. The website may be blocking automated requests, "
    "have a complex structure, or be temporarily unavailable."
)


def create_app(coordinator: Optional[ScrapeCoordinator] = None, store=None) -> Flask:
    """Build the Flask app.

    Args:
        coordinator: Run coordinator, built on ``store`` when omitted
        store: Persistence object, a MongoClientManager from the environment when omitted
    """
    if store is None:
        if coordinator is not None:
            store = coordinator.store
        else:
            from hospital_scraper.database import MongoClientManager

            store = MongoClientManager()
    coordinator = coordinator or ScrapeCoordinator(store)

    app = Flask(__name__)

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(ScrapeError)
    def handle_scrape_error(exc: ScrapeError):
        return jsonify(exc.to_dict()), exc.status_code

    def read_run_request():
        payload = request.get_json(silent=True) or {}
        hospital_id = payload.get("hospitalId")
        website_url = payload.get("websiteUrl")
        if not hospital_id or not website_url:
            return None, (jsonify({"error": "Hospital ID and website URL are required"}), 400)
        return (str(hospital_id), website_url, Credentials.from_payload(payload)), None

    @app.route("/scrape-hospital", methods=["POST"])
    def scrape_hospital():
        parsed, error = read_run_request()
        if error:
            return error
        hospital_id, website_url, credentials = parsed
        logger.info("Scraping hospital: {} {}", hospital_id, website_url)

        try:
            run = coordinator.run_scrape(hospital_id, website_url, credentials)
        except ScrapeError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error in scrape-hospital: {}", exc)
            return jsonify({"error": str(exc) or "Unknown error occurred", "suggestion": DEFAULT_SUGGESTION}), 500

        return jsonify(_run_body(run))

    @app.route("/advanced-scrape", methods=["POST"])
    def advanced_scrape():
        parsed, error = read_run_request()
        if error:
            return error
        hospital_id, website_url, _ = parsed
        logger.info("Advanced scraping hospital: {} {}", hospital_id, website_url)

        try:
            run = coordinator.run_scrape(hospital_id, website_url, advanced=True)
        except ScrapeError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error in advanced-scrape: {}", exc)
            body = {
                "error": str(exc) or "Unknown error occurred",
                "type": type(exc).__name__,
                "suggestion": ADVANCED_SUGGESTION,
            }
            return jsonify(body), 500

        body = {
            "success": run.success,
            "pagesScraped": run.pages_scraped,
            "method": run.display_name,
            "duration": f"{run.duration_seconds:.2f}s",
        }
        if not run.success:
            body["warning"] = EMPTY_RUN_WARNING
        return jsonify(body)

    @app.route("/scheduled-scrape", methods=["POST"])
    def scheduled_scrape():
        logger.info("Starting scheduled scrape job")
        summary = run_scheduled_scrapes(store, coordinator)
        if not summary["totalHospitals"]:
            return jsonify({"message": "No hospitals to scrape", "count": 0})
        return jsonify(summary)

    @app.route("/hospitals/<hospital_id>/stats", methods=["GET"])
    def hospital_stats(hospital_id: str):
        summary = store.get_scrape_summary(hospital_id)
        return jsonify(summary.model_dump(mode="json"))

    @app.route("/hospitals/<hospital_id>/pages", methods=["GET"])
    def hospital_pages(hospital_id: str):
        pages = store.get_hospital_pages(hospital_id, page_type=request.args.get("type"))
        return jsonify([page.model_dump(mode="json") for page in pages])

    return app


def _run_body(run: RunResult) -> dict:
    body = {
        "success": run.success,
        "pagesScraped": run.pages_scraped,
        "method": run.display_name,
        "message": run.message,
        "duration": f"{run.duration_seconds:.2f}s",
    }
    if not run.success:
        body["warning"] = EMPTY_RUN_WARNING
    return body

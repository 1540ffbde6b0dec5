from hospital_scraper.models.hospital_model import HospitalModel
from hospital_scraper.models.page_model import MAX_CONTENT_LENGTH, PageModel, PageType
from hospital_scraper.models.stats_model import ScrapeStatsModel, ScrapeSummary

__all__ = [
    "HospitalModel",
    "MAX_CONTENT_LENGTH",
    "PageModel",
    "PageType",
    "ScrapeStatsModel",
    "ScrapeSummary",
]

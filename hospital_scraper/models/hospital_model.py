from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HospitalModel(BaseModel):
    id: str
    website_url: str
    name: Optional[str] = None
    scraped_at: Optional[datetime] = None
    # Scheduling hints, owned by whoever triggers scheduled runs
    auto_scrape_enabled: bool = False
    scrape_frequency: Optional[str] = None  # "daily", "weekly", "monthly"

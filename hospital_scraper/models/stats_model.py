"""Pydantic models for scraping run history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ScrapeStatsModel(BaseModel):
    """One row per run attempt. Never updated after insertion."""

    hospital_id: str
    method: str
    pages_scraped: int = 0
    pages_failed: int = 0
    duration_seconds: float = 0.0
    success: bool = False
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScrapeSummary(BaseModel):
    """Aggregates over a hospital's run history."""

    hospital_id: str
    total_runs: int = 0
    successful_runs: int = 0
    success_rate: float = 0.0
    average_duration_seconds: float = 0.0
    last_method: Optional[str] = None
    last_run_at: Optional[datetime] = None

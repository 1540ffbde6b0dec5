"""Pydantic model for an extracted hospital page."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


MAX_CONTENT_LENGTH = 50_000


class PageType(str, Enum):
    """Closed set of page classifications."""

    HOME = "home"
    ABOUT = "about"
    CONTACT = "contact"
    SERVICES = "services"
    DOCTORS = "doctors"
    EMERGENCY = "emergency"
    APPOINTMENTS = "appointments"
    BLOG = "blog"
    DEPARTMENT = "department"
    LABORATORY = "laboratory"
    GENERAL = "general"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PageModel(BaseModel):
    """One page of a hospital website as stored in ``hospital_pages``.

    Pages are a per-run snapshot: every successful run replaces the whole set
    for its hospital.
    """

    url: str
    title: str
    content: str = ""
    page_type: PageType = PageType.GENERAL
    metadata: Dict[str, Any] = Field(default_factory=dict)
    hospital_id: Optional[str] = None
    scraped_at: datetime = Field(default_factory=_utcnow)

    @field_validator("content")
    @classmethod
    def _cap_content(cls, value: str) -> str:
        return value[:MAX_CONTENT_LENGTH]

    def to_document(self, hospital_id: str) -> Dict[str, Any]:
        """Serialize for insertion, stamping the owning hospital."""
        doc = self.model_dump(mode="python")
        doc["hospital_id"] = hospital_id
        doc["page_type"] = self.page_type.value
        return doc

# --- File: hotelops/schemas/short_link.py ---
"""
Short link schemas for the URL shortener endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from hotelops.schemas.common import BaseSchema

__all__ = [
    "ShortenRequest",
    "ShortLinkCreated",
    "ShortLinkAnalytics",
]


class ShortenRequest(BaseSchema):
    """Both fields are checked by the service so a missing one yields a 400."""

    url: Optional[str] = None
    tenant_id: Optional[str] = Field(None, alias="tenantId")


class ShortLinkCreated(BaseSchema):
    short_code: str
    short_url: str
    target_url: str


class ShortLinkAnalytics(BaseSchema):
    short_code: str
    target_url: str
    click_count: int
    created_at: datetime
    last_clicked_at: Optional[datetime] = None

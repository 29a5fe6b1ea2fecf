# --- File: hotelops/schemas/session.py ---
"""
Guest session validation schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from hotelops.schemas.common import CamelSchema

__all__ = [
    "DeviceInfo",
    "SessionValidateRequest",
    "SessionInfo",
    "SessionValidateResponse",
]


class DeviceInfo(CamelSchema):
    """
    Best-effort device metadata. Every field is optional and extra keys are
    kept for the scan log.
    """

    model_config = ConfigDict(extra="allow")

    user_agent: Optional[str] = None
    language: Optional[str] = None
    timestamp: Optional[str] = None
    platform: Optional[str] = None


class SessionValidateRequest(CamelSchema):
    """Payload of POST /guest/session/validate"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "qrToken": "room-101-a7f3c9",
                "deviceInfo": {"userAgent": "Mozilla/5.0", "language": "en-GB"},
            }
        }
    )

    qr_token: str = Field(..., min_length=1, max_length=512)
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)


class SessionInfo(CamelSchema):
    session_id: str
    tenant_id: str
    qr_code_id: str
    hotel_name: str
    room_number: Optional[str] = None
    services: List[str] = Field(default_factory=list)
    expires_at: datetime


class SessionValidateResponse(CamelSchema):
    success: bool = True
    session: SessionInfo
    token: str

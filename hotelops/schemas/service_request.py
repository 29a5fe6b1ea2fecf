# --- File: hotelops/schemas/service_request.py ---
"""
Service request schemas.

`request_data` is a tagged union keyed by the request type: every request
type has one payload model, and `summarize_payload` produces the one-line
summary shown in staff chat and notification views.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from hotelops.core.exceptions import ValidationError
from hotelops.schemas.common import CamelSchema
from hotelops.schemas.enums import RequestPriority, RequestStatus, SenderRole

__all__ = [
    "MaintenancePayload",
    "HousekeepingPayload",
    "RoomServiceItem",
    "RoomServicePayload",
    "WifiSupportPayload",
    "ConciergePayload",
    "FeedbackPayload",
    "GenericPayload",
    "RequestPayload",
    "PAYLOAD_TYPES",
    "normalize_request_type",
    "parse_request_payload",
    "summarize_payload",
    "ServiceRequestCreate",
    "CreatedRequest",
    "ServiceRequestCreateResponse",
    "ServiceRequestView",
    "StatusUpdate",
    "AssignRequest",
    "StaffResponse",
    "MessageCreate",
    "MessageView",
]


# ------------------------------------------------------------------ #
# Payload variants
# ------------------------------------------------------------------ #
class MaintenancePayload(CamelSchema):
    issue_type: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=2000)
    issue_title: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)

    @property
    def issue_label(self) -> str:
        if self.issue_title:
            return self.issue_title
        return self.issue_type.replace("_", " ").replace("-", " ").title()


class HousekeepingPayload(CamelSchema):
    items: List[str] = Field(..., min_length=1)
    special_instructions: Optional[str] = Field(None, max_length=1000)


class RoomServiceItem(CamelSchema):
    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    price: Optional[Decimal] = Field(None, ge=0)


class RoomServicePayload(CamelSchema):
    items: List[RoomServiceItem] = Field(..., min_length=1)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    special_instructions: Optional[str] = Field(None, max_length=1000)


class WifiSupportPayload(CamelSchema):
    issue: str = Field(..., min_length=1, max_length=1000)
    device_type: Optional[str] = None


class ConciergePayload(CamelSchema):
    message: str = Field(..., min_length=1, max_length=2000)


class FeedbackPayload(CamelSchema):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class GenericPayload(CamelSchema):
    model_config = ConfigDict(extra="allow")

    message: str = Field(..., min_length=1, max_length=2000)


RequestPayload = Union[
    MaintenancePayload,
    HousekeepingPayload,
    RoomServicePayload,
    WifiSupportPayload,
    ConciergePayload,
    FeedbackPayload,
    GenericPayload,
]

PAYLOAD_TYPES: Dict[str, Type[CamelSchema]] = {
    "maintenance": MaintenancePayload,
    "housekeeping": HousekeepingPayload,
    "room_service": RoomServicePayload,
    "wifi_support": WifiSupportPayload,
    "concierge": ConciergePayload,
    "feedback": FeedbackPayload,
}

# Portal endpoint names that map onto an internal request type
_REQUEST_TYPE_ALIASES = {
    "wifi-request": "wifi_support",
    "wifi_access": "wifi_support",
    "room-service": "room_service",
    "digital-menu": "room_service",
    "digital_menu": "room_service",
    "events": "concierge",
    "front-desk-call": "concierge",
}


def normalize_request_type(request_type: str) -> str:
    key = request_type.strip().lower()
    return _REQUEST_TYPE_ALIASES.get(key, key.replace("-", "_"))


def parse_request_payload(request_type: str, data: Dict[str, Any]) -> RequestPayload:
    """
    Validate `data` against the payload model for `request_type`.

    Unknown request types fall back to the generic variant.

    Raises:
        ValidationError: with per-field messages when required fields are missing
    """
    payload_cls = PAYLOAD_TYPES.get(request_type, GenericPayload)
    try:
        return payload_cls.model_validate(data)
    except PydanticValidationError as e:
        field_errors: Dict[str, List[str]] = {}
        for error in e.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "requestData"
            field_errors.setdefault(location, []).append(error.get("msg", "invalid"))
        raise ValidationError(
            message="Please fill in the required details for this request",
            field_errors=field_errors,
        ) from e


def summarize_payload(payload: RequestPayload) -> str:
    """Staff-facing summary; one branch per payload variant."""
    if isinstance(payload, MaintenancePayload):
        return f"{payload.issue_label}: {payload.description}"
    if isinstance(payload, HousekeepingPayload):
        summary = "Housekeeping: " + ", ".join(payload.items)
        if payload.special_instructions:
            summary += f" ({payload.special_instructions})"
        return summary
    if isinstance(payload, RoomServicePayload):
        items = ", ".join(f"{item.quantity}x {item.name}" for item in payload.items)
        summary = f"Room service: {items}"
        if payload.total_amount is not None:
            summary += f" (total {payload.total_amount})"
        return summary
    if isinstance(payload, WifiSupportPayload):
        device = f" on {payload.device_type}" if payload.device_type else ""
        return f"WiFi support{device}: {payload.issue}"
    if isinstance(payload, ConciergePayload):
        return f"Concierge: {payload.message}"
    if isinstance(payload, FeedbackPayload):
        summary = f"Feedback: {payload.rating}/5"
        if payload.comment:
            summary += f" - {payload.comment}"
        return summary
    if isinstance(payload, GenericPayload):
        return payload.message
    raise TypeError(f"No summary for payload type {type(payload).__name__}")


# ------------------------------------------------------------------ #
# API bodies and views
# ------------------------------------------------------------------ #
class ServiceRequestCreate(CamelSchema):
    """Payload of POST /guest/requests"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessionId": "5b0c6f0e-2b7e-4bd6-9f0b-0c7b1f0f6a10",
                "requestType": "maintenance",
                "requestData": {"issueType": "plumbing", "description": "leaking tap"},
                "priority": "urgent",
                "smsEnabled": True,
                "guestPhone": "+2348012345678",
                "guestName": "Ada",
            }
        }
    )

    session_id: str = Field(..., min_length=1)
    request_type: str = Field(..., min_length=1, max_length=50)
    request_data: Dict[str, Any] = Field(default_factory=dict)
    priority: RequestPriority = RequestPriority.NORMAL
    sms_enabled: bool = False
    guest_phone: Optional[str] = Field(None, max_length=20)
    guest_name: Optional[str] = Field(None, max_length=255)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "medium":
                return RequestPriority.NORMAL
        return v


class CreatedRequest(CamelSchema):
    request_id: str
    tracking_number: str
    created_at: datetime


class ServiceRequestCreateResponse(CamelSchema):
    success: bool = True
    request: CreatedRequest


class ServiceRequestView(CamelSchema):
    """Projection of a service request for guest and staff views"""

    id: str
    tracking_number: str
    session_id: str
    tenant_id: str
    room_number: Optional[str] = None
    request_type: str
    request_data: Dict[str, Any] = Field(default_factory=dict)
    priority: RequestPriority
    status: RequestStatus
    assigned_team: Optional[str] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class StatusUpdate(CamelSchema):
    status: RequestStatus
    note: Optional[str] = Field(None, max_length=2000)


class AssignRequest(CamelSchema):
    assigned_to: Optional[str] = None
    note: Optional[str] = Field(None, max_length=2000)


class StaffResponse(CamelSchema):
    message: str = Field(..., min_length=1, max_length=2000)
    status: Optional[RequestStatus] = None


class MessageCreate(CamelSchema):
    message: str = Field(..., min_length=1, max_length=2000)
    payload: Dict[str, Any] = Field(default_factory=dict)


class MessageView(CamelSchema):
    id: str
    request_id: str
    sender_role: SenderRole
    message: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

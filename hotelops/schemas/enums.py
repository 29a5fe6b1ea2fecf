# --- File: hotelops/schemas/enums.py ---
"""
Enumerations shared by the ORM models, API schemas and the client runtime.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "RequestStatus",
    "RequestPriority",
    "ScanType",
    "SenderRole",
    "RoomStatus",
    "ReservationStatus",
    "FolioStatus",
    "NotificationChannel",
    "NotificationStatus",
    "TERMINAL_REQUEST_STATUSES",
]


class RequestStatus(str, Enum):
    """Service request lifecycle. Forward only, `cancelled` from any open state."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_REQUEST_STATUSES

    @property
    def rank(self) -> int:
        """Position in the forward progression; terminal states share the top rank."""
        return _STATUS_RANK[self]

    def can_transition_to(self, new_status: "RequestStatus") -> bool:
        if self.is_terminal:
            return False
        if new_status is RequestStatus.CANCELLED:
            return True
        return new_status.rank > self.rank


TERMINAL_REQUEST_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED})

_STATUS_RANK = {
    RequestStatus.PENDING: 0,
    RequestStatus.ACKNOWLEDGED: 1,
    RequestStatus.IN_PROGRESS: 2,
    RequestStatus.COMPLETED: 3,
    RequestStatus.CANCELLED: 3,
}


class RequestPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    URGENT = "urgent"
    HIGH = "high"


class ScanType(str, Enum):
    """Outcome recorded for each QR validation attempt"""

    SESSION_ISSUED = "session_issued"
    NOT_FOUND = "not_found"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"
    RATE_LIMITED = "rate_limited"


class SenderRole(str, Enum):
    GUEST = "guest"
    STAFF = "staff"
    SYSTEM = "system"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    DIRTY = "dirty"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out_of_order"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class FolioStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class NotificationChannel(str, Enum):
    SMS = "sms"


class NotificationStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"

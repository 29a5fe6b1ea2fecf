# --- File: hotelops/models/service_request.py ---
"""
Service request models.

Guest-initiated service asks, the message thread attached to each request,
and the outbound notification outbox.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from hotelops.core.exceptions import InvalidStatusTransitionError
from hotelops.models.base import BaseModel, TimestampModel, enum_column, utcnow
from hotelops.schemas.enums import (
    NotificationChannel,
    NotificationStatus,
    RequestPriority,
    RequestStatus,
    SenderRole,
)


class ServiceRequest(TimestampModel):
    """
    One guest service request (maintenance, room service, housekeeping, ...).

    Status only moves forward through pending → acknowledged → in_progress →
    completed; cancelled is reachable from any non-terminal state.
    """

    __tablename__ = "service_requests"
    __table_args__ = (
        Index("ix_service_requests_tenant_status", "tenant_id", "status"),
    )

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id = Column(
        String(36),
        ForeignKey("guest_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    qr_code_id = Column(String(36), ForeignKey("qr_codes.id", ondelete="SET NULL"), nullable=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)

    tracking_number = Column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable reference (e.g. SR-20261017-4F2A)",
    )
    request_type = Column(String(50), nullable=False, index=True)
    request_data = Column(JSON, nullable=False, default=dict)
    priority = Column(enum_column(RequestPriority), nullable=False, default=RequestPriority.NORMAL)
    status = Column(
        enum_column(RequestStatus),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )

    assigned_team = Column(String(50), nullable=True)
    assigned_to = Column(String(36), nullable=True)

    guest_name = Column(String(255), nullable=True)
    guest_phone = Column(String(20), nullable=True)
    sms_enabled = Column(Boolean, nullable=False, default=False)

    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    room = relationship("Room", lazy="joined")
    messages = relationship(
        "RequestMessage",
        back_populates="request",
        order_by="RequestMessage.created_at",
        cascade="all, delete-orphan",
    )

    def apply_status(self, new_status: RequestStatus, now: Optional[datetime] = None) -> None:
        """
        Move the request to `new_status`.

        Raises:
            InvalidStatusTransitionError: for backwards moves, repeats, or
                any change after a terminal state.
        """
        current = RequestStatus(self.status)
        if not current.can_transition_to(new_status):
            raise InvalidStatusTransitionError(current.value, new_status.value)

        self.status = new_status
        if new_status is RequestStatus.COMPLETED:
            self.completed_at = now or utcnow()


class RequestMessage(BaseModel):
    """Message on a request thread, from the guest, staff or the system."""

    __tablename__ = "request_messages"

    request_id = Column(
        String(36),
        ForeignKey("service_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id = Column(String(36), nullable=False, index=True)
    sender_role = Column(enum_column(SenderRole), nullable=False)
    sender_id = Column(String(36), nullable=True)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    request = relationship("ServiceRequest", back_populates="messages")


class NotificationOutbox(BaseModel):
    """Queued outbound notification; delivery is handled outside this service."""

    __tablename__ = "notification_outbox"

    tenant_id = Column(String(36), nullable=False, index=True)
    channel = Column(enum_column(NotificationChannel), nullable=False)
    recipient = Column(String(32), nullable=False)
    body = Column(Text, nullable=False)
    status = Column(enum_column(NotificationStatus), nullable=False, default=NotificationStatus.QUEUED)
    reference_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

# --- File: hotelops/models/qr.py ---
"""
QR access models.

QR codes printed in rooms, the guest sessions minted from them, the
append-only scan audit trail, and short links that redirect to the
canonical guest portal URL.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from hotelops.models.base import BaseModel, TimestampModel, as_utc, enum_column, utcnow
from hotelops.schemas.enums import ScanType


class QRCode(TimestampModel):
    """
    A room (or area) QR code.

    Validation requires `is_active` and, when set, `expires_at` in the future.
    """

    __tablename__ = "qr_codes"

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id = Column(
        String(36),
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    qr_token = Column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
        comment="Token embedded in the portal URL",
    )
    label = Column(String(255), nullable=True)
    services = Column(JSON, nullable=False, default=list, comment="Enabled service types")
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    scan_count = Column(Integer, nullable=False, default=0)

    tenant = relationship("Tenant", lazy="joined")
    room = relationship("Room", lazy="joined")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) <= (now or utcnow())


class GuestSession(BaseModel):
    """
    One scanned-QR-to-portal access grant. Never mutated after creation.
    """

    __tablename__ = "guest_sessions"

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    qr_code_id = Column(
        String(36),
        ForeignKey("qr_codes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)
    services = Column(JSON, nullable=False, default=list)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    device_info = Column(JSON, nullable=False, default=dict)
    credential_jti = Column(String(64), nullable=True)

    qr_code = relationship("QRCode", lazy="joined")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return as_utc(self.expires_at) <= (now or utcnow())


class ScanLog(BaseModel):
    """Append-only audit record of a QR validation attempt."""

    __tablename__ = "qr_scan_logs"
    __table_args__ = (
        Index("ix_qr_scan_logs_qr_scanned", "qr_code_id", "scanned_at"),
    )

    qr_code_id = Column(
        String(36),
        ForeignKey("qr_codes.id", ondelete="CASCADE"),
        nullable=True,
        comment="Null when the token matched no QR code",
    )
    qr_token = Column(String(128), nullable=False)
    scan_type = Column(enum_column(ScanType), nullable=False)
    user_agent = Column(Text, nullable=True)
    language = Column(String(35), nullable=True)
    device_metadata = Column(JSON, nullable=False, default=dict)
    scanned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ShortLink(TimestampModel):
    """Short redirect code pointing at a canonical guest portal URL."""

    __tablename__ = "short_links"

    tenant_id = Column(
        String(36),
        nullable=False,
        index=True,
    )
    short_code = Column(String(32), unique=True, nullable=False, index=True)
    target_url = Column(Text, nullable=False)
    click_count = Column(Integer, nullable=False, default=0)
    last_clicked_at = Column(DateTime(timezone=True), nullable=True)

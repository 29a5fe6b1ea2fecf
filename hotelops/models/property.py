# --- File: hotelops/models/property.py ---
"""
Tenant (hotel) and room models.
"""

from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from hotelops.models.base import TimestampModel, enum_column
from hotelops.schemas.enums import RoomStatus


class Tenant(TimestampModel):
    """A hotel using the product. Every other row is scoped to one tenant."""

    __tablename__ = "tenants"

    hotel_name = Column(String(255), nullable=False)
    front_desk_phone = Column(String(32), nullable=True)

    rooms = relationship("Room", back_populates="tenant", lazy="selectin")


class Room(TimestampModel):
    """Physical room. Status drives front-desk and housekeeping boards."""

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("tenant_id", "room_number", name="uq_room_tenant_number"),
    )

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_number = Column(String(20), nullable=False)
    status = Column(
        enum_column(RoomStatus),
        nullable=False,
        default=RoomStatus.AVAILABLE,
        comment="Current room status",
    )

    tenant = relationship("Tenant", back_populates="rooms")

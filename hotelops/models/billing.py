# --- File: hotelops/models/billing.py ---
"""
Reservation and folio models.

A folio aggregates charges and payments for one reservation;
balance = total charges - total payments.
"""

from decimal import Decimal

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from hotelops.models.base import TimestampModel, enum_column
from hotelops.schemas.enums import FolioStatus, ReservationStatus


class Reservation(TimestampModel):
    __tablename__ = "reservations"

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True, index=True)
    guest_name = Column(String(255), nullable=False)
    status = Column(
        enum_column(ReservationStatus),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
        index=True,
    )
    check_in_date = Column(Date, nullable=True)
    check_out_date = Column(Date, nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)

    room = relationship("Room", lazy="joined")
    folio = relationship("Folio", back_populates="reservation", uselist=False)


class Folio(TimestampModel):
    __tablename__ = "folios"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    reservation_id = Column(
        String(36),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = Column(enum_column(FolioStatus), nullable=False, default=FolioStatus.OPEN)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    reservation = relationship("Reservation", back_populates="folio")
    charges = relationship("FolioCharge", back_populates="folio", cascade="all, delete-orphan")
    payments = relationship("FolioPayment", back_populates="folio", cascade="all, delete-orphan")

    @property
    def total_charges(self) -> Decimal:
        return sum((Decimal(c.amount) for c in self.charges), Decimal("0.00"))

    @property
    def total_payments(self) -> Decimal:
        return sum((Decimal(p.amount) for p in self.payments), Decimal("0.00"))

    @property
    def balance(self) -> Decimal:
        return self.total_charges - self.total_payments


class FolioCharge(TimestampModel):
    __tablename__ = "folio_charges"

    tenant_id = Column(String(36), nullable=False, index=True)
    folio_id = Column(String(36), ForeignKey("folios.id", ondelete="CASCADE"), nullable=False, index=True)
    charge_type = Column(String(50), nullable=False)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    reference_id = Column(String(36), nullable=True)
    reference_type = Column(String(50), nullable=True)

    folio = relationship("Folio", back_populates="charges")


class FolioPayment(TimestampModel):
    __tablename__ = "folio_payments"

    tenant_id = Column(String(36), nullable=False, index=True)
    folio_id = Column(String(36), ForeignKey("folios.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(30), nullable=False, default="cash")
    reference = Column(String(100), nullable=True)

    folio = relationship("Folio", back_populates="payments")

# --- File: hotelops/schemas/checkout.py ---
"""
Checkout and folio schemas.

The checkout result keeps the snake_case contract of the atomic checkout
procedure: {success, folio_id, room_id, message, final_balance}.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import Field

from hotelops.schemas.common import BaseSchema, CamelSchema
from hotelops.schemas.enums import FolioStatus

__all__ = [
    "CheckoutRequest",
    "CheckoutResult",
    "FolioSummary",
]


class CheckoutRequest(CamelSchema):
    tenant_id: str = Field(..., min_length=1)
    reservation_id: str = Field(..., min_length=1)


class CheckoutResult(BaseSchema):
    success: bool
    folio_id: Optional[str] = None
    room_id: Optional[str] = None
    message: str
    final_balance: Optional[Decimal] = None


class FolioSummary(BaseSchema):
    folio_id: str
    reservation_id: str
    status: FolioStatus
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal

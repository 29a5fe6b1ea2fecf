# --- File: hotelops/repositories/billing/folio_repository.py ---
"""
Folio Repository: folios, their charges and payments.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelops.models.billing import Folio, FolioCharge, FolioPayment
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import FolioStatus


class FolioRepository(BaseRepository[Folio]):

    def __init__(self, session: Session):
        super().__init__(Folio, session)

    def find_by_reservation(self, reservation_id: str, for_update: bool = False) -> Optional[Folio]:
        query = self.db.query(Folio).filter(Folio.reservation_id == reservation_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_open_by_reservation(self, reservation_id: str) -> Optional[Folio]:
        return (
            self.db.query(Folio)
            .filter(Folio.reservation_id == reservation_id, Folio.status == FolioStatus.OPEN)
            .first()
        )

    def compute_balance(self, folio_id: str) -> Decimal:
        """Balance computed in SQL so it reflects rows written in this transaction."""
        charges = (
            self.db.query(func.coalesce(func.sum(FolioCharge.amount), 0))
            .filter(FolioCharge.folio_id == folio_id)
            .scalar()
        )
        payments = (
            self.db.query(func.coalesce(func.sum(FolioPayment.amount), 0))
            .filter(FolioPayment.folio_id == folio_id)
            .scalar()
        )
        return (Decimal(str(charges)) - Decimal(str(payments))).quantize(Decimal("0.01"))

    def add_charge(
        self,
        folio: Folio,
        charge_type: str,
        description: str,
        amount: Decimal,
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
    ) -> FolioCharge:
        charge = FolioCharge(
            tenant_id=folio.tenant_id,
            folio_id=folio.id,
            charge_type=charge_type,
            description=description[:255],
            amount=amount,
            reference_id=reference_id,
            reference_type=reference_type,
        )
        self.db.add(charge)
        self.db.flush()
        return charge

    def add_payment(
        self,
        folio: Folio,
        amount: Decimal,
        method: str = "cash",
        reference: Optional[str] = None,
    ) -> FolioPayment:
        payment = FolioPayment(
            tenant_id=folio.tenant_id,
            folio_id=folio.id,
            amount=amount,
            method=method,
            reference=reference,
        )
        self.db.add(payment)
        self.db.flush()
        return payment

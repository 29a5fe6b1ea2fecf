# --- File: hotelops/services/checkout/checkout_service.py ---
"""
Atomic guest checkout.

The reservation, its room and its folio change state in one transaction
with row locks held on all three: reservation -> checked_out,
room -> dirty, folio -> closed. A business rejection leaves every row
untouched and is reported as {success: false, message}.
"""

from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.orm import Session

from hotelops.config.settings import settings
from hotelops.core.exceptions import BalanceOutstandingError, CheckoutRejectedError
from hotelops.models.base import utcnow
from hotelops.repositories.billing import FolioRepository, ReservationRepository
from hotelops.repositories.property import RoomRepository
from hotelops.schemas.checkout import CheckoutResult, FolioSummary
from hotelops.schemas.enums import FolioStatus, ReservationStatus, RoomStatus
from hotelops.services.base import BaseService, ServiceResult


class CheckoutService(BaseService):

    def __init__(self, db_session: Session, clock: Callable = utcnow):
        super().__init__(db_session)
        self.reservations = ReservationRepository(db_session)
        self.folios = FolioRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self._clock = clock

    def get_folio_summary(self, tenant_id: str, reservation_id: str) -> ServiceResult[FolioSummary]:
        reservation = self.reservations.find_for_tenant(reservation_id, tenant_id)
        if reservation is None:
            return ServiceResult.not_found("Reservation", reservation_id)
        folio = self.folios.find_by_reservation(reservation.id)
        if folio is None:
            return ServiceResult.not_found("Folio", reservation_id)

        return ServiceResult.success(
            FolioSummary(
                folio_id=folio.id,
                reservation_id=reservation.id,
                status=folio.status,
                total_charges=folio.total_charges.quantize(Decimal("0.01")),
                total_payments=folio.total_payments.quantize(Decimal("0.01")),
                balance=self.folios.compute_balance(folio.id),
            )
        )

    def checkout(
        self,
        tenant_id: str,
        reservation_id: str,
        staff_id: Optional[str] = None,
    ) -> CheckoutResult:
        """
        Run the checkout transition.

        Unexpected database errors propagate after rollback so the caller
        sees a raised error rather than a result.
        """
        tolerance = settings.CHECKOUT_TOLERANCE
        folio_id: Optional[str] = None
        room_id: Optional[str] = None
        balance: Optional[Decimal] = None

        try:
            with self.transaction():
                reservation = self.reservations.find_for_update(reservation_id, tenant_id)
                if reservation is None:
                    raise CheckoutRejectedError("Reservation not found")
                status = ReservationStatus(reservation.status)
                if status is ReservationStatus.CHECKED_OUT:
                    raise CheckoutRejectedError("Reservation is already checked out")
                if status is ReservationStatus.CANCELLED:
                    raise CheckoutRejectedError("Cannot check out a cancelled reservation")

                folio = self.folios.find_by_reservation(reservation.id, for_update=True)
                if folio is None:
                    raise CheckoutRejectedError("No folio found for this reservation")
                if FolioStatus(folio.status) is FolioStatus.CLOSED:
                    raise CheckoutRejectedError("Folio is already closed")
                folio_id = folio.id

                balance = self.folios.compute_balance(folio.id)
                if balance > tolerance:
                    raise BalanceOutstandingError(f"{balance:.2f}", folio.id)
                if balance < -tolerance:
                    self._logger.info(
                        "Checkout with guest credit on folio",
                        extra={"folio_id": folio.id, "balance": str(balance)},
                    )

                room = None
                if reservation.room_id is not None:
                    room = self.rooms.find_for_update(reservation.room_id, tenant_id)
                    if room is None:
                        raise CheckoutRejectedError("Room for this reservation was not found")
                    room_id = room.id

                now = self._clock()
                reservation.status = ReservationStatus.CHECKED_OUT
                reservation.checked_out_at = now
                folio.status = FolioStatus.CLOSED
                folio.closed_at = now
                if room is not None:
                    room.status = RoomStatus.DIRTY

        except (CheckoutRejectedError, BalanceOutstandingError) as e:
            self._logger.info(
                f"Checkout rejected: {e.message}",
                extra={"reservation_id": reservation_id, "tenant_id": tenant_id},
            )
            return CheckoutResult(
                success=False,
                folio_id=folio_id,
                room_id=room_id,
                message=e.message,
                final_balance=balance,
            )

        self._logger.info(
            "Guest checked out",
            extra={
                "reservation_id": reservation_id,
                "folio_id": folio_id,
                "room_id": room_id,
                "staff_id": staff_id,
            },
        )
        return CheckoutResult(
            success=True,
            folio_id=folio_id,
            room_id=room_id,
            message="Guest checked out successfully",
            final_balance=balance,
        )

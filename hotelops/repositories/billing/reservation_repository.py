# --- File: hotelops/repositories/billing/reservation_repository.py ---
"""
Reservation Repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from hotelops.models.billing import Reservation
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import ReservationStatus

IN_HOUSE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)


class ReservationRepository(BaseRepository[Reservation]):

    def __init__(self, session: Session):
        super().__init__(Reservation, session)

    def find_for_update(self, reservation_id: str, tenant_id: str) -> Optional[Reservation]:
        """Row-locked lookup scoped to the tenant."""
        return (
            self.db.query(Reservation)
            .filter(Reservation.id == reservation_id, Reservation.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )

    def find_in_house_for_room(self, tenant_id: str, room_id: str) -> Optional[Reservation]:
        """The confirmed or checked-in reservation currently holding the room."""
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.tenant_id == tenant_id,
                Reservation.room_id == room_id,
                Reservation.status.in_(IN_HOUSE_STATUSES),
            )
            .order_by(Reservation.created_at.desc())
            .first()
        )

# --- File: hotelops/repositories/property/room_repository.py ---
"""
Room Repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from hotelops.models.property import Room
from hotelops.repositories.base.base_repository import BaseRepository


class RoomRepository(BaseRepository[Room]):

    def __init__(self, session: Session):
        super().__init__(Room, session)

    def find_for_update(self, room_id: str, tenant_id: str) -> Optional[Room]:
        return (
            self.db.query(Room)
            .filter(Room.id == room_id, Room.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )

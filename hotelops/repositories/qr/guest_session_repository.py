# --- File: hotelops/repositories/qr/guest_session_repository.py ---
"""
Guest Session Repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from hotelops.models.base import as_utc, utcnow
from hotelops.models.qr import GuestSession
from hotelops.repositories.base.base_repository import BaseRepository


class GuestSessionRepository(BaseRepository[GuestSession]):

    def __init__(self, session: Session):
        super().__init__(GuestSession, session)

    def create_session(
        self,
        tenant_id: str,
        qr_code_id: str,
        room_id: Optional[str],
        services: List[str],
        issued_at: datetime,
        expires_at: datetime,
        device_info: Optional[Dict[str, Any]] = None,
    ) -> GuestSession:
        guest_session = GuestSession(
            tenant_id=tenant_id,
            qr_code_id=qr_code_id,
            room_id=room_id,
            services=list(services),
            issued_at=issued_at,
            expires_at=expires_at,
            device_info=device_info or {},
        )
        return self.create(guest_session)

    def find_active(self, session_id: str, now: Optional[datetime] = None) -> Optional[GuestSession]:
        guest_session = self.find_by_id(session_id)
        if guest_session is None:
            return None
        if as_utc(guest_session.expires_at) <= (now or utcnow()):
            return None
        return guest_session

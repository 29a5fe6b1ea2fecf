# --- File: hotelops/repositories/qr/short_link_repository.py ---
"""
Short Link Repository.
"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from hotelops.models.base import utcnow
from hotelops.models.qr import ShortLink
from hotelops.repositories.base.base_repository import BaseRepository


class ShortLinkRepository(BaseRepository[ShortLink]):

    def __init__(self, session: Session):
        super().__init__(ShortLink, session)

    def find_by_code(self, short_code: str) -> Optional[ShortLink]:
        return self.db.query(ShortLink).filter(ShortLink.short_code == short_code).first()

    def code_exists(self, short_code: str) -> bool:
        return self.exists({"short_code": short_code})

    def record_click(self, short_link_id: str) -> None:
        self.db.execute(
            update(ShortLink)
            .where(ShortLink.id == short_link_id)
            .values(click_count=ShortLink.click_count + 1, last_clicked_at=utcnow())
            .execution_options(synchronize_session=False)
        )

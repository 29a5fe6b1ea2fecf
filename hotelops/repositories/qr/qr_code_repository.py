# --- File: hotelops/repositories/qr/qr_code_repository.py ---
"""
QR Code Repository.
"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from hotelops.models.qr import QRCode
from hotelops.repositories.base.base_repository import BaseRepository


class QRCodeRepository(BaseRepository[QRCode]):

    def __init__(self, session: Session):
        super().__init__(QRCode, session)

    def find_by_token(self, qr_token: str) -> Optional[QRCode]:
        """Exact, case-sensitive token lookup."""
        return self.db.query(QRCode).filter(QRCode.qr_token == qr_token).first()

    def increment_scan_count(self, qr_code_id: str) -> None:
        """Atomic counter bump in SQL, safe under concurrent scans."""
        self.db.execute(
            update(QRCode)
            .where(QRCode.id == qr_code_id)
            .values(scan_count=QRCode.scan_count + 1)
            .execution_options(synchronize_session=False)
        )

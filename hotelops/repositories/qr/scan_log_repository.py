# --- File: hotelops/repositories/qr/scan_log_repository.py ---
"""
Scan Log Repository. Append-only: no update or delete helpers.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hotelops.models.qr import ScanLog
from hotelops.repositories.base.base_repository import BaseRepository
from hotelops.schemas.enums import ScanType


class ScanLogRepository(BaseRepository[ScanLog]):

    def __init__(self, session: Session):
        super().__init__(ScanLog, session)

    def record(
        self,
        qr_token: str,
        scan_type: ScanType,
        qr_code_id: Optional[str] = None,
        device_info: Optional[Dict[str, Any]] = None,
    ) -> ScanLog:
        device_info = dict(device_info or {})
        log = ScanLog(
            qr_code_id=qr_code_id,
            qr_token=qr_token[:128],
            scan_type=scan_type,
            user_agent=device_info.pop("user_agent", None),
            language=device_info.pop("language", None),
            device_metadata=device_info,
        )
        return self.create(log)

# --- File: hotelops/repositories/qr/__init__.py ---
"""
QR access repositories.
"""

from hotelops.repositories.qr.qr_code_repository import QRCodeRepository
from hotelops.repositories.qr.guest_session_repository import GuestSessionRepository
from hotelops.repositories.qr.scan_log_repository import ScanLogRepository
from hotelops.repositories.qr.short_link_repository import ShortLinkRepository

__all__ = [
    "QRCodeRepository",
    "GuestSessionRepository",
    "ScanLogRepository",
    "ShortLinkRepository",
]

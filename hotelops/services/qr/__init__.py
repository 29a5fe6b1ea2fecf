# --- File: hotelops/services/qr/__init__.py ---
"""
QR access services.
"""

from hotelops.services.qr.qr_token_service import QRTokenService
from hotelops.services.qr.short_link_service import ShortLinkService

__all__ = ["QRTokenService", "ShortLinkService"]

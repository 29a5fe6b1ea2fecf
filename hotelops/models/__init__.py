# --- File: hotelops/models/__init__.py ---
"""
ORM models for the hotel operations service.
"""

from hotelops.models.base import BaseModel, TimestampModel, as_utc, utcnow
from hotelops.models.billing import Folio, FolioCharge, FolioPayment, Reservation
from hotelops.models.property import Room, Tenant
from hotelops.models.qr import GuestSession, QRCode, ScanLog, ShortLink
from hotelops.models.service_request import NotificationOutbox, RequestMessage, ServiceRequest

__all__ = [
    "BaseModel",
    "TimestampModel",
    "as_utc",
    "utcnow",
    "Tenant",
    "Room",
    "QRCode",
    "GuestSession",
    "ScanLog",
    "ShortLink",
    "ServiceRequest",
    "RequestMessage",
    "NotificationOutbox",
    "Reservation",
    "Folio",
    "FolioCharge",
    "FolioPayment",
]

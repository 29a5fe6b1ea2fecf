# --- File: hotelops/repositories/billing/__init__.py ---
"""
Reservation and folio repositories.
"""

from hotelops.repositories.billing.reservation_repository import ReservationRepository
from hotelops.repositories.billing.folio_repository import FolioRepository

__all__ = ["ReservationRepository", "FolioRepository"]

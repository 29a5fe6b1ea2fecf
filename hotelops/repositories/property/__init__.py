# --- File: hotelops/repositories/property/__init__.py ---
"""
Tenant and room repositories.
"""

from hotelops.repositories.property.room_repository import RoomRepository

__all__ = ["RoomRepository"]

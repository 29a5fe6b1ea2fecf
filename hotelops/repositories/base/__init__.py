# --- File: hotelops/repositories/base/__init__.py ---
"""
Base repositories package.
"""

from hotelops.repositories.base.base_repository import BaseRepository

__all__ = ["BaseRepository"]

# --- File: hotelops/config/__init__.py ---
"""
Configuration package for the hotel operations service.

Holds the server settings singleton and the client runtime settings.
"""

from hotelops.config.settings import (
    ClientSettings,
    Settings,
    get_client_settings,
    get_settings,
    settings,
)

__all__ = ['settings', 'Settings', 'get_settings', 'ClientSettings', 'get_client_settings']

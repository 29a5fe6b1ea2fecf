# --- File: hotelops/__init__.py ---
"""
hotelops: guest QR service pipeline and atomic checkout for multi-tenant hotels.
"""

__version__ = "1.0.0"

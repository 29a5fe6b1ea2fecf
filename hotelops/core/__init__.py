# --- File: hotelops/core/__init__.py ---
"""
Core module for the hotel operations service.
Contains exceptions, logging, security, rate limiting and the change feed.
"""

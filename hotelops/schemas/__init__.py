# --- File: hotelops/schemas/__init__.py ---
"""
Pydantic schemas for API requests and responses.
"""

# --- File: hotelops/services/__init__.py ---
"""
Business services.
"""

# --- File: hotelops/repositories/__init__.py ---
"""
Repository layer: database access for every domain model.
"""

# --- File: hotelops/db/base.py ---
"""SQLAlchemy Base class for all models."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def import_models():
    """Import all models to register them with SQLAlchemy."""
    from hotelops import models  # noqa: F401

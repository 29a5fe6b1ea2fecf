# --- File: hotelops/db/init_db.py ---
"""Database initialization utilities."""
from sqlalchemy.engine import Engine

from hotelops.core.logging import get_logger
from hotelops.db.base import Base, import_models
from hotelops.db.session import engine as default_engine

logger = get_logger(__name__)


def init_db(engine: Engine = default_engine) -> None:
    """Create missing tables; outside production only, where migrations own the schema."""
    try:
        import_models()
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(engine: Engine = default_engine) -> None:
    Base.metadata.drop_all(bind=engine)
    logger.info("Database tables dropped")

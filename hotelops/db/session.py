# --- File: hotelops/db/session.py ---
"""Database session management."""
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from hotelops.config.settings import settings


def build_engine(database_url: str, echo: bool = False):
    """Create an engine, applying pool settings only where the dialect pools connections."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_POOL_OVERFLOW,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """One session per request; handlers commit through their service's transaction()."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# --- File: hotelops/models/base.py ---
"""
Base model configuration for SQLAlchemy ORM.

Provides abstract base classes with common fields (UUID primary key,
timestamps, tenant scope) and utility methods for all database models.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, String
from sqlalchemy.orm import declared_attr

from hotelops.db.base import Base


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime read back from the database to aware UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def enum_column(enum_cls: Type, **kwargs) -> Enum:
    """String-backed enum column storing member values rather than names."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
        validate_strings=True,
        **kwargs,
    )


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.
    """

    __abstract__ = True

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Primary key (UUID)",
    )

    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower() + 's'

    def to_dict(self, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: List of field names to exclude

        Returns:
            Dictionary representation of the model
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = as_utc(value).isoformat()
            elif isinstance(value, Decimal):
                result[column.name] = str(value)
            elif hasattr(value, "value") and isinstance(getattr(value, "value"), str):
                result[column.name] = value.value
            else:
                result[column.name] = value

        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class TimestampModel(BaseModel):
    """Abstract model adding created/updated timestamps"""

    __abstract__ = True

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Record creation timestamp",
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        comment="Last update timestamp",
    )

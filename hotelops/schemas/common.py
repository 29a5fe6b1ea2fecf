# --- File: hotelops/schemas/common.py ---
"""
Base schema classes with common configurations.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = [
    "BaseSchema",
    "CamelSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas should inherit from this to ensure
    consistent behaviour.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
    )


class CamelSchema(BaseSchema):
    """
    Schema exchanged with the guest portal, which speaks camelCase.

    Python code uses snake_case attribute names; JSON uses the camelCase
    aliases (FastAPI serializes response models by alias).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )

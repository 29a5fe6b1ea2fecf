# --- File: hotelops/config/settings.py ---
"""
Environment configuration.

`Settings` configures the API server; `ClientSettings` configures the guest
portal and front-desk client runtime (`HOTELOPS_CLIENT_` prefix).
"""

import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import List, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @staticmethod
    def get_secret_key_default() -> str:
        """Generate a default secret key if not provided"""
        import secrets
        import string
        alphabet = string.ascii_letters + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(48))

    # Application configuration
    APP_NAME: str = Field(default="Hotel Operations Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Public URL used when building short links
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Database configuration
    DATABASE_URL: str = "sqlite:///./hotelops.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10

    # Security configuration
    JWT_SECRET_KEY: str = Field(default_factory=lambda: Settings.get_secret_key_default())
    JWT_ALGORITHM: str = "HS256"
    STAFF_TOKEN_EXPIRE_MINUTES: int = 480

    # Guest sessions
    GUEST_SESSION_TTL_MINUTES: int = 240
    QR_TOKEN_MIN_LENGTH: int = 6
    QR_TOKEN_MAX_LENGTH: int = 128

    # Rate limiting
    RATE_LIMIT_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    QR_RATE_LIMIT: int = 30
    QR_RATE_LIMIT_PERIOD: int = 60

    # Short links
    SHORT_CODE_LENGTH: int = 8
    SHORTEN_RATE_LIMIT: int = 60
    SHORTEN_RATE_LIMIT_PERIOD: int = 60

    # Billing
    CHECKOUT_TOLERANCE: Decimal = Decimal("0.01")

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string to list"""
        if isinstance(v, str):
            # Handle JSON string format from .env
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator('RATE_LIMIT_BACKEND')
    @classmethod
    def validate_rate_limit_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("RATE_LIMIT_BACKEND must be 'memory' or 'redis'")
        return v

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"


class ClientSettings(BaseSettings):
    """
    Settings for the guest portal / front-desk client runtime.

    All waits here are user-facing bounds and are applied on top of the
    HTTP transport timeout, never instead of it.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOTELOPS_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    BASE_URL: str = "http://localhost:8000"
    TRANSPORT_TIMEOUT: float = 30.0

    SESSION_VALIDATION_TIMEOUT: float = 10.0
    REQUEST_SUBMISSION_TIMEOUT: float = 10.0
    REDIRECT_RESOLUTION_TIMEOUT: float = 10.0
    HEALTH_CHECK_TIMEOUT: float = 5.0

    # Poll cadences, in seconds. The list interval is the fallback behind
    # the change feed and must stay longer than the single-request interval.
    ACTIVE_REQUEST_POLL_INTERVAL: float = 5.0
    REQUEST_LIST_POLL_INTERVAL: float = 30.0

    BALANCE_TOLERANCE: float = 0.01

    # Offline request queue: retries per queued request, backoff between
    # sync rounds, and how often connectivity is checked while requests wait.
    OFFLINE_SYNC_MAX_RETRIES: int = 3
    OFFLINE_SYNC_BASE_DELAY: float = 1.0
    OFFLINE_SYNC_MAX_DELAY: float = 30.0
    OFFLINE_SYNC_INTERVAL: float = 30.0

    @field_validator('REQUEST_LIST_POLL_INTERVAL')
    @classmethod
    def validate_list_interval(cls, v: float, info) -> float:
        active = info.data.get('ACTIVE_REQUEST_POLL_INTERVAL', 5.0)
        if v <= active:
            raise ValueError(
                "REQUEST_LIST_POLL_INTERVAL must be longer than ACTIVE_REQUEST_POLL_INTERVAL"
            )
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


@lru_cache()
def get_client_settings() -> ClientSettings:
    return ClientSettings()


settings = get_settings()

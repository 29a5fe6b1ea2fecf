# --- File: hotelops/core/security.py ---
"""
Security and Authentication Module

JWT credentials for guest sessions and staff bearer tokens.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

import jwt

from hotelops.config.settings import settings
from .exceptions import AuthenticationError, SessionExpiredError
from .logging import get_logger

logger = get_logger(__name__)


class TokenType(str, Enum):
    """Token type enumeration"""
    GUEST_SESSION = "guest_session"
    STAFF_ACCESS = "staff_access"


class StaffRole(str, Enum):
    FRONT_DESK = "front_desk"
    MANAGER = "manager"
    HOUSEKEEPING = "housekeeping"
    MAINTENANCE = "maintenance"
    OWNER = "owner"


@dataclass(frozen=True)
class GuestPrincipal:
    """Claims carried by a verified guest session credential"""
    session_id: str
    tenant_id: str
    qr_code_id: str
    expires_at: datetime


@dataclass(frozen=True)
class StaffPrincipal:
    """Claims carried by a verified staff bearer token"""
    user_id: str
    tenant_id: str
    role: StaffRole


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TokenManager:
    """JWT token management utilities"""

    @staticmethod
    def encode(data: Dict[str, Any], token_type: TokenType, expires_at: datetime) -> str:
        to_encode = data.copy()
        to_encode.update({
            "exp": int(_as_utc(expires_at).timestamp()),
            "iat": int(datetime.now(timezone.utc).timestamp()),
            "type": token_type.value,
            "jti": secrets.token_urlsafe(16),
        })
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode(token: str, expected_type: TokenType) -> Dict[str, Any]:
        """
        Verify and decode a JWT.

        Raises:
            jwt.ExpiredSignatureError: If the token has expired
            jwt.InvalidTokenError: If the signature, shape or type is wrong
        """
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        if payload.get("type") != expected_type.value:
            raise jwt.InvalidTokenError("Invalid token type")
        return payload


def create_guest_credential(
    session_id: str,
    tenant_id: str,
    qr_code_id: str,
    expires_at: datetime,
) -> str:
    """
    Mint the signed credential for a guest session.

    The `exp` claim is the session's `expires_at` in whole seconds, so
    sessions should be stored with microseconds already truncated.
    """
    return TokenManager.encode(
        {"sid": session_id, "tid": tenant_id, "qid": qr_code_id},
        TokenType.GUEST_SESSION,
        expires_at,
    )


def verify_guest_credential(token: Optional[str]) -> GuestPrincipal:
    """Re-validate a guest credential; any failure means the guest must rescan."""
    if not token:
        raise SessionExpiredError()
    try:
        payload = TokenManager.decode(token, TokenType.GUEST_SESSION)
    except jwt.ExpiredSignatureError:
        logger.info("Guest credential expired")
        raise SessionExpiredError()
    except jwt.InvalidTokenError as e:
        logger.warning(f"Guest credential rejected: {e}")
        raise SessionExpiredError()

    return GuestPrincipal(
        session_id=payload["sid"],
        tenant_id=payload["tid"],
        qr_code_id=payload["qid"],
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def create_staff_token(
    user_id: str,
    tenant_id: str,
    role: StaffRole = StaffRole.FRONT_DESK,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expires_at = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.STAFF_TOKEN_EXPIRE_MINUTES)
    )
    return TokenManager.encode(
        {"sub": user_id, "tid": tenant_id, "role": role.value},
        TokenType.STAFF_ACCESS,
        expires_at,
    )


def verify_staff_token(token: Optional[str]) -> StaffPrincipal:
    if not token:
        raise AuthenticationError()
    try:
        payload = TokenManager.decode(token, TokenType.STAFF_ACCESS)
        return StaffPrincipal(
            user_id=payload["sub"],
            tenant_id=payload["tid"],
            role=StaffRole(payload["role"]),
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Your staff session has expired. Please sign in again.")
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.warning(f"Staff token rejected: {e}")
        raise AuthenticationError("Invalid or expired authentication token")


__all__ = [
    "TokenType",
    "StaffRole",
    "GuestPrincipal",
    "StaffPrincipal",
    "TokenManager",
    "create_guest_credential",
    "verify_guest_credential",
    "create_staff_token",
    "verify_staff_token",
]

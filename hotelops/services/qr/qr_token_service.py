# --- File: hotelops/services/qr/qr_token_service.py ---
"""
QR token validation and guest session issuance.

Every validation attempt that reaches a lookup leaves exactly one scan log
row behind, whatever the outcome, so abuse can be monitored per QR code.
"""

import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from hotelops.config.settings import settings
from hotelops.core.exceptions import (
    InvalidTokenFormatError,
    RateLimitExceededError,
    TokenDeactivatedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from hotelops.core.rate_limiting import SlidingWindowLimiter, get_rate_limiter, qr_rate_limit_key
from hotelops.core.security import TokenManager, TokenType, create_guest_credential
from hotelops.models.base import as_utc, utcnow
from hotelops.models.qr import QRCode
from hotelops.repositories.qr import GuestSessionRepository, QRCodeRepository, ScanLogRepository
from hotelops.schemas.enums import ScanType
from hotelops.schemas.session import SessionInfo, SessionValidateResponse
from hotelops.services.base import BaseService, ServiceResult

_TOKEN_CHARS = re.compile(r"[A-Za-z0-9-]+")


class QRTokenService(BaseService):
    """
    Exchanges a canonical QR token for a guest session and credential.
    """

    def __init__(
        self,
        db_session: Session,
        rate_limiter: Optional[SlidingWindowLimiter] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(db_session)
        self.qr_codes = QRCodeRepository(db_session)
        self.sessions = GuestSessionRepository(db_session)
        self.scan_logs = ScanLogRepository(db_session)
        self.rate_limiter = rate_limiter or get_rate_limiter()
        self._clock = clock

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate_token(
        self,
        qr_token: str,
        device_info: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult[SessionValidateResponse]:
        """
        Validate `qr_token` and issue a guest session.

        Failure results carry the guest-facing message for not-found,
        deactivated, expired and rate-limited codes.
        """
        token = (qr_token or "").strip()
        device_info = device_info or {}
        try:
            self._check_format(token)

            qr_code = self.qr_codes.find_by_token(token)
            if qr_code is None:
                self._reject(token, ScanType.NOT_FOUND, None, device_info)
                raise TokenNotFoundError()

            limit = self.rate_limiter.check_limit(
                qr_rate_limit_key(qr_code.id),
                settings.QR_RATE_LIMIT,
                settings.QR_RATE_LIMIT_PERIOD,
            )
            if not limit.allowed:
                self._reject(token, ScanType.RATE_LIMITED, qr_code.id, device_info)
                raise RateLimitExceededError(retry_after=limit.retry_after)

            now = self._clock()
            if not qr_code.is_active:
                self._reject(token, ScanType.DEACTIVATED, qr_code.id, device_info)
                raise TokenDeactivatedError()
            if qr_code.is_expired(now):
                self._reject(token, ScanType.EXPIRED, qr_code.id, device_info)
                raise TokenExpiredError()

            return ServiceResult.success(self._issue_session(qr_code, token, device_info, now))
        except Exception as e:
            return self._handle_exception(e, "validate QR token", entity_ref=token[:16])

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_format(self, token: str) -> None:
        if not (settings.QR_TOKEN_MIN_LENGTH <= len(token) <= settings.QR_TOKEN_MAX_LENGTH):
            raise InvalidTokenFormatError()
        if not _TOKEN_CHARS.fullmatch(token):
            raise InvalidTokenFormatError()

    def _session_expiry(self, qr_code: QRCode, now: datetime) -> datetime:
        # Whole seconds, so the credential's exp claim matches the row exactly
        expires_at = (now + timedelta(minutes=settings.GUEST_SESSION_TTL_MINUTES)).replace(microsecond=0)
        if qr_code.expires_at is not None:
            expires_at = min(expires_at, as_utc(qr_code.expires_at).replace(microsecond=0))
        return expires_at

    def _issue_session(
        self,
        qr_code: QRCode,
        token: str,
        device_info: Dict[str, Any],
        now: datetime,
    ) -> SessionValidateResponse:
        with self.transaction():
            expires_at = self._session_expiry(qr_code, now)
            guest_session = self.sessions.create_session(
                tenant_id=qr_code.tenant_id,
                qr_code_id=qr_code.id,
                room_id=qr_code.room_id,
                services=qr_code.services or [],
                issued_at=now,
                expires_at=expires_at,
                device_info=device_info,
            )
            credential = create_guest_credential(
                session_id=guest_session.id,
                tenant_id=qr_code.tenant_id,
                qr_code_id=qr_code.id,
                expires_at=expires_at,
            )
            guest_session.credential_jti = TokenManager.decode(credential, TokenType.GUEST_SESSION)["jti"]
            self.scan_logs.record(token, ScanType.SESSION_ISSUED, qr_code.id, device_info)
            self.qr_codes.increment_scan_count(qr_code.id)

        self._logger.info(
            "Guest session issued",
            extra={
                "session_id": guest_session.id,
                "tenant_id": qr_code.tenant_id,
                "qr_code_id": qr_code.id,
            },
        )
        return SessionValidateResponse(
            success=True,
            session=SessionInfo(
                session_id=guest_session.id,
                tenant_id=qr_code.tenant_id,
                qr_code_id=qr_code.id,
                hotel_name=qr_code.tenant.hotel_name if qr_code.tenant else "",
                room_number=qr_code.room.room_number if qr_code.room else None,
                services=list(qr_code.services or []),
                expires_at=expires_at,
            ),
            token=credential,
        )

    def _reject(
        self,
        token: str,
        scan_type: ScanType,
        qr_code_id: Optional[str],
        device_info: Dict[str, Any],
    ) -> None:
        """Persist the scan log for a refused attempt before the error is raised."""
        with self.transaction():
            self.scan_logs.record(token, scan_type, qr_code_id, device_info)
        self._logger.warning(
            f"QR validation refused: {scan_type.value}",
            extra={"qr_code_id": qr_code_id, "scan_type": scan_type.value},
        )

# --- File: hotelops/client/errors.py ---
"""
Client-side error taxonomy.

Every error carries the human-readable message to show the guest or staff
member. Server error envelopes are mapped onto these classes by their
`error.code`; the server's message is kept verbatim.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Type


class PortalError(Exception):
    """Base class for every error raised by the client runtime."""

    default_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidTokenFormat(PortalError):
    default_message = "That code doesn't look right. Please check it and try again."


class RedirectFailed(PortalError):
    default_message = "We couldn't open that link. Please scan the QR code in your room instead."


class TokenNotFound(PortalError):
    default_message = "Invalid QR code. Please check the code and try again."


class TokenDeactivated(PortalError):
    default_message = "This QR code is no longer valid. Please contact the front desk."


class TokenExpired(PortalError):
    default_message = "This QR code has expired. Please call the front desk for a new one."


class RateLimited(PortalError):
    default_message = "Too many requests. Please wait a moment and try again."

    @property
    def retry_after(self) -> Optional[int]:
        return self.details.get("retry_after")


class SessionTimeout(PortalError):
    default_message = "The request timed out. Check your connection and tap to try again."


class SessionExpired(PortalError):
    default_message = "Your session has expired. Please scan the QR code in your room again."


class ValidationFailed(PortalError):
    default_message = "Some required information is missing or invalid"

    @property
    def field_errors(self) -> Dict[str, Any]:
        return self.details.get("field_errors", {})


class SubmissionTimeout(PortalError):
    default_message = "Sending your request is taking too long. Please try again."


class SubmissionFailed(PortalError):
    default_message = "We couldn't send your request. Please try again or call the front desk."


class BalanceOutstanding(PortalError):
    """Raised by the client-side balance gate before any checkout call."""

    def __init__(self, balance: Decimal, folio_id: Optional[str] = None):
        self.balance = balance
        self.folio_id = folio_id
        super().__init__(
            f"Outstanding balance of {balance:.2f} must be settled before checkout",
            code="BALANCE_OUTSTANDING",
            details={"balance": f"{balance:.2f}", "folio_id": folio_id},
        )


class CheckoutRejected(PortalError):
    """The checkout procedure answered success=false; message is the server's reason."""


class TransportFailure(PortalError):
    """Network failure, unexpected status or any other thrown error."""

    default_message = "We couldn't reach the hotel system. Please check your connection."


_ERRORS_BY_CODE: Dict[str, Type[PortalError]] = {
    "INVALID_TOKEN_FORMAT": InvalidTokenFormat,
    "TOKEN_NOT_FOUND": TokenNotFound,
    "TOKEN_DEACTIVATED": TokenDeactivated,
    "TOKEN_EXPIRED": TokenExpired,
    "RATE_LIMIT_EXCEEDED": RateLimited,
    "SESSION_EXPIRED": SessionExpired,
    "VALIDATION_ERROR": ValidationFailed,
    "SUBMISSION_FAILED": SubmissionFailed,
    "SHORT_LINK_NOT_FOUND": RedirectFailed,
    "CHECKOUT_REJECTED": CheckoutRejected,
}


def error_from_envelope(status_code: int, body: Any) -> PortalError:
    """
    Build the client error for a server error envelope
    `{"error": {"message", "code", "details", "type"}}`.

    Unknown codes and malformed bodies become TransportFailure.
    """
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return TransportFailure(f"Unexpected response from server (HTTP {status_code})", status_code=status_code)

    code = error.get("code")
    details = error.get("details") or {}
    if code == "BALANCE_OUTSTANDING" and "balance" in details:
        return BalanceOutstanding(Decimal(str(details["balance"])), details.get("folio_id"))

    error_cls = _ERRORS_BY_CODE.get(code, TransportFailure)
    return error_cls(
        error.get("message"),
        code=code,
        status_code=status_code,
        details=details,
    )


__all__ = [
    "PortalError",
    "InvalidTokenFormat",
    "RedirectFailed",
    "TokenNotFound",
    "TokenDeactivated",
    "TokenExpired",
    "RateLimited",
    "SessionTimeout",
    "SessionExpired",
    "ValidationFailed",
    "SubmissionTimeout",
    "SubmissionFailed",
    "BalanceOutstanding",
    "CheckoutRejected",
    "TransportFailure",
    "error_from_envelope",
]

# --- File: hotelops/core/exceptions.py ---
"""
Application exceptions.

Each carries the human-readable message shown to the guest or staff member
as-is, a stable `ErrorCode` the client maps on, and the HTTP status the
error envelope is rendered with.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # QR token / guest session
    INVALID_TOKEN_FORMAT = "INVALID_TOKEN_FORMAT"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_DEACTIVATED = "TOKEN_DEACTIVATED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Service requests
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"

    # Short links
    SHORT_LINK_NOT_FOUND = "SHORT_LINK_NOT_FOUND"

    # Checkout / billing
    BALANCE_OUTSTANDING = "BALANCE_OUTSTANDING"
    CHECKOUT_REJECTED = "CHECKOUT_REJECTED"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """Rendered as `{"error": {message, code, details, type}}`."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """422 with per-field messages under details.field_errors."""

    def __init__(
        self,
        message: str = "Some required information is missing or invalid",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class ResourceNotFoundError(BaseAppException):
    """Missing, or belonging to another tenant; both look the same to the caller."""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        super().__init__(
            f"{resource_type} not found",
            ErrorCode.RESOURCE_NOT_FOUND,
            {"resource_type": resource_type, "resource_id": resource_id},
            404,
        )


class AuthenticationError(BaseAppException):
    """Exception raised when a bearer token is missing or invalid"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, status_code=401)


class AuthorizationError(BaseAppException):
    """Exception raised when the caller may not act on a resource"""

    def __init__(self, message: str = "You do not have access to this resource"):
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, status_code=403)


class DatabaseError(BaseAppException):
    """Exception raised for database operation errors"""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


# ========================================
# QR Token & Guest Session Exceptions
# ========================================

class InvalidTokenFormatError(BaseAppException):
    """Raised when a scanned or typed code cannot be a QR token"""

    def __init__(self, message: str = "That code doesn't look right. Please check it and try again."):
        super().__init__(message, ErrorCode.INVALID_TOKEN_FORMAT, status_code=400)


class TokenNotFoundError(BaseAppException):
    """Raised when no QR code matches the token"""

    def __init__(self, message: str = "Invalid QR code. Please check the code and try again."):
        super().__init__(message, ErrorCode.TOKEN_NOT_FOUND, status_code=404)


class TokenDeactivatedError(BaseAppException):
    """Raised when the QR code has been switched off by the hotel"""

    def __init__(
        self,
        message: str = "This QR code is no longer valid. Please contact the front desk."
    ):
        super().__init__(message, ErrorCode.TOKEN_DEACTIVATED, status_code=410)


class TokenExpiredError(BaseAppException):
    """Raised when the QR code is past its expiry date"""

    def __init__(
        self,
        message: str = "This QR code has expired. Please call the front desk for a new one."
    ):
        super().__init__(message, ErrorCode.TOKEN_EXPIRED, status_code=410)


class SessionExpiredError(BaseAppException):
    """Raised when a guest session credential is missing, invalid or expired"""

    def __init__(
        self,
        message: str = "Your session has expired. Please scan the QR code in your room again."
    ):
        super().__init__(message, ErrorCode.SESSION_EXPIRED, status_code=401)


class RateLimitExceededError(BaseAppException):
    """Raised when a QR code is validated too often in the current window"""

    def __init__(
        self,
        message: str = "Too many requests. Please wait a moment and try again.",
        retry_after: Optional[int] = None
    ):
        details = {"retry_after": retry_after} if retry_after is not None else {}
        super().__init__(message, ErrorCode.RATE_LIMIT_EXCEEDED, details, 429)


# ========================================
# Service Request Exceptions
# ========================================

class InvalidStatusTransitionError(BaseAppException):
    """Raised when a status update would move a request backwards"""

    def __init__(self, current: str, requested: str):
        message = f"Cannot change request status from '{current}' to '{requested}'"
        details = {"current_status": current, "requested_status": requested}
        super().__init__(message, ErrorCode.INVALID_STATUS_TRANSITION, details, 409)


class SubmissionFailedError(BaseAppException):
    """Raised when a service request could not be stored"""

    def __init__(
        self,
        message: str = "We couldn't send your request. Please try again or call the front desk."
    ):
        super().__init__(message, ErrorCode.SUBMISSION_FAILED, status_code=500)


class ShortLinkNotFoundError(BaseAppException):
    """Raised when a short code does not resolve"""

    def __init__(self, short_code: str):
        super().__init__(
            f"Short link not found: {short_code}",
            ErrorCode.SHORT_LINK_NOT_FOUND,
            {"short_code": short_code},
            404,
        )


# ========================================
# Checkout Exceptions
# ========================================

class BalanceOutstandingError(BaseAppException):
    """Raised when a folio still carries a positive balance at checkout"""

    def __init__(self, balance: str, folio_id: Optional[str] = None):
        message = f"Outstanding balance of {balance} must be settled before checkout"
        details = {"balance": balance, "folio_id": folio_id}
        super().__init__(message, ErrorCode.BALANCE_OUTSTANDING, details, 409)


class CheckoutRejectedError(BaseAppException):
    """Raised when the checkout procedure refuses a business transition"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CHECKOUT_REJECTED, status_code=409)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "ResourceNotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "DatabaseError",
    "InvalidTokenFormatError",
    "TokenNotFoundError",
    "TokenDeactivatedError",
    "TokenExpiredError",
    "SessionExpiredError",
    "RateLimitExceededError",
    "InvalidStatusTransitionError",
    "SubmissionFailedError",
    "ShortLinkNotFoundError",
    "BalanceOutstandingError",
    "CheckoutRejectedError",
]

# --- File: hotelops/services/base/service_result.py ---
"""
Outcome type returned by services to the route layer.

Route handlers call `unwrap()`: the data on success, otherwise the carried
application error is raised and rendered as the standard error envelope.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from hotelops.core.exceptions import BaseAppException, ErrorCode


@dataclass
class ServiceError:
    """Failure detail that can be re-raised as an application exception."""

    code: ErrorCode
    message: str
    status_code: int = 400
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exception: BaseAppException) -> "ServiceError":
        return cls(
            code=exception.error_code,
            message=exception.message,
            status_code=exception.status_code,
            details=dict(exception.details),
        )

    def to_exception(self) -> BaseAppException:
        return BaseAppException(
            message=self.message,
            error_code=self.code,
            details=self.details,
            status_code=self.status_code,
        )


T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    is_success: bool
    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        return cls(is_success=True, data=data)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[T]":
        return cls(is_success=False, error=error)

    @classmethod
    def from_app_exception(cls, exception: BaseAppException) -> "ServiceResult[T]":
        return cls.failure(ServiceError.from_exception(exception))

    @classmethod
    def not_found(cls, resource_type: str, resource_id: Optional[str] = None) -> "ServiceResult[T]":
        """Tenant-scoped lookups answer not-found for other tenants' rows too."""
        return cls.failure(
            ServiceError(
                code=ErrorCode.RESOURCE_NOT_FOUND,
                message=f"{resource_type} not found",
                status_code=404,
                details={"resource_type": resource_type, "resource_id": resource_id},
            )
        )

    @classmethod
    def unauthorized(cls, action: str, scope: str) -> "ServiceResult[T]":
        return cls.failure(
            ServiceError(
                code=ErrorCode.AUTHORIZATION_FAILED,
                message=f"Not allowed to {action} outside this {scope}",
                status_code=403,
                details={"action": action, "scope": scope},
            )
        )

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def unwrap(self) -> T:
        if self.is_success:
            return self.data
        if self.error is None:
            raise BaseAppException("Unknown error")
        raise self.error.to_exception()

    def __bool__(self) -> bool:
        return self.is_success


__all__ = ["ServiceError", "ServiceResult"]

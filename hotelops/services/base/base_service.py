# --- File: hotelops/services/base/base_service.py ---
"""
Base class for services working on one SQLAlchemy session.
"""

from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotelops.core.exceptions import BaseAppException, ErrorCode
from hotelops.core.logging import get_logger
from hotelops.services.base.service_result import ServiceError, ServiceResult


class BaseService:

    def __init__(self, db_session: Session):
        self.db: Session = db_session
        self._logger = get_logger(f"hotelops.services.{self.__class__.__name__}")

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        """
        Turn an exception raised inside an operation into a failed result.

        Application errors keep their code, message and status and are
        logged at info; anything else is logged with a traceback and
        reported as a 500 without leaking internals.
        """
        ref = str(entity_ref) if entity_ref is not None else None

        if isinstance(exception, BaseAppException):
            self._logger.info(
                f"{operation} rejected: {exception.message}",
                extra={"operation": operation, "entity_ref": ref, "error_code": exception.error_code.value},
            )
            return ServiceResult.from_app_exception(exception)

        self._logger.error(
            f"{operation} failed: {exception}",
            exc_info=True,
            extra={"operation": operation, "entity_ref": ref, "exception_type": type(exception).__name__},
        )
        code = ErrorCode.DATABASE_ERROR if isinstance(exception, SQLAlchemyError) else ErrorCode.INTERNAL_ERROR
        return ServiceResult.failure(
            ServiceError(
                code=code,
                message=f"Failed to {operation}",
                status_code=500,
                details={"entity_ref": ref},
            )
        )

    @contextmanager
    def transaction(self):
        """
        Commit on clean exit, roll back and re-raise on any error.

            with self.transaction():
                self.requests.create(...)
        """
        try:
            yield self.db
            self.db.commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction rolled back: {e!r}")
            raise

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            # Keep the original error as the one that propagates
            self._logger.warning(f"Rollback failed: {e}")

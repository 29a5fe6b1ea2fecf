# --- File: hotelops/core/middleware.py ---
"""
Request middleware and exception handler registration.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from hotelops.core.constants import HEADER_REQUEST_ID
from hotelops.core.exceptions import BaseAppException, DatabaseError, ErrorCode
from hotelops.core.logging import get_logger, request_id as request_id_var

logger = get_logger(__name__)

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request id (taken from X-Request-ID or generated), bound to the
    logging context for the duration of the request and echoed back.
    Logs one completion line with the elapsed time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed = time.perf_counter() - started
            logger.info(
                "Request completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round(elapsed * 1000, 2),
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers[HEADER_REQUEST_ID] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def register_middlewares(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every application error as the standard error envelope."""

    @app.exception_handler(BaseAppException)
    async def handle_app_exception(request: Request, exc: BaseAppException) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Application exception: {exc.error_code.value} - {exc.message}",
            extra={
                "request_id": get_request_id(request),
                "path": request.url.path,
                "status_code": exc.status_code,
            },
        )
        headers = None
        retry_after = exc.details.get("retry_after") if exc.details else None
        if retry_after is not None:
            headers = {"Retry-After": str(retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        field_errors = {}
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            field_errors.setdefault(location or "body", []).append(error.get("msg", "invalid"))
        body = {
            "error": {
                "message": "Some required information is missing or invalid",
                "code": ErrorCode.VALIDATION_ERROR.value,
                "details": {"field_errors": field_errors},
                "type": "ValidationError",
            }
        }
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"Database error: {exc}", exc_info=True, extra={"path": request.url.path})
        error = DatabaseError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


__all__ = [
    "RequestContextMiddleware",
    "register_middlewares",
    "register_exception_handlers",
    "get_request_id",
]

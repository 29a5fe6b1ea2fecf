# --- File: hotelops/core/logging.py ---
"""
Logging setup for the API and the client runtime.

Records go through stdlib logging and are rendered either as JSON lines
(python-json-logger) or as structlog key/value text, selected by
LOG_FORMAT. Both renderers add the current request and tenant ids and mask
credential-like fields: guest JWTs and staff bearer tokens must never reach
a log line.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from hotelops.config.settings import settings

request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
tenant_id: ContextVar[Optional[str]] = ContextVar('tenant_id', default=None)

REDACTED = '[REDACTED]'
SENSITIVE_KEYS = ('token', 'secret', 'credential', 'jwt', 'authorization', 'password')

# Third-party loggers that are too chatty at the root level
_QUIET_LOGGERS = {
    'uvicorn.access': logging.WARNING,
    'redis': logging.WARNING,
    'httpx': logging.WARNING,
    'httpcore': logging.WARNING,
}


def redact(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive values in place, descending into nested dicts."""
    for key, value in fields.items():
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            fields[key] = REDACTED
        elif isinstance(value, dict):
            redact(value)
    return fields


def add_request_context(logger, method_name, event_dict):
    for key, var in (('request_id', request_id), ('tenant_id', tenant_id)):
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    event_dict['service'] = 'hotelops'
    event_dict['environment'] = settings.ENVIRONMENT
    return event_dict


def redact_processor(logger, method_name, event_dict):
    return redact(event_dict)


_PRE_CHAIN = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt='iso', utc=True),
    add_request_context,
    redact_processor,
]


class HotelJsonFormatter(JsonFormatter):
    """JSON line per record with the same context and masking as the text path."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['line'] = record.lineno
        add_request_context(None, record.levelname, log_record)
        redact(log_record)


def _text_formatter() -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *_PRE_CHAIN],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.KeyValueRenderer(key_order=['timestamp', 'level', 'logger', 'event']),
        ],
    )


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == 'json':
        return HotelJsonFormatter('%(asctime)s %(name)s %(levelname)s %(message)s')
    return _text_formatter()


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def _install_handler(level: int) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    # Replace only the handler installed by an earlier setup call
    for handler in list(root.handlers):
        if getattr(handler, '_hotelops', False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(settings.LOG_FORMAT))
    handler._hotelops = True
    root.addHandler(handler)


def _tune_library_loggers() -> None:
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if settings.DB_ECHO else logging.WARNING)


class LoggerAdapter:
    """
    Thin wrapper over a stdlib logger.

    Accepts `extra=` on every call like the stdlib API and skips records
    below the logger level before building them.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, *args, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name or 'hotelops'))


def setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    _configure_structlog()
    _install_handler(level)
    _tune_library_loggers()

    get_logger(__name__).info(
        'Logging configured',
        extra={'log_level': settings.LOG_LEVEL, 'log_format': settings.LOG_FORMAT},
    )


__all__ = [
    'get_logger',
    'setup_logging',
    'redact',
    'LoggerAdapter',
    'request_id',
    'tenant_id',
]

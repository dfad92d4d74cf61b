# 📄 File: medplant/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# This file sets up the logging system that records what happens in the gateway,
# tagging every line with the request it belongs to so problems are easy to trace,
# and blanking out API keys if one ever ends up in a message.

# 🧪 Purpose (Technical Summary):
# Implements structured logging with text or JSON formatting, request-id context
# propagation through contextvars, a secret-redaction filter fed from settings,
# and a thin StructuredLogger that turns keyword arguments into extra fields.

# 🔗 Dependencies:
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# Used by: medplant.main (setup), request logging middleware, inference client,
# identification service, webhook handler

import json
import logging
import os
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional
from uuid import uuid4

request_id_var: ContextVar[str] = ContextVar('request_id', default='')

SERVICE_NAME = 'medplant-gateway'
REDACTED = '***'

# Keyword arguments the stdlib logger understands; everything else becomes an extra field
_LOGGER_KWARGS = ('exc_info', 'stack_info', 'stacklevel')

_configured = False
_structured_loggers: Dict[str, "StructuredLogger"] = {}


def _hostname() -> str:
    return os.uname().nodename if hasattr(os, 'uname') else 'unknown'


class SecretRedactingFilter(logging.Filter):
    """Replaces known secret values in messages and extra fields with ``***``."""

    def __init__(self, secrets: Iterable[Optional[str]]):
        super().__init__()
        # Short values would blank out ordinary words
        self.secrets = sorted({s for s in secrets if s and len(s) >= 6}, key=len, reverse=True)

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in self.secrets:
                value = value.replace(secret, REDACTED)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True

        message = record.getMessage()
        scrubbed = self._scrub(message)
        if scrubbed != message:
            record.msg, record.args = scrubbed, None

        fields = getattr(record, 'extra_fields', None)
        if fields:
            record.extra_fields = {k: self._scrub(v) for k, v in fields.items()}
        return True


class ContextualFormatter(logging.Formatter):
    """Text formatter; stamps request id, service and host on the record."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.hostname = _hostname()

    def format(self, record):
        record.request_id = request_id_var.get() or '-'
        record.service = SERVICE_NAME
        record.hostname = self.hostname
        record.timestamp = datetime.fromtimestamp(record.created, timezone.utc).isoformat()

        text = super().format(record)
        fields = getattr(record, 'extra_fields', None)
        if fields:
            text += ' ' + ' '.join(f'{key}={value}' for key, value in fields.items())
        return text


class JSONFormatter(ContextualFormatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record):
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'service': SERVICE_NAME,
            'hostname': self.hostname,
        }

        request_id = request_id_var.get()
        if request_id:
            entry['request_id'] = request_id

        if record.exc_info:
            exc_type, exc, tb = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc),
                'traceback': traceback.format_exception(exc_type, exc, tb),
            }

        fields = getattr(record, 'extra_fields', None)
        if fields:
            entry['extra'] = fields

        return json.dumps(entry, default=str, ensure_ascii=False)


class StructuredLogger:
    """
    Logger wrapper that attaches keyword arguments as structured extra fields.

    ``logger.info("Identify: image received", bytes=123)`` ends up as
    ``extra_fields={'bytes': 123}`` on the record.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: Dict = None, **kwargs):
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: Dict = None, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, extra, exc_info=exc_info, **kwargs)

    def _log(self, level: int, message: str, extra: Dict = None, **kwargs):
        if not self.logger.isEnabledFor(level):
            return

        log_kwargs = {k: kwargs.pop(k) for k in _LOGGER_KWARGS if k in kwargs}
        fields = {**(extra or {}), **kwargs}
        if fields:
            log_kwargs['extra'] = {'extra_fields': fields}

        self.logger.log(level, message, **log_kwargs)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_console: bool = True
) -> logging.Logger:
    """
    Configure the root logger once per process.

    Args:
        log_level: Level name, defaults to settings.LOG_LEVEL
        log_format: 'json' or 'text', defaults to settings.LOG_FORMAT
        enable_console: Attach a stdout handler

    Returns:
        The 'startup' logger
    """
    global _configured

    if _configured:
        return logging.getLogger("startup")

    from medplant.shared.config.settings import get_settings

    settings = get_settings()
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)

    if (log_format or settings.LOG_FORMAT).lower() == 'json':
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = ContextualFormatter('%(timestamp)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s')

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if enable_console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(SecretRedactingFilter(settings.secret_values()))
        root.addHandler(handler)

    for noisy in ('aiohttp', 'asyncio', 'multipart'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO if settings.DB_ECHO else logging.WARNING)

    _configured = True
    return logging.getLogger("startup")


def get_logger(name: str) -> StructuredLogger:
    """Return the cached StructuredLogger for ``name`` (usually ``__name__``)."""
    logger = _structured_loggers.get(name)
    if logger is None:
        logger = _structured_loggers[name] = StructuredLogger(name)
    return logger


@contextmanager
def log_context(request_id: Optional[str] = None):
    """Bind a request id (generated when omitted) to every log line emitted inside the block."""
    request_id = request_id or str(uuid4())
    token = request_id_var.set(request_id)
    try:
        yield {'request_id': request_id}
    finally:
        request_id_var.reset(token)

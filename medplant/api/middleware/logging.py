# 📄 File: medplant/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# Keeps a one-line diary entry for every request: what was asked, how it ended, how long it took,
# and a request number that ties all related log lines together.
# 🧪 Purpose (Technical Summary):
# Request logging middleware: assigns or propagates X-Request-ID, binds it to the logging
# context for the whole request, logs method/path/status/duration and warns on slow requests.
# Bodies and sensitive headers are never logged.
# 🔗 Dependencies:
# starlette BaseHTTPMiddleware, medplant.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# medplant.main (middleware registration)

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from medplant.shared.utils.logging import get_logger, log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Inbound ids are echoed back, so only accept a conservative charset
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

EXCLUDED_PATHS = frozenset({"/health", "/favicon.ico"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware with request-id correlation.
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 5.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = self._resolve_request_id(request)
        request.state.request_id = request_id

        with log_context(request_id):
            start_time = time.perf_counter()
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers[REQUEST_ID_HEADER] = request_id
            if request.url.path not in EXCLUDED_PATHS:
                self._log_request(request, response, duration)

        return response

    def _resolve_request_id(self, request: Request) -> str:
        inbound = request.headers.get(REQUEST_ID_HEADER)
        if inbound and _REQUEST_ID_PATTERN.match(inbound):
            return inbound
        return str(uuid.uuid4())

    def _log_request(self, request: Request, response: Response, duration: float) -> None:
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 1),
            "client_ip": request.client.host if request.client else None,
        }
        message = f"{request.method} {request.url.path} -> {response.status_code} ({fields['duration_ms']} ms)"

        if duration > self.slow_request_threshold:
            logger.warning(f"Slow request: {message}", **fields)
        elif response.status_code >= 500:
            logger.error(message, **fields)
        else:
            logger.info(message, **fields)

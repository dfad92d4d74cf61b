# 📄 File: medplant/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# A safety net: if anything slips past the normal error handling, the app still answers with the
# usual tidy error message instead of crashing the connection.
# 🧪 Purpose (Technical Summary):
# Last-resort error middleware. Converts escaped exceptions into the uniform failure envelope,
# logs them with the request id, and stamps X-Response-Time on every response.
# 🔗 Dependencies:
# starlette BaseHTTPMiddleware, medplant.shared.core.exceptions
# 🔄 Connected Modules / Calls From:
# medplant.main (middleware registration)

import logging
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from medplant.shared.config.settings import get_settings
from medplant.shared.core.exceptions import MedPlantException

logger = logging.getLogger(__name__)


def internal_error_envelope(exc: Exception, debug: bool = False) -> dict:
    error = {
        "code": 500,
        "type": "INTERNAL_SERVER_ERROR",
        "message": "An internal server error occurred",
    }
    if debug:
        error["details"] = {"error_type": type(exc).__name__}
    return {"success": False, "error": error}


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Route-level exception handlers normally answer first; this catches what
    they do not (errors raised by other middleware or while streaming).
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.settings = get_settings()

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except MedPlantException as exc:
            logger.warning(f"Unhandled {exc.error_code} on {request.url.path}: {exc.message}")
            response = JSONResponse(status_code=exc.status_code, content=exc.to_envelope())
        except Exception as exc:
            logger.error(f"Unhandled error on {request.url.path}: {type(exc).__name__}", exc_info=True)
            response = JSONResponse(
                status_code=500,
                content=internal_error_envelope(exc, debug=self.settings.DEBUG),
            )

        response.headers["X-Response-Time"] = f"{time.perf_counter() - start_time:.3f}s"
        return response

# 📄 File: medplant/api/v1/health.py
# 🧭 Purpose (Layman Explanation):
# A quick "are you alive?" check for the server, and a deeper "are you ready to work?" check.
# 🧪 Purpose (Technical Summary):
# GET /health (liveness) and GET /health/ready (readiness: credential presence as booleans and
# database reachability). Never exposes secret values.
# 🔗 Dependencies:
# FastAPI, shared.config.settings, shared.infrastructure.database.connection
# 🔄 Connected Modules / Calls From:
# medplant.api.v1.router, load balancers, uptime monitors

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from medplant.shared.config.settings import get_settings
from medplant.shared.infrastructure.database.connection import database_health_check

logger = logging.getLogger(__name__)

health_router = APIRouter()

SERVICE_NAME = "medplant-gateway"


@health_router.get(
    "/health",
    summary="Basic Health Check",
    description="Liveness endpoint for load balancers",
    tags=["Health Check"],
)
async def health_check() -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "service": SERVICE_NAME,
            "version": get_settings().APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@health_router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Reports whether credentials are configured and the database answers",
    tags=["Health Check"],
)
async def readiness_check() -> JSONResponse:
    """
    Readiness check.

    503 when the inference key is missing or the database is unhealthy;
    the webhook secret is reported but does not gate readiness.
    """
    settings = get_settings()
    database = await database_health_check()

    checks = {
        "inference_key_configured": bool(settings.GEMINI_API_KEY),
        "webhook_secret_configured": bool(settings.RAZORPAY_WEBHOOK_SECRET),
        "database": database.get("status", "unhealthy"),
    }
    ready = checks["inference_key_configured"] and checks["database"] == "healthy"
    if not ready:
        logger.warning(f"Readiness check failed: {checks}")

    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "service": SERVICE_NAME,
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )

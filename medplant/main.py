# 📄 File: medplant/main.py
#
# 🧭 Purpose (Layman Explanation):
# The main switch that starts the MedPlant gateway: it loads the settings, opens the shared
# connections, plugs in every endpoint, and makes sure every error comes back in the same shape.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory and entry point: lifespan (logging, startup configuration check,
# shared aiohttp session, database engine and session factory), middleware stack, router
# registration and exception handlers emitting the uniform failure envelope.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn, aiohttp
# - medplant.shared.config.settings
# - medplant.shared.infrastructure.database
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup (medplant.main:app)
# - medplant-gateway console script
# - tests (create_application)

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import aiohttp
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from medplant import __version__
from medplant.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    internal_error_envelope,
)
from medplant.api.v1.router import api_router
from medplant.shared.config.settings import get_settings
from medplant.shared.core.exceptions import INVALID_REQUEST, MedPlantException
from medplant.shared.infrastructure.database.connection import close_database, init_database
from medplant.shared.infrastructure.database.session import initialize_sessions
from medplant.shared.utils.logging import setup_logging

logger = logging.getLogger(__name__)

HTTP_ERROR_TYPES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup never aborts on missing credentials; it only warns.
    """
    settings = get_settings()
    setup_logging()
    logger.info(f"🌱 {settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENVIRONMENT})")

    for warning in settings.configuration_warnings():
        logger.warning(f"⚠️ Configuration: {warning}")
    if settings.GEMINI_API_KEY:
        logger.info(
            f"✅ Inference model: {settings.GEMINI_MODEL} "
            f"(fallback: {settings.GEMINI_FALLBACK_MODEL or 'none'})"
        )

    app.state.http_session = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.IDENTIFY_DEADLINE_MS / 1000.0)
    )

    await init_database()
    initialize_sessions()
    logger.info("✅ Database session manager initialized")

    try:
        yield
    finally:
        logger.info(f"🔄 {settings.APP_NAME} shutting down...")
        await app.state.http_session.close()
        await close_database()
        logger.info("✅ Shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves as {success: false, error: {code, type, message, details?}}."""

    @app.exception_handler(MedPlantException)
    async def medplant_exception_handler(request: Request, exc: MedPlantException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": {
                    "code": 400,
                    "type": INVALID_REQUEST,
                    "message": "Request validation failed",
                    "details": {"errors": errors},
                },
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {
                    "code": exc.status_code,
                    "type": HTTP_ERROR_TYPES.get(exc.status_code, "HTTP_ERROR"),
                    "message": str(exc.detail),
                },
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Internal server error: {type(exc).__name__}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=internal_error_envelope(exc, debug=get_settings().DEBUG),
        )


def create_application() -> FastAPI:
    """
    Application factory function.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    # =========================================================================
    # MIDDLEWARE CONFIGURATION (last added runs first)
    # =========================================================================

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # =========================================================================
    # ROUTERS AND EXCEPTION HANDLERS
    # =========================================================================

    app.include_router(api_router)
    register_exception_handlers(app)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "name": settings.APP_NAME,
            "version": __version__,
            "health_check": "/health",
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


app = create_application()


def main():
    """Console entry point: run the gateway under uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "medplant.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
        workers=1 if settings.RELOAD else settings.WORKERS,
    )


if __name__ == "__main__":
    main()

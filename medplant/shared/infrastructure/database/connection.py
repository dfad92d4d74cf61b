# 📄 File: medplant/shared/infrastructure/database/connection.py
#
# 🧭 Purpose (Layman Explanation):
# Manages the connection to our database where payment orders and user plans are stored,
# making sure we can talk to it and sharing connections efficiently.
#
# 🧪 Purpose (Technical Summary):
# Async SQLAlchemy engine management with connection pooling, a shared declarative Base,
# health checks and startup/shutdown hooks.
#
# 🔗 Dependencies:
# - sqlalchemy (async engine)
# - medplant/shared/config/settings.py (database configuration)
# - asyncpg (PostgreSQL async driver)
#
# 🔄 Connected Modules / Calls From:
# - medplant/shared/infrastructure/database/session.py (session management)
# - Payment repository implementations (ORM models inherit Base)
# - medplant/api/v1/health.py (readiness probe)

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from medplant.shared.config.settings import get_settings

logger = logging.getLogger(__name__)

# Shared declarative base for every ORM model
Base = declarative_base()


class DatabaseConnectionManager:
    """
    Manages database connections with connection pooling
    and health monitoring.
    """

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._health_check_query = text("SELECT 1")

    def _build_connection_params(self) -> Dict[str, Any]:
        """Build SQLAlchemy connection parameters from settings."""
        settings = get_settings()
        url = self._url or settings.database_url
        params: Dict[str, Any] = {
            "url": url,
            "echo": settings.DB_ECHO,
            "pool_pre_ping": True,
        }
        # SQLite (used by local tooling) does not take pool sizing arguments
        if not url.startswith("sqlite"):
            params.update({
                "pool_recycle": 3600,
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_timeout": 30,
            })
        return params

    async def initialize(self) -> None:
        """Initialize database engine with connection pooling."""
        if self._engine is not None:
            logger.warning("Database engine already initialized")
            return

        try:
            logger.info("Initializing database connection pool...")
            self._engine = create_async_engine(**self._build_connection_params())
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check and return structured status.
        """
        if self._engine is None:
            return {
                "status": "unhealthy",
                "error": "Database engine not initialized",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(self._health_check_query)
                result.scalar()
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": type(e).__name__,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    async def close(self) -> None:
        """Dispose of the engine and all pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.info("Database connections closed")

    @property
    def engine(self) -> Optional[AsyncEngine]:
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None


# Global database connection manager instance
db_manager = DatabaseConnectionManager()


async def init_database() -> None:
    """Initialize the global database connection manager."""
    await db_manager.initialize()


async def close_database() -> None:
    """Close the global database connection manager."""
    await db_manager.close()


def get_database_engine() -> AsyncEngine:
    """
    Get the database engine instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if not db_manager.is_initialized:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    return db_manager.engine


async def database_health_check() -> Dict[str, Any]:
    """Perform database health check."""
    return await db_manager.health_check()

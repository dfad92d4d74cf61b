"""Pytest fixtures for the MedPlant gateway."""

import os

# Settings are read when medplant.main is imported; pin a test environment first.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from medplant.main import create_application  # noqa: E402
from medplant.modules.payments.infrastructure.database import models  # noqa: E402,F401
from medplant.shared.config.settings import InferenceConfig  # noqa: E402
from medplant.shared.infrastructure.database.connection import Base  # noqa: E402
from medplant.shared.infrastructure.database.session import DatabaseSessionManager  # noqa: E402

from fakes import SleepRecorder, make_png  # noqa: E402


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def inference_config() -> InferenceConfig:
    return InferenceConfig(
        api_key="test-gemini-key",
        model="gemini-primary",
        fallback_model="gemini-lite",
        api_url="https://gemini.test/v1beta",
        timeout_ms=1000,
        max_retries=2,
        backoff_base_ms=1000,
        backoff_cap_ms=3000,
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


# =============================================================================
# DATABASE
# =============================================================================

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_manager(db_engine) -> DatabaseSessionManager:
    manager = DatabaseSessionManager()
    manager.initialize(db_engine)
    return manager


# =============================================================================
# APPLICATION
# =============================================================================

@pytest.fixture
def app():
    application = create_application()
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    # ASGITransport skips the lifespan: no database engine or shared HTTP session is opened
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

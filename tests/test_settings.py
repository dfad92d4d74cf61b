import pytest
from pydantic import ValidationError

from medplant.shared.config.settings import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GEMINI_API_KEY", "GEMINI_MODEL", "GEMINI_FALLBACK_MODEL", "GEMINI_TIMEOUT_MS",
        "GEMINI_MAX_RETRIES", "RAZORPAY_WEBHOOK_SECRET", "ALLOWED_IMAGE_TYPES", "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    get_settings.cache_clear()


def test_inference_config_is_built_from_environment(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "k-123")
    clean_env.setenv("GEMINI_MODEL", "gemini-x")
    clean_env.setenv("GEMINI_FALLBACK_MODEL", "")
    clean_env.setenv("GEMINI_TIMEOUT_MS", "2500")
    clean_env.setenv("GEMINI_MAX_RETRIES", "1")

    config = Settings(_env_file=None).get_inference_config()

    assert config.api_key == "k-123"
    assert config.model == "gemini-x"
    assert config.fallback_model is None
    assert config.timeout_seconds == 2.5
    assert config.max_retries == 1
    assert config.result_list_cap == 10


def test_missing_credentials_only_warn(clean_env):
    settings = Settings(_env_file=None)

    warnings = settings.configuration_warnings()

    assert any("GEMINI_API_KEY" in w for w in warnings)
    assert any("RAZORPAY_WEBHOOK_SECRET" in w for w in warnings)
    assert settings.get_inference_config().api_key is None


def test_suspicious_budgets_are_flagged(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "k")
    clean_env.setenv("RAZORPAY_WEBHOOK_SECRET", "s")
    clean_env.setenv("GEMINI_TIMEOUT_MS", "200")
    clean_env.setenv("GEMINI_MAX_RETRIES", "9")

    warnings = Settings(_env_file=None).configuration_warnings()

    assert len(warnings) == 2
    assert any("GEMINI_TIMEOUT_MS" in w for w in warnings)
    assert any("GEMINI_MAX_RETRIES" in w for w in warnings)


@pytest.mark.parametrize(
    "name, value",
    [("GEMINI_TIMEOUT_MS", "0"), ("GEMINI_MAX_RETRIES", "-1"), ("ENVIRONMENT", "moon"), ("LOG_LEVEL", "LOUD")],
)
def test_invalid_values_are_rejected(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_allowed_image_types_are_normalized(clean_env):
    clean_env.setenv("ALLOWED_IMAGE_TYPES", " Image/JPEG , image/png ,")

    assert Settings(_env_file=None).allowed_image_types == frozenset({"image/jpeg", "image/png"})


def test_database_url_prefers_explicit_value(clean_env):
    assert Settings(_env_file=None).database_url.startswith("postgresql+asyncpg://")

    clean_env.setenv("DATABASE_URL", "sqlite+aiosqlite:///./local.db")
    assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///./local.db"


@pytest.mark.asyncio
async def test_health_endpoints(client):
    live = await client.get("/health")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = await client.get("/health/ready")
    body = ready.json()
    assert body["checks"]["inference_key_configured"] is True
    assert "test-gemini-key" not in ready.text
    # lifespan did not run, so the database engine is absent
    assert ready.status_code == 503
    assert body["checks"]["database"] == "unhealthy"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "NOT_FOUND"

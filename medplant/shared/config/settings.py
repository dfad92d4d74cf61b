# 📄 File: medplant/shared/config/settings.py
#
# 🧭 Purpose (Layman Explanation):
# The main configuration center that reads all settings from environment variables
# and hands them to the plant identification gateway in an organized way.
#
# 🧪 Purpose (Technical Summary):
# Pydantic-based settings management with environment variable loading,
# validation, and the explicit InferenceConfig struct handed to the inference client.
#
# 🔗 Dependencies:
# - pydantic-settings for configuration management
# - python-dotenv for .env file loading
#
# 🔄 Connected Modules / Calls From:
# - medplant.main (application startup)
# - Database connection modules
# - Inference client and payment services

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class InferenceConfig:
    """
    Immutable configuration for one inference client instance.

    Built from Settings at startup, or directly in tests, so that the API key,
    endpoint and retry budget are never read from module-level globals.
    """

    api_key: Optional[str]
    model: str
    fallback_model: Optional[str]
    api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_ms: int = 10000
    max_retries: int = 2
    temperature: float = 0.2
    backoff_base_ms: int = 1000
    backoff_cap_ms: int = 3000
    result_list_cap: int = 10

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety. Settings are loaded
    from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================

    APP_NAME: str = Field(default="MedPlant API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    APP_DESCRIPTION: str = Field(
        default="Medicinal plant identification gateway",
        description="Application description"
    )
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    DEBUG: bool = Field(default=False, description="Debug mode flag")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="text", description="Log format: text or json")

    # =========================================================================
    # SERVER CONFIGURATION
    # =========================================================================

    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")
    RELOAD: bool = Field(default=False, description="Auto-reload on changes")
    WORKERS: int = Field(default=1, description="Number of worker processes")

    CORS_ORIGINS: str = Field(default="*", description="CORS allowed origins")

    # =========================================================================
    # DATABASE CONFIGURATION
    # =========================================================================

    DATABASE_URL: Optional[str] = Field(None, description="Async SQLAlchemy connection URL")
    DB_HOST: str = Field(default="localhost", description="Database host")
    DB_PORT: int = Field(default=5432, description="Database port")
    DB_NAME: str = Field(default="medplant_db", description="Database name")
    DB_USER: str = Field(default="postgres", description="Database user")
    DB_PASSWORD: str = Field(default="", description="Database password")
    DB_POOL_SIZE: int = Field(default=10, description="Database pool size")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Database pool overflow")
    DB_ECHO: bool = Field(default=False, description="Echo SQL statements")

    # =========================================================================
    # INFERENCE PROVIDER (Google Gemini)
    # =========================================================================

    GEMINI_API_KEY: Optional[str] = Field(None, description="Gemini API key")
    GEMINI_API_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST base URL"
    )
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash", description="Primary vision model")
    GEMINI_FALLBACK_MODEL: Optional[str] = Field(
        default="gemini-2.0-flash-lite",
        description="Model used when the primary one is unavailable"
    )
    GEMINI_TIMEOUT_MS: int = Field(default=10000, description="Per-attempt timeout (ms)")
    GEMINI_MAX_RETRIES: int = Field(default=2, description="Retries after the first attempt")
    GEMINI_TEMPERATURE: float = Field(default=0.2, description="Generation temperature")
    GEMINI_BACKOFF_BASE_MS: int = Field(default=1000, description="Backoff base (ms)")
    GEMINI_BACKOFF_CAP_MS: int = Field(default=3000, description="Backoff ceiling (ms)")
    IDENTIFY_DEADLINE_MS: int = Field(default=60000, description="Overall identify deadline (ms)")

    # =========================================================================
    # UPLOADS & RESULT SANITIZATION
    # =========================================================================

    MAX_IMAGE_SIZE: int = Field(default=10485760, description="Max image size (10MB)")
    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/jpeg,image/png,image/webp,application/octet-stream",
        description="Comma separated MIME allow-list"
    )
    RESULT_LIST_CAP: int = Field(default=10, description="Max entries per result list")

    # =========================================================================
    # PAYMENT GATEWAY (Razorpay)
    # =========================================================================

    RAZORPAY_KEY_ID: Optional[str] = Field(None, description="Razorpay key ID")
    RAZORPAY_KEY_SECRET: Optional[str] = Field(None, description="Razorpay key secret")
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = Field(None, description="Razorpay webhook secret")
    RAZORPAY_API_URL: str = Field(default="https://api.razorpay.com/v1", description="Razorpay API URL")
    PAYMENT_CURRENCY: str = Field(default="INR", description="Checkout currency")

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed_environments = ["development", "staging", "production", "test"]
        if v.lower() not in allowed_environments:
            raise ValueError(f"Environment must be one of {allowed_environments}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("GEMINI_TIMEOUT_MS", "IDENTIFY_DEADLINE_MS", "MAX_IMAGE_SIZE", "RESULT_LIST_CAP")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("GEMINI_MAX_RETRIES")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("GEMINI_MAX_RETRIES cannot be negative")
        return v

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @property
    def database_url(self) -> str:
        """Get the database URL, preferring explicit DATABASE_URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_image_types(self) -> frozenset:
        return frozenset(t.strip().lower() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip())

    # =========================================================================
    # PROVIDER CONFIGURATIONS
    # =========================================================================

    def get_inference_config(self) -> InferenceConfig:
        """Build the inference client configuration struct."""
        return InferenceConfig(
            api_key=self.GEMINI_API_KEY or None,
            model=self.GEMINI_MODEL,
            fallback_model=self.GEMINI_FALLBACK_MODEL or None,
            api_url=self.GEMINI_API_URL,
            timeout_ms=self.GEMINI_TIMEOUT_MS,
            max_retries=self.GEMINI_MAX_RETRIES,
            temperature=self.GEMINI_TEMPERATURE,
            backoff_base_ms=self.GEMINI_BACKOFF_BASE_MS,
            backoff_cap_ms=self.GEMINI_BACKOFF_CAP_MS,
            result_list_cap=self.RESULT_LIST_CAP,
        )

    def configuration_warnings(self) -> List[str]:
        """
        Problems worth logging at startup. Never fatal; the identify endpoint
        reports a missing key per request instead of serving mock results.
        """
        warnings: List[str] = []
        if not self.GEMINI_API_KEY:
            warnings.append("GEMINI_API_KEY is not set; /identify will answer 500 SERVER_MISCONFIGURED")
        if self.GEMINI_TIMEOUT_MS < 1000:
            warnings.append(f"GEMINI_TIMEOUT_MS={self.GEMINI_TIMEOUT_MS} is below 1000 ms; most requests will time out")
        if self.GEMINI_MAX_RETRIES > 5:
            warnings.append(f"GEMINI_MAX_RETRIES={self.GEMINI_MAX_RETRIES} is above 5; failures will be slow")
        if not self.RAZORPAY_WEBHOOK_SECRET:
            warnings.append("RAZORPAY_WEBHOOK_SECRET is not set; every webhook will be rejected")
        return warnings

    def secret_values(self) -> List[str]:
        """Configured credentials that must never appear in log output."""
        candidates = (
            self.GEMINI_API_KEY,
            self.RAZORPAY_KEY_SECRET,
            self.RAZORPAY_WEBHOOK_SECRET,
            self.DB_PASSWORD,
        )
        return [value for value in candidates if value]

    def get_payment_config(self) -> dict:
        """Get payment gateway configuration."""
        return {
            "key_id": self.RAZORPAY_KEY_ID,
            "key_secret": self.RAZORPAY_KEY_SECRET,
            "webhook_secret": self.RAZORPAY_WEBHOOK_SECRET,
            "api_url": self.RAZORPAY_API_URL,
            "currency": self.PAYMENT_CURRENCY,
        }


# ============================================================================
# SETTINGS FACTORY
# ============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Uses lru_cache to ensure settings are loaded only once
    and reused throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()

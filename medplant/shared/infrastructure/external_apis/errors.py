# 📄 File: medplant/shared/infrastructure/external_apis/errors.py

# 🧭 Purpose (Layman Explanation):
# Decides, in one place, whether a failed call to an outside service is worth trying again
# (busy, overloaded, slow) or is a real problem that retrying will not fix (bad key, bad answer).

# 🧪 Purpose (Technical Summary):
# External API error hierarchy carrying an explicit ErrorCategory, plus the classification
# functions consulted by both the inference client's retry loop and the model fallback policy.

# 🔗 Dependencies:
# - aiohttp: transport-level exception types
# - asyncio: timeout exception type

# 🔄 Connected Modules / Calls From:
# Used by: GeminiInferenceClient (retry decisions), ModelFallbackPolicy (fallback decisions),
# IdentificationService (mapping to the user-facing taxonomy), RazorpayClient

import asyncio
from enum import Enum
from typing import Optional

import aiohttp

# Provider error bodies are attached for diagnostics only, never returned to callers
MAX_DIAGNOSTIC_BODY_CHARS = 500


class ErrorCategory(str, Enum):
    """Classification of a failed external call."""
    TRANSIENT = "transient"          # 5xx, dropped connections, empty output
    RATE_LIMITED = "rate_limited"    # 429 / RESOURCE_EXHAUSTED
    UNAVAILABLE = "unavailable"      # 503 / UNAVAILABLE: model overloaded
    TIMEOUT = "timeout"              # per-attempt deadline elapsed
    NOT_FOUND = "not_found"          # 404: unknown model or endpoint
    UNAUTHORIZED = "unauthorized"    # 401 / 403
    BAD_RESPONSE = "bad_response"    # 2xx with unparseable output
    CONFIGURATION = "configuration"  # missing credential, detected before any call
    TERMINAL = "terminal"            # any other non-2xx


RETRYABLE_CATEGORIES = frozenset({
    ErrorCategory.TRANSIENT,
    ErrorCategory.RATE_LIMITED,
    ErrorCategory.UNAVAILABLE,
    ErrorCategory.TIMEOUT,
})

# google.rpc status names found in provider error bodies
_PROVIDER_STATUS_CATEGORIES = {
    "UNAVAILABLE": ErrorCategory.UNAVAILABLE,
    "RESOURCE_EXHAUSTED": ErrorCategory.RATE_LIMITED,
    "NOT_FOUND": ErrorCategory.NOT_FOUND,
    "UNAUTHENTICATED": ErrorCategory.UNAUTHORIZED,
    "PERMISSION_DENIED": ErrorCategory.UNAUTHORIZED,
    "DEADLINE_EXCEEDED": ErrorCategory.TIMEOUT,
    "INTERNAL": ErrorCategory.TRANSIENT,
}


class ExternalAPIError(Exception):
    """
    Failure of a call to an external API.

    Carries the classification category, the HTTP status when there was one,
    and a truncated response body for diagnostics.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.TERMINAL,
        status: Optional[int] = None,
        body: Optional[str] = None,
        api_name: Optional[str] = None
    ):
        self.message = message
        self.category = category
        self.status = status
        self.body = truncate_body(body)
        self.api_name = api_name
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.category in RETRYABLE_CATEGORIES

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(category={self.category.value!r}, "
            f"status={self.status!r}, message={self.message!r})"
        )


class APITimeoutError(ExternalAPIError):
    """The per-attempt timeout elapsed and the in-flight call was cancelled."""

    def __init__(self, message: str, api_name: Optional[str] = None):
        super().__init__(message, category=ErrorCategory.TIMEOUT, api_name=api_name)


class APIConfigurationError(ExternalAPIError):
    """A credential or endpoint required for the call is not configured."""

    def __init__(self, message: str, api_name: Optional[str] = None):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, api_name=api_name)


class APIResponseError(ExternalAPIError):
    """The provider answered 2xx but the payload could not be used."""

    def __init__(self, message: str, body: Optional[str] = None, api_name: Optional[str] = None):
        super().__init__(message, category=ErrorCategory.BAD_RESPONSE, body=body, api_name=api_name)


def truncate_body(body: Optional[str], limit: int = MAX_DIAGNOSTIC_BODY_CHARS) -> Optional[str]:
    if body is None:
        return None
    if len(body) <= limit:
        return body
    return body[:limit] + "...[truncated]"


def classify_status(status: int, provider_status: Optional[str] = None) -> Optional[ErrorCategory]:
    """
    Classify an HTTP response.

    Returns None for 2xx. A google.rpc status name from the error body wins
    over the bare HTTP code when both are present.
    """
    if 200 <= status < 300:
        return None

    if provider_status and provider_status.upper() in _PROVIDER_STATUS_CATEGORIES:
        return _PROVIDER_STATUS_CATEGORIES[provider_status.upper()]

    if status == 429:
        return ErrorCategory.RATE_LIMITED
    if status == 503:
        return ErrorCategory.UNAVAILABLE
    if status >= 500:
        return ErrorCategory.TRANSIENT
    if status in (401, 403):
        return ErrorCategory.UNAUTHORIZED
    if status == 404:
        return ErrorCategory.NOT_FOUND
    return ErrorCategory.TERMINAL


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify any exception raised while talking to an external API."""
    if isinstance(exc, ExternalAPIError):
        return exc.category
    if isinstance(exc, asyncio.TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(exc, (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError)):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.TERMINAL


def is_transient(exc: BaseException) -> bool:
    """True when retrying the identical request may succeed."""
    return classify_exception(exc) in RETRYABLE_CATEGORIES


def is_model_unavailable(exc: BaseException) -> bool:
    """True for the service-unavailable class that justifies switching models."""
    return classify_exception(exc) == ErrorCategory.UNAVAILABLE

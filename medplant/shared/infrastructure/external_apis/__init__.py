# 📄 File: medplant/shared/infrastructure/external_apis/__init__.py

# 🧭 Purpose (Layman Explanation):
# Groups the tools used to call outside services and to judge their failures.

# 🧪 Purpose (Technical Summary):
# Exports the base aiohttp client and the error classification used by retry and fallback logic.

# 🔗 Dependencies:
# - api_client.py, errors.py

# 🔄 Connected Modules / Calls From:
# Plant identification and payments infrastructure layers

from .api_client import APIClient, extract_provider_status
from .errors import (
    APIConfigurationError,
    APIResponseError,
    APITimeoutError,
    ErrorCategory,
    ExternalAPIError,
    classify_exception,
    classify_status,
    is_model_unavailable,
    is_transient,
)

__all__ = [
    "APIClient",
    "extract_provider_status",
    "APIConfigurationError",
    "APIResponseError",
    "APITimeoutError",
    "ErrorCategory",
    "ExternalAPIError",
    "classify_exception",
    "classify_status",
    "is_model_unavailable",
    "is_transient",
]

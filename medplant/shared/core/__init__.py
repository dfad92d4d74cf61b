"""
Core utilities package for the MedPlant gateway.
Provides the exception taxonomy and webhook signature helpers.
"""

from .exceptions import (
    MedPlantException,
    InvalidRequestError,
    UnsupportedMediaTypeError,
    ServerMisconfiguredError,
    RateLimitedError,
    ModelUnavailableError,
    IdentificationFailedError,
    WebhookSignatureInvalidError,
    WebhookOrderNotFoundError,
    EntitlementGrantError,
    PaymentProviderError,
    DatabaseError,
)
from .security import compute_signature, verify_signature

__all__ = [
    "MedPlantException",
    "InvalidRequestError",
    "UnsupportedMediaTypeError",
    "ServerMisconfiguredError",
    "RateLimitedError",
    "ModelUnavailableError",
    "IdentificationFailedError",
    "WebhookSignatureInvalidError",
    "WebhookOrderNotFoundError",
    "EntitlementGrantError",
    "PaymentProviderError",
    "DatabaseError",
    "compute_signature",
    "verify_signature",
]

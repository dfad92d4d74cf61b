# 📄 File: medplant/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines all the special error types the gateway uses to say exactly what went wrong,
# so the mobile app always gets the same, predictable error shape.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy mapping every failure to an HTTP status code and a stable taxonomy
# type, serialized into the uniform {success: false, error: {...}} envelope.
# 🔗 Dependencies:
# FastAPI status constants, typing
# 🔄 Connected Modules / Calls From:
# Identification service, payment services, exception handlers, error handling middleware

from typing import Any, Dict, Optional

from fastapi import status


# Taxonomy of user-visible error types
INVALID_REQUEST = "INVALID_REQUEST"
UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
SERVER_MISCONFIGURED = "SERVER_MISCONFIGURED"
RATE_LIMITED = "RATE_LIMITED"
MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
IDENTIFICATION_FAILED = "IDENTIFICATION_FAILED"
WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"
WEBHOOK_ORDER_NOT_FOUND = "WEBHOOK_ORDER_NOT_FOUND"


class MedPlantException(Exception):
    """
    Base exception class for the MedPlant gateway.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_envelope(self) -> Dict[str, Any]:
        """Convert exception to the failure envelope returned to callers."""
        error: Dict[str, Any] = {
            "code": self.status_code,
            "type": self.error_code,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


# =============================================================================
# REQUEST VALIDATION EXCEPTIONS
# =============================================================================

class InvalidRequestError(MedPlantException):
    """
    Raised when the request is malformed: not multipart, no file,
    wrong field name, empty or oversized upload, missing body fields.
    """

    def __init__(
        self,
        message: str = "Invalid request",
        field: Optional[str] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
            error_code=INVALID_REQUEST
        )


class UnsupportedMediaTypeError(MedPlantException):
    """Raised when the uploaded file's MIME type is not allow-listed."""

    def __init__(
        self,
        mime_type: Optional[str],
        allowed: Optional[list] = None
    ):
        super().__init__(
            message=f"Unsupported media type: {mime_type or 'unknown'}",
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            details={"allowed": sorted(allowed or [])},
            error_code=UNSUPPORTED_MEDIA_TYPE
        )


class ServerMisconfiguredError(MedPlantException):
    """
    Raised when a required server-side credential is missing.
    The message names the setting, never its value.
    """

    def __init__(self, setting: str):
        super().__init__(
            message=f"Server misconfigured: {setting} missing",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=SERVER_MISCONFIGURED
        )


# =============================================================================
# IDENTIFICATION EXCEPTIONS
# =============================================================================

class RateLimitedError(MedPlantException):
    """Raised when the inference provider keeps rate limiting us."""

    def __init__(
        self,
        message: str = "Plant identification limit reached. Please wait 30-60 seconds and try again.",
        retry_after: Optional[int] = 30,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if retry_after:
            details["retry_after"] = retry_after

        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details=details,
            error_code=RATE_LIMITED
        )


class ModelUnavailableError(MedPlantException):
    """Raised when the provider reports the configured model does not exist."""

    def __init__(
        self,
        message: str = "Plant identification model temporarily unavailable.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=MODEL_UNAVAILABLE
        )


class IdentificationFailedError(MedPlantException):
    """
    Generic identification failure. Details carry the original error's
    name and message, never the raw provider payload.
    """

    def __init__(
        self,
        message: str = "Failed to identify plant",
        error_name: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if error_name:
            details["name"] = error_name
        if error_message:
            details["message"] = error_message

        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=IDENTIFICATION_FAILED
        )


# =============================================================================
# PAYMENT EXCEPTIONS
# =============================================================================

class WebhookSignatureInvalidError(MedPlantException):
    """Raised when a webhook signature does not match the raw body."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=WEBHOOK_SIGNATURE_INVALID
        )


class WebhookOrderNotFoundError(MedPlantException):
    """Raised when a payment event references an order we never created."""

    def __init__(self, order_id: Optional[str]):
        super().__init__(
            message=f"Payment order not found: {order_id or 'missing'}",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"order_id": order_id},
            error_code=WEBHOOK_ORDER_NOT_FOUND
        )


class EntitlementGrantError(MedPlantException):
    """Raised when a paid order cannot be turned into credits or a plan."""

    def __init__(
        self,
        message: str = "Failed to grant entitlement",
        plan_id: Optional[str] = None,
        order_id: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if plan_id:
            details["plan_id"] = plan_id
        if order_id:
            details["order_id"] = order_id

        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code="ENTITLEMENT_GRANT_FAILED"
        )


class PaymentProviderError(MedPlantException):
    """Raised when the payment provider rejects an order creation call."""

    def __init__(
        self,
        message: str = "Payment provider error",
        provider_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if provider_status:
            details["provider_status"] = provider_status

        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
            error_code="PAYMENT_PROVIDER_ERROR"
        )


# =============================================================================
# DATABASE & INFRASTRUCTURE EXCEPTIONS
# =============================================================================

class DatabaseError(MedPlantException):
    """
    Exception raised for database operation failures.
    Used for connection issues, query failures, etc.
    """

    def __init__(
        self,
        message: str = "Database error",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="DATABASE_ERROR"
        )

# 📄 File: medplant/modules/plant_identification/domain/services/identification_service.py
# 🧭 Purpose (Layman Explanation):
# Handles one "what plant is this?" request from start to finish: checks the photo is a real,
# allowed image, asks the AI (with a backup model), and sends back either the report or a clear error.
# 🧪 Purpose (Technical Summary):
# Request-level orchestrator for POST /identify. Runs the RECEIVED -> VALIDATING_UPLOAD ->
# AWAITING_INFERENCE -> SANITIZING -> RESPONDING state machine, fails fast before any network
# call, bounds inference with an outer deadline, and maps every failure onto the error taxonomy
# and the uniform envelope.
# 🔗 Dependencies:
# fastapi/starlette (Request, UploadFile, JSONResponse), Pillow (metadata logging), asyncio
# 🔄 Connected Modules / Calls From:
# plant_identification.presentation.api.v1.identify (route), presentation.dependencies

import asyncio
import io
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from PIL import Image, UnidentifiedImageError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from medplant.modules.plant_identification.domain.models.identification import (
    IdentificationResult,
    UploadedImage,
)
from medplant.modules.plant_identification.domain.services.model_fallback import ModelFallbackPolicy
from medplant.shared.config.settings import Settings
from medplant.shared.core.exceptions import (
    IdentificationFailedError,
    InvalidRequestError,
    MedPlantException,
    ModelUnavailableError,
    RateLimitedError,
    ServerMisconfiguredError,
    UnsupportedMediaTypeError,
)
from medplant.shared.infrastructure.external_apis.errors import ErrorCategory, ExternalAPIError
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)

IMAGE_FIELD = "image"
CREDENTIAL_SETTING = "GEMINI_API_KEY"


class IdentifyState(str, Enum):
    """Lifecycle of one identification request"""
    RECEIVED = "received"
    VALIDATING_UPLOAD = "validating_upload"
    AWAITING_INFERENCE = "awaiting_inference"
    SANITIZING = "sanitizing"
    RESPONDING = "responding"
    FAILED = "failed"


class IdentificationService:
    """
    Orchestrates a single identification request.

    Every validation failure is raised before the inference client is
    touched; every failure leaves as the same envelope shape.
    """

    def __init__(
        self,
        fallback_policy: ModelFallbackPolicy,
        allowed_mime_types: FrozenSet[str],
        max_image_size: int,
        deadline_ms: int,
        credential_configured: bool
    ):
        self.fallback_policy = fallback_policy
        self.allowed_mime_types = allowed_mime_types
        self.max_image_size = max_image_size
        self.deadline_ms = deadline_ms
        self.credential_configured = credential_configured
        self.state = IdentifyState.RECEIVED

    @classmethod
    def from_settings(cls, settings: Settings, client: Any) -> "IdentificationService":
        config = settings.get_inference_config()
        return cls(
            fallback_policy=ModelFallbackPolicy(client, config.model, config.fallback_model),
            allowed_mime_types=settings.allowed_image_types,
            max_image_size=settings.MAX_IMAGE_SIZE,
            deadline_ms=settings.IDENTIFY_DEADLINE_MS,
            credential_configured=bool(config.api_key),
        )

    # =========================================================================
    # REQUEST ENTRY POINT
    # =========================================================================

    async def handle_identify_request(self, request: Request) -> JSONResponse:
        """
        Run the full pipeline for one HTTP request.

        Returns:
            JSONResponse: ``{"success": true, "data": {"identified": ...}}`` or
            the failure envelope with the matching HTTP status
        """
        try:
            self._transition(IdentifyState.VALIDATING_UPLOAD)
            upload = await self.extract_upload(request)

            self._transition(IdentifyState.AWAITING_INFERENCE)
            result = await self.identify(upload)

            self._transition(IdentifyState.RESPONDING)
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"success": True, "data": {"identified": result.to_wire()}},
            )

        except MedPlantException as exc:
            self._transition(IdentifyState.FAILED)
            logger.warning(
                "Identify request failed",
                error_type=exc.error_code,
                status_code=exc.status_code,
            )
            return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    # =========================================================================
    # VALIDATING_UPLOAD
    # =========================================================================

    async def extract_upload(self, request: Request) -> UploadedImage:
        """
        Pull exactly one allow-listed image out of a multipart request.

        Raises:
            InvalidRequestError: not multipart, malformed, wrong/missing/extra file,
                empty or oversized upload
            UnsupportedMediaTypeError: MIME type outside the allow-list
            ServerMisconfiguredError: inference credential not configured
        """
        content_type = request.headers.get("content-type", "")
        if not content_type.lower().startswith("multipart/form-data"):
            raise InvalidRequestError("Request must be multipart/form-data")

        try:
            form = await request.form()
        except (MultiPartException, StarletteHTTPException) as e:
            raise InvalidRequestError(f"Malformed multipart body: {getattr(e, 'detail', e)}")

        files: List[tuple] = [
            (name, value) for name, value in form.multi_items() if isinstance(value, UploadFile)
        ]
        if not files:
            raise InvalidRequestError("No image file provided", field=IMAGE_FIELD)
        if len(files) > 1:
            raise InvalidRequestError("Exactly one image file is allowed", field=IMAGE_FIELD)

        field_name, upload = files[0]
        if field_name != IMAGE_FIELD:
            raise InvalidRequestError(
                f"Image must be sent in the '{IMAGE_FIELD}' field",
                field=IMAGE_FIELD,
                details={"received_field": field_name},
            )

        mime_type = normalize_mime_type(upload.content_type)
        if mime_type not in self.allowed_mime_types:
            raise UnsupportedMediaTypeError(mime_type, allowed=list(self.allowed_mime_types))

        content = await upload.read(self.max_image_size + 1)
        if not content:
            raise InvalidRequestError("Uploaded image is empty", field=IMAGE_FIELD)
        if len(content) > self.max_image_size:
            raise InvalidRequestError(
                f"Image exceeds the {self.max_image_size} byte limit",
                field=IMAGE_FIELD,
                status_code=413,
            )

        if not self.credential_configured:
            logger.error("Identify request rejected: inference credential missing")
            raise ServerMisconfiguredError(CREDENTIAL_SETTING)

        image = UploadedImage(
            content=content,
            mime_type=mime_type,
            filename=upload.filename,
            field_name=field_name,
        )
        logger.info("Identify: image received", **describe_image(image))
        return image

    # =========================================================================
    # AWAITING_INFERENCE / SANITIZING
    # =========================================================================

    async def identify(self, upload: UploadedImage) -> IdentificationResult:
        """
        Run model fallback under the outer deadline and map failures.

        The result is already sanitized by the inference client.
        """
        try:
            result = await asyncio.wait_for(
                self.fallback_policy.identify_with_fallback(upload.content, upload.mime_type),
                timeout=self.deadline_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            logger.error("Identification deadline exceeded", deadline_ms=self.deadline_ms)
            raise IdentificationFailedError(
                error_name="IdentificationTimeout",
                error_message=f"No result within {self.deadline_ms} ms",
            )
        except ExternalAPIError as exc:
            raise map_inference_error(exc) from exc
        except Exception as exc:
            logger.error("Unexpected identification failure", exc_info=True)
            raise IdentificationFailedError(
                error_name=type(exc).__name__,
                error_message=str(exc)[:200],
            ) from exc

        self._transition(IdentifyState.SANITIZING)
        return result

    def _transition(self, new_state: IdentifyState) -> None:
        logger.debug("Identify state change", from_state=self.state.value, to_state=new_state.value)
        self.state = new_state


def map_inference_error(exc: ExternalAPIError) -> MedPlantException:
    """Translate a classified provider failure into the user-facing taxonomy."""
    if exc.category == ErrorCategory.CONFIGURATION:
        return ServerMisconfiguredError(CREDENTIAL_SETTING)
    if exc.category == ErrorCategory.RATE_LIMITED:
        return RateLimitedError()
    if exc.category == ErrorCategory.NOT_FOUND:
        return ModelUnavailableError()

    logger.error(
        "Identification failed",
        category=exc.category.value,
        provider_status=exc.status,
        body=exc.body,
    )
    return IdentificationFailedError(error_name=type(exc).__name__, error_message=exc.message)


def normalize_mime_type(content_type: Optional[str]) -> str:
    """'Image/PNG; charset=x' -> 'image/png'"""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def describe_image(image: UploadedImage) -> Dict[str, Any]:
    """
    Loggable metadata for an upload. Pillow failures only downgrade the
    detail level; they never fail the request.
    """
    info: Dict[str, Any] = {
        "filename": image.filename,
        "mime_type": image.mime_type,
        "bytes": image.size,
    }
    try:
        with Image.open(io.BytesIO(image.content)) as img:
            info["format"] = img.format
            info["width"], info["height"] = img.size
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        logger.warning("Identify: could not read image metadata", reason=type(e).__name__)
    return info

# 📄 File: medplant/modules/plant_identification/domain/services/model_fallback.py
# 🧭 Purpose (Layman Explanation):
# If our main AI model is overloaded, we ask a lighter backup model once instead of giving up.
# Other problems (bad key, garbled answer) are reported straight away so they get fixed.
# 🧪 Purpose (Technical Summary):
# Single-level model fallback: primary model first, one attempt on the fallback model only when
# the failure classifies as UNAVAILABLE. No cascading, no looping between models.
# 🔗 Dependencies:
# shared.infrastructure.external_apis.errors (is_model_unavailable)
# 🔄 Connected Modules / Calls From:
# IdentificationService

from typing import Optional, Protocol

from medplant.modules.plant_identification.domain.models.identification import IdentificationResult
from medplant.shared.infrastructure.external_apis.errors import ExternalAPIError, is_model_unavailable
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)


class InferenceClient(Protocol):
    async def identify(
        self, image: bytes, mime_type: str, model: Optional[str] = None
    ) -> IdentificationResult:
        ...


class ModelFallbackPolicy:
    """
    Calls the primary model and, on an availability failure, the fallback model once.
    """

    def __init__(
        self,
        client: InferenceClient,
        primary_model: str,
        fallback_model: Optional[str] = None
    ):
        self.client = client
        self.primary_model = primary_model
        self.fallback_model = fallback_model

    async def identify_with_fallback(
        self,
        image: bytes,
        mime_type: str,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None
    ) -> IdentificationResult:
        primary = primary_model or self.primary_model
        fallback = fallback_model or self.fallback_model

        try:
            return await self.client.identify(image, mime_type, model=primary)
        except ExternalAPIError as exc:
            if not fallback or fallback == primary or not is_model_unavailable(exc):
                raise
            logger.warning(
                "Primary model unavailable, switching to fallback model",
                primary_model=primary,
                fallback_model=fallback,
                status=exc.status,
            )

        return await self.client.identify(image, mime_type, model=fallback)

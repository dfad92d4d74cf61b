# 📄 File: medplant/modules/plant_identification/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Builds the pieces the identify endpoint needs for each request: the AI client and the
# service that runs the whole identification.
# 🧪 Purpose (Technical Summary):
# FastAPI dependencies wiring Settings -> InferenceConfig -> GeminiInferenceClient ->
# IdentificationService. The client borrows the application-wide aiohttp session when one exists;
# tests replace get_inference_client through app.dependency_overrides.
# 🔗 Dependencies:
# FastAPI Depends/Request, shared.config.settings
# 🔄 Connected Modules / Calls From:
# plant_identification.presentation.api.v1.identify, tests

from typing import AsyncGenerator

from fastapi import Depends, Request

from medplant.modules.plant_identification.domain.services.identification_service import (
    IdentificationService,
)
from medplant.modules.plant_identification.infrastructure.external.gemini_client import (
    GeminiInferenceClient,
)
from medplant.shared.config.settings import get_settings


async def get_inference_client(request: Request) -> AsyncGenerator[GeminiInferenceClient, None]:
    """Per-request inference client built from an explicit config struct."""
    settings = get_settings()
    session = getattr(request.app.state, "http_session", None)
    client = GeminiInferenceClient(settings.get_inference_config(), session=session)
    try:
        yield client
    finally:
        await client.close()


def get_identification_service(
    client: GeminiInferenceClient = Depends(get_inference_client)
) -> IdentificationService:
    return IdentificationService.from_settings(get_settings(), client)

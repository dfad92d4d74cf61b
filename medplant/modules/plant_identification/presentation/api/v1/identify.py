# 📄 File: medplant/modules/plant_identification/presentation/api/v1/identify.py
# 🧭 Purpose (Layman Explanation):
# The web address the mobile app uploads a plant photo to.
# 🧪 Purpose (Technical Summary):
# POST /identify. Reads the raw request so the service can enforce the multipart, field-name and
# MIME rules itself and answer with the uniform envelope.
# 🔗 Dependencies:
# FastAPI APIRouter, presentation.dependencies
# 🔄 Connected Modules / Calls From:
# medplant.api.v1.router

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from medplant.modules.plant_identification.domain.services.identification_service import (
    IdentificationService,
)
from medplant.modules.plant_identification.presentation.api.schemas.identification_schemas import (
    ErrorResponse,
    IdentifyResponse,
)
from medplant.modules.plant_identification.presentation.dependencies import (
    get_identification_service,
)

identify_router = APIRouter()


@identify_router.post(
    "/identify",
    summary="Identify a plant from a photo",
    description="Upload one image (multipart field 'image'; JPEG, PNG or WebP) and receive a medicinal plant report.",
    responses={
        200: {"model": IdentifyResponse, "description": "Plant identified"},
        400: {"model": ErrorResponse, "description": "Invalid upload"},
        413: {"model": ErrorResponse, "description": "Image too large"},
        415: {"model": ErrorResponse, "description": "Unsupported image type"},
        429: {"model": ErrorResponse, "description": "Provider rate limit reached"},
        500: {"model": ErrorResponse, "description": "Misconfiguration or identification failure"},
    },
)
async def identify_plant(
    request: Request,
    service: IdentificationService = Depends(get_identification_service),
) -> JSONResponse:
    return await service.handle_identify_request(request)

# 📄 File: medplant/modules/plant_identification/presentation/api/schemas/identification_schemas.py
# 🧭 Purpose (Layman Explanation):
# Describes, for the API documentation page, what a successful identify answer and an error look like.
# 🧪 Purpose (Technical Summary):
# Pydantic response schemas for OpenAPI: the success envelope wrapping IdentificationResult and
# the shared failure envelope.
# 🔗 Dependencies:
# pydantic, plant_identification.domain.models
# 🔄 Connected Modules / Calls From:
# plant_identification.presentation.api.v1.identify (OpenAPI responses), reports and payments routes

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from medplant.modules.plant_identification.domain.models.identification import IdentificationResult


class IdentifiedData(BaseModel):
    identified: IdentificationResult


class IdentifyResponse(BaseModel):
    """Success envelope for POST /identify"""
    success: bool = True
    data: IdentifiedData


class ErrorBody(BaseModel):
    code: int = Field(..., description="HTTP status code")
    type: str = Field(..., description="Stable error type, e.g. RATE_LIMITED")
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Failure envelope shared by every endpoint"""
    success: bool = False
    error: ErrorBody

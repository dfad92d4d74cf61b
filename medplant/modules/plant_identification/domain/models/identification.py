# 📄 File: medplant/modules/plant_identification/domain/models/identification.py
# 🧭 Purpose (Layman Explanation):
# Describes what a plant identification answer looks like (name, confidence, medicinal uses,
# warnings, where it grows) and what an uploaded photo looks like before we send it off.
# 🧪 Purpose (Technical Summary):
# Pydantic domain models for the sanitized IdentificationResult contract (camelCase wire aliases)
# and the per-request UploadedImage value object.
# 🔗 Dependencies:
# pydantic, dataclasses, enum
# 🔄 Connected Modules / Calls From:
# response_validator.py, gemini_client.py, model_fallback.py, identification_service.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "Unknown"


class ConfidenceLevel(str, Enum):
    """Enumerated identification confidence"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class PlantIdentity(BaseModel):
    """Who the plant is."""

    model_config = ConfigDict(populate_by_name=True)

    common_name: str = Field(default=UNKNOWN, alias="commonName")
    scientific_name: str = Field(default=UNKNOWN, alias="scientificName")
    family: str = UNKNOWN
    confidence: ConfidenceLevel = ConfidenceLevel.LOW


class Habitat(BaseModel):
    """Where the plant grows."""

    distribution: str = UNKNOWN
    environment: str = UNKNOWN


class IdentificationResult(BaseModel):
    """
    Sanitized plant identification report.

    Every list is present (possibly empty) and every string is present
    (a sentinel when the provider omitted it). Instances are only ever
    produced by the response validator, never from raw provider output.
    """

    model_config = ConfigDict(populate_by_name=True)

    plant: PlantIdentity = Field(default_factory=PlantIdentity)
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0, alias="confidenceScore")
    medicinal_uses: List[str] = Field(default_factory=list, alias="medicinalUses")
    active_compounds: List[str] = Field(default_factory=list, alias="activeCompounds")
    side_effects: List[str] = Field(default_factory=list, alias="sideEffects")
    warnings: List[str] = Field(default_factory=list)
    habitat: Habitat = Field(default_factory=Habitat)
    detailed_info: str = Field(default="", alias="detailedInfo")
    references: List[str] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the mobile client reads."""
        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True)
class UploadedImage:
    """
    One uploaded photo, alive only for the duration of a request.

    Never persisted.
    """

    content: bytes
    mime_type: str
    filename: Optional[str] = None
    field_name: str = "image"

    @property
    def size(self) -> int:
        return len(self.content)

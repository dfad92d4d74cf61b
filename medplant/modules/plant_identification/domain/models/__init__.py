from .identification import (
    UNKNOWN,
    ConfidenceLevel,
    Habitat,
    IdentificationResult,
    PlantIdentity,
    UploadedImage,
)

__all__ = [
    "UNKNOWN",
    "ConfidenceLevel",
    "Habitat",
    "IdentificationResult",
    "PlantIdentity",
    "UploadedImage",
]

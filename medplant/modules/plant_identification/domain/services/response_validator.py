# 📄 File: medplant/modules/plant_identification/domain/services/response_validator.py
# 🧭 Purpose (Layman Explanation):
# The AI sometimes answers sloppily: missing names, numbers where words should be, endless lists.
# This file cleans every answer into the exact same tidy shape before the app ever sees it.
# 🧪 Purpose (Technical Summary):
# Pure, total coercion of an arbitrary parsed JSON value into IdentificationResult: trims strings,
# substitutes sentinels, clamps and maps confidence, filters and caps lists, keeps only http(s)
# references. Never raises.
# 🔗 Dependencies:
# math, plant_identification.domain.models
# 🔄 Connected Modules / Calls From:
# GeminiInferenceClient (after JSON extraction), unit tests

import math
from typing import Any, Dict, List, Optional, Tuple

from medplant.modules.plant_identification.domain.models.identification import (
    UNKNOWN,
    ConfidenceLevel,
    Habitat,
    IdentificationResult,
    PlantIdentity,
)

DEFAULT_LIST_CAP = 10

LABEL_SCORES = {
    ConfidenceLevel.HIGH: 0.9,
    ConfidenceLevel.MEDIUM: 0.6,
    ConfidenceLevel.LOW: 0.3,
}
HIGH_THRESHOLD = 0.75
MEDIUM_THRESHOLD = 0.4


def validate(raw: Any, list_cap: int = DEFAULT_LIST_CAP) -> IdentificationResult:
    """
    Coerce untrusted provider output into an IdentificationResult.

    Accepts the nested ``plant`` schema and, when it is missing, the flat
    legacy keys (``species``/``commonName``/``scientificName``/``cautions``).

    Args:
        raw: Any value produced by ``json.loads``
        list_cap: Maximum entries kept per list field

    Returns:
        IdentificationResult: fully populated, bounded record
    """
    data = raw if isinstance(raw, dict) else {}
    plant = data.get("plant") if isinstance(data.get("plant"), dict) else {}

    label, score = coerce_confidence(
        plant.get("confidence") if "confidence" in plant else data.get("confidence")
    )

    identity = PlantIdentity(
        common_name=_first_text(
            plant.get("commonName"), data.get("commonName"), data.get("species")
        ) or UNKNOWN,
        scientific_name=_first_text(
            plant.get("scientificName"), data.get("scientificName")
        ) or UNKNOWN,
        family=_first_text(plant.get("family"), data.get("family")) or UNKNOWN,
        confidence=label,
    )

    warnings = data.get("warnings")
    if not isinstance(warnings, list):
        warnings = data.get("cautions")

    return IdentificationResult(
        plant=identity,
        confidence_score=score,
        medicinal_uses=coerce_string_list(data.get("medicinalUses"), list_cap),
        active_compounds=coerce_string_list(data.get("activeCompounds"), list_cap),
        side_effects=coerce_string_list(data.get("sideEffects"), list_cap),
        warnings=coerce_string_list(warnings, list_cap),
        habitat=_coerce_habitat(data.get("habitat")),
        detailed_info=_first_text(data.get("detailedInfo")) or "",
        references=_coerce_references(data.get("references"), list_cap),
    )


def coerce_confidence(value: Any) -> Tuple[ConfidenceLevel, float]:
    """
    Map a label or a number to a (label, score) pair.

    Labels are case-insensitive; numbers are clamped to [0, 1]; numeric
    strings are parsed. Anything else is (Low, 0.0).
    """
    if isinstance(value, str):
        text = value.strip()
        for level in ConfidenceLevel:
            if text.lower() == level.value.lower():
                return level, LABEL_SCORES[level]
        try:
            value = float(text)
        except ValueError:
            return ConfidenceLevel.LOW, 0.0

    # bool is an int subclass; true/false is not a confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return ConfidenceLevel.LOW, 0.0
    try:
        number = float(value)
    except OverflowError:
        number = math.inf if value > 0 else -math.inf
    if math.isnan(number):
        return ConfidenceLevel.LOW, 0.0

    score = min(max(number, 0.0), 1.0)
    if score >= HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH, score
    if score >= MEDIUM_THRESHOLD:
        return ConfidenceLevel.MEDIUM, score
    return ConfidenceLevel.LOW, score


def coerce_string_list(value: Any, cap: int = DEFAULT_LIST_CAP) -> List[str]:
    """
    Keep the non-empty trimmed string form of each scalar element, up to ``cap``.

    Nested objects, arrays and nulls are dropped rather than stringified.
    """
    if not isinstance(value, list) or cap <= 0:
        return []

    items: List[str] = []
    for element in value:
        text = _scalar_text(element)
        if text:
            items.append(text)
            if len(items) >= cap:
                break
    return items


def _coerce_references(value: Any, cap: int) -> List[str]:
    urls = [
        item for item in coerce_string_list(value, cap=len(value) if isinstance(value, list) else 0)
        if item.lower().startswith(("http://", "https://"))
    ]
    return urls[:cap]


def _coerce_habitat(value: Any) -> Habitat:
    if isinstance(value, str):
        return Habitat(distribution=value.strip() or UNKNOWN)
    if not isinstance(value, dict):
        return Habitat()
    return Habitat(
        distribution=_first_text(value.get("distribution")) or UNKNOWN,
        environment=_first_text(value.get("environment")) or UNKNOWN,
    )


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(value)
    return ""


def _first_text(*candidates: Any) -> Optional[str]:
    """First candidate that is a string with visible content, trimmed."""
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def validation_summary(result: IdentificationResult) -> Dict[str, Any]:
    """Small, loggable digest of a sanitized result."""
    return {
        "common_name": result.plant.common_name,
        "confidence": result.plant.confidence.value,
        "medicinal_uses": len(result.medicinal_uses),
        "warnings": len(result.warnings),
        "references": len(result.references),
    }

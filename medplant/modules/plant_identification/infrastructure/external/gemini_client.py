# 📄 File: medplant/modules/plant_identification/infrastructure/external/gemini_client.py

# 🧭 Purpose (Layman Explanation):
# Sends the plant photo to Google's Gemini AI and asks it, very strictly, to answer in a fixed
# JSON format. If Gemini is busy or slow it waits a little and tries again, a limited number of times.

# 🧪 Purpose (Technical Summary):
# Inference client for the Gemini generateContent REST API. Fails fast on a missing key, issues
# each attempt under a cancelling per-attempt timeout, retries transient failures with capped
# quadratic backoff (tenacity), strips Markdown fences from the model text, parses JSON once
# (parse failures are terminal) and sanitizes through the response validator.

# 🔗 Dependencies:
# - aiohttp (via APIClient): HTTP transport
# - tenacity: AsyncRetrying retry loop
# - medplant.shared.infrastructure.external_apis: error classification

# 🔄 Connected Modules / Calls From:
# Used by: ModelFallbackPolicy, IdentificationService (through the presentation dependencies)

import asyncio
import base64
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from medplant.modules.plant_identification.domain.models.identification import IdentificationResult
from medplant.modules.plant_identification.domain.services.response_validator import (
    validate,
    validation_summary,
)
from medplant.shared.config.settings import InferenceConfig
from medplant.shared.infrastructure.external_apis.api_client import APIClient
from medplant.shared.infrastructure.external_apis.errors import (
    APIConfigurationError,
    APIResponseError,
    APITimeoutError,
    ErrorCategory,
    ExternalAPIError,
    is_transient,
)
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)

API_NAME = "gemini"

IDENTIFICATION_PROMPT = """You are an expert botanist specialising in medicinal and Ayurvedic plants.
Identify the plant in this image and reply with JSON only. No Markdown, no commentary.

Use exactly this schema:
{
  "plant": {
    "commonName": "string",
    "scientificName": "string",
    "family": "string",
    "confidence": "High" | "Medium" | "Low"
  },
  "medicinalUses": ["string"],
  "activeCompounds": ["string"],
  "sideEffects": ["string"],
  "warnings": ["string"],
  "habitat": {"distribution": "string", "environment": "string"},
  "detailedInfo": "string",
  "references": ["https://..."]
}

If the image does not show a plant, set commonName to "Unknown" and confidence to "Low".
Keep every list to at most 10 short entries."""

# ```json ... ``` or ``` ... ```, first block wins
CODE_FENCE_PATTERN = re.compile(r"```(?:json)?[ \t]*\n?([\s\S]*?)\n?```", re.IGNORECASE)

SleepFunc = Callable[[float], Awaitable[Any]]


class GeminiInferenceClient(APIClient):
    """
    Gemini multimodal inference client.

    Configuration arrives as an explicit InferenceConfig; the HTTP session and
    the sleep function can be injected so tests never touch the network or
    the real clock.
    """

    def __init__(
        self,
        config: InferenceConfig,
        session: Optional[Any] = None,
        sleep: Optional[SleepFunc] = None
    ):
        super().__init__(
            base_url=config.api_url,
            api_name=API_NAME,
            timeout=config.timeout_seconds,
            session=session,
        )
        self.config = config
        self._sleep = sleep or asyncio.sleep
        self.last_attempts = 0

    def _get_default_headers(self) -> Dict[str, str]:
        headers = super()._get_default_headers()
        headers['Content-Type'] = 'application/json'
        if self.config.api_key:
            headers['x-goog-api-key'] = self.config.api_key
        return headers

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def identify(
        self,
        image: bytes,
        mime_type: str,
        model: Optional[str] = None
    ) -> IdentificationResult:
        """
        Identify the plant in ``image``.

        Args:
            image: Raw image bytes
            mime_type: Declared MIME type, forwarded as the inline data type
            model: Model identifier, defaults to the configured primary model

        Returns:
            IdentificationResult: sanitized result

        Raises:
            APIConfigurationError: no API key (raised before any request)
            ExternalAPIError: last failure after the retry budget, or a terminal failure
        """
        if not self.config.api_key:
            raise APIConfigurationError("GEMINI_API_KEY is not configured", api_name=API_NAME)

        model = model or self.config.model
        body = build_request_body(image, mime_type, self.config.temperature)
        self.last_attempts = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=self._backoff_seconds,
            retry=retry_if_exception(is_transient),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger.logger, logging.WARNING),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                self.last_attempts = attempt.retry_state.attempt_number
                text = await self._generate(model, body)

        payload = parse_model_json(text)
        result = validate(payload, list_cap=self.config.result_list_cap)

        logger.info(
            "Gemini identification succeeded",
            model=model,
            attempts=self.last_attempts,
            **validation_summary(result),
        )
        return result

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _backoff_seconds(self, retry_state) -> float:
        """min(base * attempt², cap), attempt being the 1-based attempt that just failed."""
        attempt = retry_state.attempt_number
        delay_ms = min(self.config.backoff_base_ms * attempt * attempt, self.config.backoff_cap_ms)
        return delay_ms / 1000.0

    async def _generate(self, model: str, body: Dict[str, Any]) -> str:
        """One attempt; the timeout cancels the in-flight request."""
        url = self._build_url(f"models/{model}:generateContent")
        session = await self._get_session()

        try:
            text = await asyncio.wait_for(
                self._post_generate(session, url, body),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Gemini attempt timed out", model=model, timeout_ms=self.config.timeout_ms)
            raise APITimeoutError(
                f"Gemini request timed out after {self.config.timeout_ms} ms",
                api_name=API_NAME,
            ) from None

        return text

    async def _post_generate(self, session: Any, url: str, body: Dict[str, Any]) -> str:
        async with session.post(url, json=body, headers=self._get_default_headers()) as response:
            status = response.status
            if status < 200 or status >= 300:
                raise self._error_from_response(status, await response.text())

            try:
                envelope = await response.json(content_type=None)
            except ValueError as e:
                raise APIResponseError(
                    f"Gemini returned a non-JSON envelope: {e}", api_name=API_NAME
                ) from e

        text = extract_text(envelope)
        if not text:
            raise ExternalAPIError(
                "No text returned from Gemini",
                category=ErrorCategory.TRANSIENT,
                status=status,
                api_name=API_NAME,
            )
        return text


def build_request_body(image: bytes, mime_type: str, temperature: float) -> Dict[str, Any]:
    """generateContent body with the prompt and the image as inline base64 data."""
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": IDENTIFICATION_PROMPT},
                    {
                        "inline_data": {
                            "mime_type": mime_type,
                            "data": base64.b64encode(image).decode("ascii"),
                        }
                    },
                ],
            }
        ],
        "generationConfig": {"temperature": temperature},
    }


def extract_text(envelope: Any) -> str:
    """
    Concatenate the text parts of the first candidate.

    Returns an empty string for any envelope that does not have the
    ``candidates[0].content.parts[].text`` shape.
    """
    if not isinstance(envelope, dict):
        return ""
    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    parts = content.get("parts") if isinstance(content.get("parts"), list) else []

    texts = [
        part["text"] for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
    ]
    return "".join(texts).strip()


def strip_code_fences(text: str) -> str:
    match = CODE_FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_model_json(text: str) -> Any:
    """
    Parse the model text as JSON after removing Markdown fences.

    Falls back to the outermost ``{...}`` span when the model wrapped the
    object in prose. Failure is terminal: the same prompt would produce the
    same unparseable output.

    Raises:
        APIResponseError: text is not JSON
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(cleaned[start:end + 1])
        except ValueError:
            pass

    logger.warning("Gemini output is not valid JSON", preview=cleaned[:200])
    raise APIResponseError("Model output is not valid JSON", body=text, api_name=API_NAME)

import base64
import dataclasses

import aiohttp
import pytest

from medplant.modules.plant_identification.infrastructure.external.gemini_client import (
    GeminiInferenceClient,
    build_request_body,
    extract_text,
    parse_model_json,
    strip_code_fences,
)
from medplant.shared.infrastructure.external_apis.errors import (
    APIConfigurationError,
    APIResponseError,
    APITimeoutError,
    ErrorCategory,
    ExternalAPIError,
    classify_status,
    is_transient,
)

from fakes import ALOE_RESULT, FakeResponse, FakeSession, gemini_envelope, gemini_error, gemini_ok


def make_client(config, responses, sleep):
    session = FakeSession(responses)
    return GeminiInferenceClient(config, session=session, sleep=sleep), session


@pytest.mark.asyncio
async def test_success_returns_sanitized_result(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(inference_config, [gemini_ok(ALOE_RESULT)], sleep_recorder)

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Aloe vera"
    assert client.last_attempts == 1
    assert sleep_recorder.delays == []

    call = session.calls[0]
    assert call["url"] == "https://gemini.test/v1beta/models/gemini-primary:generateContent"
    assert call["headers"]["x-goog-api-key"] == "test-gemini-key"
    inline = call["json"]["contents"][0]["parts"][1]["inline_data"]
    assert inline["mime_type"] == "image/png"
    assert base64.b64decode(inline["data"]) == png_bytes


@pytest.mark.asyncio
async def test_unavailable_then_success_retries_with_backoff(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(
        inference_config,
        [gemini_error(503, "UNAVAILABLE"), gemini_ok(ALOE_RESULT)],
        sleep_recorder,
    )

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Aloe vera"
    assert len(session.calls) == 2
    assert client.last_attempts == 2
    assert sleep_recorder.delays == [1.0]


@pytest.mark.asyncio
async def test_backoff_is_quadratic_and_capped(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(
        inference_config,
        [gemini_error(500, "INTERNAL")] * 3,
        sleep_recorder,
    )

    with pytest.raises(ExternalAPIError) as exc_info:
        await client.identify(png_bytes, "image/png")

    assert exc_info.value.category == ErrorCategory.TRANSIENT
    assert len(session.calls) == 3
    assert sleep_recorder.delays == [1.0, 3.0]


@pytest.mark.asyncio
async def test_unauthorized_is_not_retried(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(inference_config, [gemini_error(401, "UNAUTHENTICATED")], sleep_recorder)

    with pytest.raises(ExternalAPIError) as exc_info:
        await client.identify(png_bytes, "image/png")

    assert exc_info.value.category == ErrorCategory.UNAUTHORIZED
    assert exc_info.value.status == 401
    assert len(session.calls) == 1
    assert sleep_recorder.delays == []


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_call(inference_config, sleep_recorder, png_bytes):
    config = dataclasses.replace(inference_config, api_key=None)
    client, session = make_client(config, [], sleep_recorder)

    with pytest.raises(APIConfigurationError):
        await client.identify(png_bytes, "image/png")

    assert session.calls == []


@pytest.mark.asyncio
async def test_fenced_json_is_parsed(inference_config, sleep_recorder, png_bytes):
    text = "```json\n" + '{"plant": {"commonName": "Neem", "confidence": "Medium"}}' + "\n```"
    client, _ = make_client(
        inference_config, [FakeResponse(200, payload=gemini_envelope(text))], sleep_recorder
    )

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Neem"
    assert result.plant.confidence.value == "Medium"


@pytest.mark.asyncio
async def test_unparseable_model_output_is_terminal(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(
        inference_config,
        [FakeResponse(200, payload=gemini_envelope("I think this is a fern."))],
        sleep_recorder,
    )

    with pytest.raises(APIResponseError) as exc_info:
        await client.identify(png_bytes, "image/png")

    assert exc_info.value.category == ErrorCategory.BAD_RESPONSE
    assert len(session.calls) == 1


@pytest.mark.asyncio
async def test_empty_candidate_text_is_retried(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(
        inference_config,
        [FakeResponse(200, payload={"candidates": []}), gemini_ok(ALOE_RESULT)],
        sleep_recorder,
    )

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Aloe vera"
    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_slow_attempt_times_out_and_is_retried(inference_config, sleep_recorder, png_bytes):
    config = dataclasses.replace(inference_config, timeout_ms=20, max_retries=1)
    client, session = make_client(
        config,
        [FakeResponse(200, payload=gemini_envelope("{}"), delay=1.0), gemini_ok(ALOE_RESULT)],
        sleep_recorder,
    )

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Aloe vera"
    assert len(session.calls) == 2
    assert sleep_recorder.delays == [1.0]


@pytest.mark.asyncio
async def test_timeout_surfaces_after_budget(inference_config, sleep_recorder, png_bytes):
    config = dataclasses.replace(inference_config, timeout_ms=20, max_retries=0)
    client, _ = make_client(
        config, [FakeResponse(200, payload=gemini_envelope("{}"), delay=1.0)], sleep_recorder
    )

    with pytest.raises(APITimeoutError) as exc_info:
        await client.identify(png_bytes, "image/png")

    assert is_transient(exc_info.value)


@pytest.mark.asyncio
async def test_connection_errors_are_retried(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(
        inference_config,
        [aiohttp.ClientConnectionError("reset by peer"), gemini_ok(ALOE_RESULT)],
        sleep_recorder,
    )

    result = await client.identify(png_bytes, "image/png")

    assert result.plant.common_name == "Aloe vera"
    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_explicit_model_overrides_primary(inference_config, sleep_recorder, png_bytes):
    client, session = make_client(inference_config, [gemini_ok(ALOE_RESULT)], sleep_recorder)

    await client.identify(png_bytes, "image/png", model="gemini-lite")

    assert session.calls[0]["url"].endswith("/models/gemini-lite:generateContent")


@pytest.mark.asyncio
async def test_borrowed_session_is_not_closed(inference_config, sleep_recorder):
    client, session = make_client(inference_config, [], sleep_recorder)

    await client.close()

    assert session.closed is False


def test_error_body_is_truncated():
    error = ExternalAPIError("boom", body="x" * 2000)

    assert error.body.endswith("...[truncated]")
    assert len(error.body) == 500 + len("...[truncated]")


@pytest.mark.parametrize(
    "status, provider_status, category",
    [
        (200, None, None),
        (429, None, ErrorCategory.RATE_LIMITED),
        (503, None, ErrorCategory.UNAVAILABLE),
        (502, None, ErrorCategory.TRANSIENT),
        (403, None, ErrorCategory.UNAUTHORIZED),
        (404, None, ErrorCategory.NOT_FOUND),
        (400, None, ErrorCategory.TERMINAL),
        (429, "RESOURCE_EXHAUSTED", ErrorCategory.RATE_LIMITED),
        (500, "UNAVAILABLE", ErrorCategory.UNAVAILABLE),
        (400, "NOT_FOUND", ErrorCategory.NOT_FOUND),
    ],
)
def test_classify_status(status, provider_status, category):
    assert classify_status(status, provider_status) == category


def test_strip_code_fences_variants():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_model_json_recovers_object_wrapped_in_prose():
    assert parse_model_json('Here you go: {"plant": {"commonName": "Tulsi"}} Hope it helps!') == {
        "plant": {"commonName": "Tulsi"}
    }


def test_extract_text_skips_thought_parts():
    envelope = {
        "candidates": [{
            "content": {"parts": [{"text": "thinking...", "thought": True}, {"text": '{"a": 1}'}]}
        }]
    }

    assert extract_text(envelope) == '{"a": 1}'
    assert extract_text({"promptFeedback": {}}) == ""
    assert extract_text(None) == ""


def test_request_body_carries_temperature():
    body = build_request_body(b"abc", "image/jpeg", 0.2)

    assert body["generationConfig"] == {"temperature": 0.2}
    assert body["contents"][0]["parts"][1]["inline_data"]["data"] == base64.b64encode(b"abc").decode()

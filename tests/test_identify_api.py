import asyncio
import warnings
from unittest.mock import AsyncMock

import pytest

from medplant.modules.plant_identification.domain.services.identification_service import (
    IdentificationService,
    describe_image,
    normalize_mime_type,
)
from medplant.modules.plant_identification.domain.services.model_fallback import ModelFallbackPolicy
from medplant.modules.plant_identification.domain.models.identification import UploadedImage
from medplant.modules.plant_identification.infrastructure.external.gemini_client import (
    GeminiInferenceClient,
)
from medplant.modules.plant_identification.presentation.dependencies import (
    get_identification_service,
    get_inference_client,
)

from fakes import (
    ALOE_RESULT,
    FakeResponse,
    FakeSession,
    gemini_envelope,
    gemini_error,
    gemini_ok,
    make_png,
)

ALLOWED = frozenset({"image/jpeg", "image/png", "image/webp", "application/octet-stream"})


def build_service(client, credential_configured=True, max_image_size=10 * 1024 * 1024, deadline_ms=5000):
    return IdentificationService(
        fallback_policy=ModelFallbackPolicy(client, "gemini-primary", "gemini-lite"),
        allowed_mime_types=ALLOWED,
        max_image_size=max_image_size,
        deadline_ms=deadline_ms,
        credential_configured=credential_configured,
    )


def use_service(app, service):
    app.dependency_overrides[get_identification_service] = lambda: service


def gemini_client(config, responses, sleep):
    return GeminiInferenceClient(config, session=FakeSession(responses), sleep=sleep)


def image_upload(content, mime="image/png", field="image", filename="leaf.png"):
    return {field: (filename, content, mime)}


def assert_envelope(response, status, error_type):
    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == status
    assert body["error"]["type"] == error_type
    assert isinstance(body["error"]["message"], str)
    return body["error"]


# =============================================================================
# UPLOAD VALIDATION
# =============================================================================

@pytest.mark.asyncio
async def test_non_multipart_request_is_rejected_without_inference(app, client):
    inference = AsyncMock()
    use_service(app, build_service(inference))

    response = await client.post("/identify", json={"image": "base64..."})

    assert_envelope(response, 400, "INVALID_REQUEST")
    inference.identify.assert_not_called()


@pytest.mark.asyncio
async def test_unsupported_mime_type_is_415(app, client):
    inference = AsyncMock()
    use_service(app, build_service(inference))

    response = await client.post("/identify", files=image_upload(b"GIF89a...", mime="image/gif", filename="x.gif"))

    error = assert_envelope(response, 415, "UNSUPPORTED_MEDIA_TYPE")
    assert "image/png" in error["details"]["allowed"]
    inference.identify.assert_not_called()


@pytest.mark.asyncio
async def test_wrong_field_name_is_rejected(app, client, png_bytes):
    inference = AsyncMock()
    use_service(app, build_service(inference))

    response = await client.post("/identify", files=image_upload(png_bytes, field="photo"))

    error = assert_envelope(response, 400, "INVALID_REQUEST")
    assert error["details"]["received_field"] == "photo"
    inference.identify.assert_not_called()


@pytest.mark.asyncio
async def test_missing_file_is_rejected(app, client):
    use_service(app, build_service(AsyncMock()))

    body = (
        b"--boundary\r\n"
        b'Content-Disposition: form-data; name="note"\r\n\r\n'
        b"no file here\r\n"
        b"--boundary--\r\n"
    )

    response = await client.post(
        "/identify",
        content=body,
        headers={"Content-Type": "multipart/form-data; boundary=boundary"},
    )

    error = assert_envelope(response, 400, "INVALID_REQUEST")
    assert error["details"]["field"] == "image"


@pytest.mark.asyncio
async def test_more_than_one_file_is_rejected(app, client, png_bytes):
    use_service(app, build_service(AsyncMock()))

    response = await client.post(
        "/identify",
        files=[("image", ("a.png", png_bytes, "image/png")), ("image", ("b.png", png_bytes, "image/png"))],
    )

    assert_envelope(response, 400, "INVALID_REQUEST")


@pytest.mark.asyncio
async def test_empty_file_is_rejected(app, client):
    inference = AsyncMock()
    use_service(app, build_service(inference))

    response = await client.post("/identify", files=image_upload(b""))

    assert_envelope(response, 400, "INVALID_REQUEST")
    inference.identify.assert_not_called()


@pytest.mark.asyncio
async def test_oversized_file_is_413(app, client, png_bytes):
    inference = AsyncMock()
    use_service(app, build_service(inference, max_image_size=64))

    response = await client.post("/identify", files=image_upload(png_bytes + b"\0" * 64))

    assert_envelope(response, 413, "INVALID_REQUEST")
    inference.identify.assert_not_called()


@pytest.mark.asyncio
async def test_oversized_file_emits_no_status_deprecation_warning(app, client, png_bytes):
    use_service(app, build_service(AsyncMock(), max_image_size=64))

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        response = await client.post("/identify", files=image_upload(png_bytes + b"\0" * 64))

    assert response.status_code == 413
    assert not [w for w in caught if "HTTP_413" in str(w.message)]


@pytest.mark.asyncio
async def test_missing_credential_is_reported_not_mocked(app, client, png_bytes):
    inference = AsyncMock()
    use_service(app, build_service(inference, credential_configured=False))

    response = await client.post("/identify", files=image_upload(png_bytes))

    error = assert_envelope(response, 500, "SERVER_MISCONFIGURED")
    assert "GEMINI_API_KEY" in error["message"]
    assert "test-gemini-key" not in response.text
    inference.identify.assert_not_called()


# =============================================================================
# INFERENCE OUTCOMES
# =============================================================================

@pytest.mark.asyncio
async def test_identifies_aloe_vera_end_to_end(app, client, png_bytes, inference_config, sleep_recorder):
    use_service(app, build_service(gemini_client(inference_config, [gemini_ok(ALOE_RESULT)], sleep_recorder)))

    response = await client.post("/identify", files=image_upload(png_bytes))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    identified = body["data"]["identified"]
    assert identified["plant"]["commonName"] == "Aloe vera"
    assert identified["plant"]["confidence"] == "High"
    assert identified["confidenceScore"] == pytest.approx(0.9)
    assert identified["medicinalUses"] == ["Soothes minor burns", "Moisturises skin"]
    assert identified["habitat"]["distribution"] == "Arabian Peninsula"


@pytest.mark.asyncio
async def test_fenced_partial_answer_is_defaulted(app, client, inference_config, sleep_recorder):
    fenced = '```json\n{"plant":{"commonName":"Aloe vera","confidence":"High"}}\n```'
    responses = [FakeResponse(200, payload=gemini_envelope(fenced))]
    use_service(app, build_service(gemini_client(inference_config, responses, sleep_recorder)))

    response = await client.post("/identify", files=image_upload(make_png((1, 1))))

    assert response.status_code == 200
    identified = response.json()["data"]["identified"]
    assert identified["plant"]["commonName"] == "Aloe vera"
    assert identified["plant"]["scientificName"] == "Unknown"
    assert identified["plant"]["family"] == "Unknown"
    assert identified["medicinalUses"] == []
    assert identified["activeCompounds"] == []
    assert identified["sideEffects"] == []
    assert identified["warnings"] == []
    assert identified["references"] == []
    assert identified["habitat"] == {"distribution": "Unknown", "environment": "Unknown"}
    assert identified["detailedInfo"] == ""


@pytest.mark.asyncio
async def test_octet_stream_uploads_are_accepted(app, client, png_bytes, inference_config, sleep_recorder):
    use_service(app, build_service(gemini_client(inference_config, [gemini_ok(ALOE_RESULT)], sleep_recorder)))

    response = await client.post(
        "/identify", files=image_upload(png_bytes, mime="application/octet-stream", filename="leaf")
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_provider_rate_limit_maps_to_429(app, client, png_bytes, inference_config, sleep_recorder):
    responses = [gemini_error(429, "RESOURCE_EXHAUSTED")] * 3
    use_service(app, build_service(gemini_client(inference_config, responses, sleep_recorder)))

    response = await client.post("/identify", files=image_upload(png_bytes))

    error = assert_envelope(response, 429, "RATE_LIMITED")
    assert error["details"]["retry_after"] == 30
    assert sleep_recorder.delays == [1.0, 3.0]


@pytest.mark.asyncio
async def test_unknown_model_maps_to_model_unavailable(app, client, png_bytes, inference_config, sleep_recorder):
    use_service(app, build_service(gemini_client(inference_config, [gemini_error(404, "NOT_FOUND")], sleep_recorder)))

    response = await client.post("/identify", files=image_upload(png_bytes))

    assert_envelope(response, 500, "MODEL_UNAVAILABLE")


@pytest.mark.asyncio
async def test_unparseable_output_is_identification_failed(app, client, png_bytes, inference_config, sleep_recorder):
    responses = [FakeResponse(200, payload=gemini_envelope("Looks like basil to me."))]
    use_service(app, build_service(gemini_client(inference_config, responses, sleep_recorder)))

    response = await client.post("/identify", files=image_upload(png_bytes))

    error = assert_envelope(response, 500, "IDENTIFICATION_FAILED")
    assert error["details"]["name"] == "APIResponseError"


@pytest.mark.asyncio
async def test_overall_deadline_is_enforced(app, client, png_bytes):
    class SlowClient:
        async def identify(self, image, mime_type, model=None):
            await asyncio.sleep(5)

    use_service(app, build_service(SlowClient(), deadline_ms=20))

    response = await client.post("/identify", files=image_upload(png_bytes))

    error = assert_envelope(response, 500, "IDENTIFICATION_FAILED")
    assert error["details"]["name"] == "IdentificationTimeout"


@pytest.mark.asyncio
async def test_default_wiring_uses_configured_client(app, client, png_bytes, inference_config, sleep_recorder):
    session = FakeSession([gemini_ok(ALOE_RESULT)])

    async def override_client():
        yield GeminiInferenceClient(inference_config, session=session, sleep=sleep_recorder)

    app.dependency_overrides[get_inference_client] = override_client

    response = await client.post("/identify", files=image_upload(png_bytes))

    assert response.status_code == 200
    assert len(session.calls) == 1


@pytest.mark.asyncio
async def test_request_id_is_echoed(app, client, png_bytes):
    use_service(app, build_service(AsyncMock(), credential_configured=False))

    response = await client.post("/identify", files=image_upload(png_bytes), headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


# =============================================================================
# HELPERS
# =============================================================================

def test_normalize_mime_type():
    assert normalize_mime_type("Image/PNG; charset=binary") == "image/png"
    assert normalize_mime_type(None) == ""


def test_describe_image_tolerates_non_images(png_bytes):
    assert describe_image(UploadedImage(content=png_bytes, mime_type="image/png"))["width"] == 32

    info = describe_image(UploadedImage(content=b"not an image", mime_type="application/octet-stream"))
    assert info["bytes"] == len(b"not an image")
    assert "format" not in info

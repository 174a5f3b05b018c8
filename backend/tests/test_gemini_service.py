"""
Request adapter tests

These tests drive GeminiService against an in-process httpx transport, so the
request body sent to Gemini and the handling of its responses can be checked
without network access.
"""
import json
import httpx
import pytest

from models.studio import ImagePayload, ResultOutcome, StyleVariant
from services.gemini_service import GeminiService, STYLE_INSTRUCTIONS, extract_first_inline_image


def make_service(handler, api_key="test-key"):
    return GeminiService(api_key=api_key, transport=httpx.MockTransport(handler))


class Recorder:
    """Transport handler that records requests and replays a canned response"""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payload(self):
        return json.loads(self.requests[-1].content)


@pytest.mark.unit
class TestExtractFirstInlineImage:
    """Tests for picking the image out of a generateContent response"""

    def test_first_image_part_wins(self, gemini_response):
        body = gemini_response(
            {"text": "Here is your image"},
            {"inlineData": {"mimeType": "image/png", "data": "Zmlyc3Q="}},
            {"inlineData": {"mimeType": "image/png", "data": "c2Vjb25k"}}
        )

        image = extract_first_inline_image(body, "image/jpeg")

        assert image == ImagePayload(data="Zmlyc3Q=", mime_type="image/png")

    def test_text_only_response_is_absent(self, gemini_response):
        body = gemini_response({"text": "I cannot draw that"})

        assert extract_first_inline_image(body, "image/png") is None

    def test_no_candidates_is_absent(self):
        assert extract_first_inline_image({}, "image/png") is None
        assert extract_first_inline_image({"candidates": []}, "image/png") is None

    def test_only_first_candidate_is_read(self):
        body = {
            "candidates": [
                {"content": {"parts": [{"text": "no image here"}]}},
                {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "c2Vjb25k"}}]}}
            ]
        }

        assert extract_first_inline_image(body, "image/png") is None

    def test_snake_case_parts_and_missing_mime_type(self, gemini_response):
        body = gemini_response({"inline_data": {"data": "Zmlyc3Q="}})

        image = extract_first_inline_image(body, "image/webp")

        assert image.data == "Zmlyc3Q="
        assert image.mime_type == "image/webp"

    def test_empty_inline_data_is_skipped(self, gemini_response):
        body = gemini_response(
            {"inlineData": {"mimeType": "image/png", "data": ""}},
            {"inlineData": {"mimeType": "image/png", "data": "c2Vjb25k"}}
        )

        assert extract_first_inline_image(body, "image/png").data == "c2Vjb25k"


@pytest.mark.unit
@pytest.mark.asyncio
class TestRequestEdit:
    """Tests for GeminiService.request_edit"""

    async def test_sends_image_then_instruction(self, gemini_response):
        recorder = Recorder(body=gemini_response({"inlineData": {"mimeType": "image/png", "data": "ZWRpdGVk"}}))
        service = make_service(recorder)

        result = await service.request_edit(ImagePayload(data="c291cmNl", mime_type="image/jpeg"), "add a red hat")

        assert result.outcome == ResultOutcome.IMAGE
        assert result.image.data == "ZWRpdGVk"

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith(f"/models/{service.model}:generateContent")
        assert request.headers["x-goog-api-key"] == "test-key"

        parts = recorder.payload["contents"][0]["parts"]
        assert parts[0] == {"inlineData": {"mimeType": "image/jpeg", "data": "c291cmNl"}}
        assert parts[1] == {"text": "add a red hat"}
        assert recorder.payload["generationConfig"] == {"responseModalities": ["IMAGE"]}
        assert "systemInstruction" not in recorder.payload

    async def test_text_only_response_is_absent(self, gemini_response):
        service = make_service(Recorder(body=gemini_response({"text": "Sorry"})))

        result = await service.request_edit(ImagePayload(data="c291cmNl", mime_type="image/png"), "make it blue")

        assert result.outcome == ResultOutcome.ABSENT
        assert result.image is None
        assert result.error is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestRequestGeneration:
    """Tests for GeminiService.request_generation"""

    @pytest.mark.parametrize("style", [StyleVariant.FLAT, StyleVariant.RENDERED])
    async def test_system_instruction_follows_style(self, style, gemini_response):
        recorder = Recorder(body=gemini_response({"inlineData": {"mimeType": "image/png", "data": "Ymx1ZQ=="}}))
        service = make_service(recorder)

        result = await service.request_generation("a garden shed with a green roof", style)

        assert result.outcome == ResultOutcome.IMAGE
        payload = recorder.payload
        assert payload["contents"][0]["parts"] == [{"text": "a garden shed with a green roof"}]
        assert payload["systemInstruction"] == {"parts": [{"text": STYLE_INSTRUCTIONS[style]}]}
        assert payload["generationConfig"]["responseModalities"] == ["IMAGE"]

    async def test_default_style_is_flat(self, gemini_response):
        recorder = Recorder(body=gemini_response({"text": "nothing"}))
        service = make_service(recorder)

        await service.request_generation("a bridge")

        assert recorder.payload["systemInstruction"]["parts"][0]["text"] == STYLE_INSTRUCTIONS[StyleVariant.FLAT]

    async def test_style_instructions_differ(self):
        assert STYLE_INSTRUCTIONS[StyleVariant.FLAT] != STYLE_INSTRUCTIONS[StyleVariant.RENDERED]
        assert "3D" in STYLE_INSTRUCTIONS[StyleVariant.RENDERED]
        with pytest.raises(TypeError):
            STYLE_INSTRUCTIONS[StyleVariant.FLAT] = "changed"


@pytest.mark.unit
@pytest.mark.asyncio
class TestFailures:
    """Failures come back as failure results and are never retried"""

    async def test_error_status_wraps_api_message(self):
        recorder = Recorder(status_code=429, body={"error": {"code": 429, "message": "Resource has been exhausted"}})
        service = make_service(recorder)

        result = await service.request_generation("a bridge", StyleVariant.FLAT)

        assert result.outcome == ResultOutcome.FAILURE
        assert result.error == "Resource has been exhausted"
        assert len(recorder.requests) == 1

    async def test_error_status_without_body(self):
        def handler(request):
            return httpx.Response(500)

        result = await make_service(handler).request_edit(ImagePayload(data="eA==", mime_type="image/png"), "x")

        assert result.outcome == ResultOutcome.FAILURE
        assert "500" in result.error

    async def test_transport_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        result = await make_service(handler).request_edit(ImagePayload(data="eA==", mime_type="image/png"), "x")

        assert result.outcome == ResultOutcome.FAILURE
        assert "connection refused" in result.error
        assert len(calls) == 1

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await make_service(handler).request_generation("a bridge")

        assert result.outcome == ResultOutcome.FAILURE
        assert "timeout" in result.error.lower()

    async def test_malformed_body(self):
        def handler(request):
            return httpx.Response(200, content=b"not json")

        result = await make_service(handler).request_generation("a bridge")

        assert result.outcome == ResultOutcome.FAILURE

    async def test_missing_key_makes_no_request(self):
        recorder = Recorder()
        service = make_service(recorder, api_key="")

        result = await service.request_generation("a bridge")

        assert service.is_configured is False
        assert result.outcome == ResultOutcome.FAILURE
        assert "not configured" in result.error
        assert recorder.requests == []

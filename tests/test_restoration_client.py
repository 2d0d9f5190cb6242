"""Unit tests for the restoration model client"""

import base64
import json
import pytest
from unittest.mock import patch
import httpx

from photo_restore.services.restoration_client import (
    BASE_PROMPT,
    NO_IMAGE_MESSAGE,
    OPTION_PROMPTS,
    REGION_MESSAGE,
    SAFETY_MESSAGE,
    ContentRejectedError,
    ModelTransportError,
    NoImageReturnedError,
    RegionUnavailableError,
    RestorationModelClient,
    build_restoration_prompt,
    parse_generate_content_response,
)

REAL_ASYNC_CLIENT = httpx.AsyncClient
RESTORED = b"\x89PNG restored bytes"


def image_payload(data: bytes = RESTORED, mime_type: str = "image/png") -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"text": "Here is the restored photo."},
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": base64.b64encode(data).decode("ascii"),
                            }
                        },
                    ]
                },
                "finishReason": "STOP",
            }
        ],
        "modelVersion": "gemini-2.5-flash-image-001",
    }


def mock_transport(handler):
    """Route the client's httpx calls through an in-process handler"""

    def factory(*args, **kwargs):
        return REAL_ASYNC_CLIENT(*args, transport=httpx.MockTransport(handler), **kwargs)

    return patch("httpx.AsyncClient", side_effect=factory)


@pytest.fixture
def client():
    return RestorationModelClient(
        api_key="test-key",
        model_name="gemini-2.5-flash-image",
        base_url="https://models.test/v1beta/",
        timeout_seconds=5,
    )


class TestBuildRestorationPrompt:
    """Tests for prompt construction"""

    def test_base_prompt_only(self):
        """Test no options and no instructions yields the base prompt"""
        assert build_restoration_prompt() == BASE_PROMPT

    def test_options_appended_in_order(self):
        """Test enabled options are appended, disabled ones are not"""
        prompt = build_restoration_prompt(
            options={"digitize": True, "colorize": True, "modernize": False}
        )

        assert OPTION_PROMPTS["colorize"] in prompt
        assert OPTION_PROMPTS["digitize"] in prompt
        assert OPTION_PROMPTS["modernize"] not in prompt
        assert prompt.index(OPTION_PROMPTS["colorize"]) < prompt.index(OPTION_PROMPTS["digitize"])

    def test_additional_instructions_appended(self):
        """Test user instructions come last, stripped"""
        prompt = build_restoration_prompt("  Keep the sepia tone.  ")

        assert prompt.endswith("ADDITIONAL USER INSTRUCTIONS:\nKeep the sepia tone.")

    def test_blank_instructions_ignored(self):
        """Test whitespace-only instructions add nothing"""
        assert build_restoration_prompt("   ") == BASE_PROMPT


class TestParseGenerateContentResponse:
    """Tests for response parsing"""

    def test_inline_image_extracted(self):
        """Test the first inline image is returned"""
        result = parse_generate_content_response(image_payload(), "gemini-2.5-flash-image")

        assert result.image_bytes == RESTORED
        assert result.mime_type == "image/png"
        assert result.model_name == "gemini-2.5-flash-image"
        assert result.model_version == "gemini-2.5-flash-image-001"

    def test_snake_case_inline_data(self):
        """Test inline_data/mime_type spelling is accepted"""
        payload = {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {
                                "inline_data": {
                                    "mime_type": "image/jpeg",
                                    "data": base64.b64encode(b"jpeg").decode("ascii"),
                                }
                            }
                        ]
                    }
                }
            ]
        }

        result = parse_generate_content_response(payload, "model")

        assert result.image_bytes == b"jpeg"
        assert result.mime_type == "image/jpeg"

    def test_top_level_parts(self):
        """Test parts outside candidates are searched too"""
        payload = {"parts": [{"inlineData": {"data": base64.b64encode(b"x").decode("ascii")}}]}

        result = parse_generate_content_response(payload, "model")

        assert result.image_bytes == b"x"
        assert result.mime_type == "image/png"

    def test_text_only_response(self):
        """Test a text-only answer is a refusal carrying the model's text"""
        payload = {
            "candidates": [
                {"content": {"parts": [{"text": "I can only edit photographs."}]}}
            ]
        }

        with pytest.raises(NoImageReturnedError, match="I can only edit photographs."):
            parse_generate_content_response(payload, "model")

    def test_empty_response(self):
        """Test an empty answer uses the generic message"""
        with pytest.raises(NoImageReturnedError) as exc_info:
            parse_generate_content_response({"candidates": []}, "model")

        assert str(exc_info.value) == NO_IMAGE_MESSAGE

    def test_prompt_blocked(self):
        """Test a blocked prompt maps to the content restriction message"""
        payload = {"promptFeedback": {"blockReason": "SAFETY"}}

        with pytest.raises(ContentRejectedError) as exc_info:
            parse_generate_content_response(payload, "model")

        assert str(exc_info.value) == SAFETY_MESSAGE

    def test_candidate_finished_for_safety(self):
        """Test a safety finish reason is a content rejection"""
        payload = {"candidates": [{"content": {"parts": []}, "finishReason": "IMAGE_SAFETY"}]}

        with pytest.raises(ContentRejectedError):
            parse_generate_content_response(payload, "model")


@pytest.mark.asyncio
class TestRestorationModelClient:
    """Tests for RestorationModelClient.restore"""

    async def test_restore_success(self, client):
        """Test a successful call sends the image and prompt and returns the result"""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=image_payload())

        with mock_transport(handler):
            result = await client.restore(
                b"input", "image/jpeg", additional_instructions="Fix the tear", options={"colorize": True}
            )

        assert result.image_bytes == RESTORED
        assert seen["url"] == (
            "https://models.test/v1beta/models/gemini-2.5-flash-image:generateContent"
        )
        assert seen["api_key"] == "test-key"

        parts = seen["body"]["contents"][0]["parts"]
        assert "Fix the tear" in parts[0]["text"]
        assert OPTION_PROMPTS["colorize"] in parts[0]["text"]
        assert parts[1]["inlineData"]["mimeType"] == "image/jpeg"
        assert base64.b64decode(parts[1]["inlineData"]["data"]) == b"input"
        assert seen["body"]["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]

    async def test_restore_text_only_refusal(self, client):
        """Test a 200 without an image raises NoImageReturnedError"""

        def handler(request):
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": "No people allowed."}]}}]}
            )

        with mock_transport(handler):
            with pytest.raises(NoImageReturnedError, match="No people allowed."):
                await client.restore(b"input", "image/jpeg")

    async def test_restore_region_unavailable(self, client):
        """Test the region error body maps to RegionUnavailableError"""

        def handler(request):
            return httpx.Response(
                400,
                json={"error": {"message": "User location is not supported for the API use."}},
            )

        with mock_transport(handler):
            with pytest.raises(RegionUnavailableError) as exc_info:
                await client.restore(b"input", "image/jpeg")

        assert str(exc_info.value) == REGION_MESSAGE

    async def test_restore_server_error(self, client):
        """Test an unexpected status is a transport error"""

        def handler(request):
            return httpx.Response(503, text="upstream overloaded")

        with mock_transport(handler):
            with pytest.raises(ModelTransportError, match="status 503"):
                await client.restore(b"input", "image/jpeg")

    async def test_restore_network_error(self, client):
        """Test connection failures are wrapped"""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock_transport(handler):
            with pytest.raises(ModelTransportError, match="Model request failed"):
                await client.restore(b"input", "image/jpeg")

    async def test_restore_without_api_key(self):
        """Test a missing key fails before any request is made"""
        client = RestorationModelClient(api_key="", model_name="model")
        client.api_key = None

        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(ModelTransportError, match="API key"):
                await client.restore(b"input", "image/jpeg")

        mock_client.assert_not_called()

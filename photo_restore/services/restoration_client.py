"""Client for the generative image model used to restore photos"""

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import httpx

from photo_restore.config import settings
from photo_restore.monitoring.metrics import metrics_collector

logger = logging.getLogger(__name__)


BASE_PROMPT = """You are a professional photo restoration expert. Your task is to restore this old or damaged photograph while preserving EVERYTHING about the original.

RESTORATION TASKS (what to fix):
- Remove dust, scratches, tears, and physical damage marks
- Remove stains, spots, and discoloration artifacts
- Reduce noise and grain while keeping natural film texture
- Correct faded colors - restore vibrancy without altering the original palette
- Fix minor exposure issues
- Improve overall clarity and sharpness gently

ABSOLUTE CONSTRAINTS (what must NOT change):
- DO NOT alter any facial features, expressions, or proportions
- DO NOT change anyone's apparent age, weight, or body shape
- DO NOT modify the background, setting, or environment
- DO NOT change the composition, framing, or cropping
- DO NOT add any elements that weren't in the original
- DO NOT remove any people, objects, or elements from the scene

The goal is RESTORATION, not enhancement. Output ONLY the restored image."""

OPTION_PROMPTS = {
    "colorize": (
        "COLORIZE: This photograph is black and white or sepia. Add natural, "
        "historically plausible colors while keeping every detail unchanged."
    ),
    "modernize": (
        "MODERNIZE: Give the result the clarity and tonal range of a photo taken "
        "with a modern camera, without changing the scene or the people in it."
    ),
    "digitize": (
        "DIGITIZE: This is a photo of a printed photograph. Remove the paper border, "
        "glare, and perspective distortion so only the image itself remains."
    ),
}

SAFETY_FINISH_REASONS = {"SAFETY", "IMAGE_SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST"}

REGION_MARKERS = ("not available in your country", "location is not supported")

REGION_MESSAGE = "Image generation is not available in your region."
SAFETY_MESSAGE = (
    "This image could not be processed due to content restrictions. "
    "Please try a different photo."
)
NO_IMAGE_MESSAGE = "Unable to process image. Please try a different photo."


class RestorationError(Exception):
    """Base exception for restoration model errors"""
    pass


class RestorationRefusedError(RestorationError):
    """The model answered but did not produce an image"""
    pass


class ContentRejectedError(RestorationRefusedError):
    """Rejected by the model's content-safety filter"""
    pass


class RegionUnavailableError(RestorationRefusedError):
    """Image generation is not offered in the caller's region"""
    pass


class NoImageReturnedError(RestorationRefusedError):
    """Response contained only text"""
    pass


class ModelTransportError(RestorationError):
    """Network failure or unexpected HTTP status from the model API"""
    pass


@dataclass
class RestorationResult:
    """Image produced by the model"""
    image_bytes: bytes
    mime_type: str
    model_name: str
    model_version: Optional[str] = None
    text: Optional[str] = None


def build_restoration_prompt(
    additional_instructions: Optional[str] = None,
    options: Optional[Dict[str, bool]] = None,
) -> str:
    """
    Build the full instruction text sent with the image.

    Args:
        additional_instructions: Free text supplied by the user
        options: Flags keyed by OPTION_PROMPTS names

    Returns:
        Prompt string
    """
    prompt = BASE_PROMPT

    enabled = [name for name in OPTION_PROMPTS if options and options.get(name)]
    if enabled:
        prompt += "\n\nREQUESTED OPTIONS:\n" + "\n".join(OPTION_PROMPTS[name] for name in enabled)

    extra = (additional_instructions or "").strip()
    if extra:
        prompt += f"\n\nADDITIONAL USER INSTRUCTIONS:\n{extra}"

    return prompt


def _iter_parts(payload: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    for candidate in payload.get("candidates") or []:
        content = candidate.get("content") or {}
        for part in content.get("parts") or []:
            yield part
    # Some responses carry parts at the top level
    for part in payload.get("parts") or []:
        yield part


def _inline_image(part: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    inline = part.get("inlineData") or part.get("inline_data")
    if inline and inline.get("data"):
        return inline
    return None


def parse_generate_content_response(payload: Dict[str, Any], model_name: str) -> RestorationResult:
    """
    Extract the restored image from a generateContent response.

    Raises:
        ContentRejectedError: Prompt or candidate blocked for safety
        NoImageReturnedError: Only text came back
    """
    text = None
    for part in _iter_parts(payload):
        inline = _inline_image(part)
        if inline:
            try:
                image_bytes = base64.b64decode(inline["data"])
            except (binascii.Error, ValueError) as e:
                raise ModelTransportError(f"Model returned undecodable image data: {e}")
            return RestorationResult(
                image_bytes=image_bytes,
                mime_type=inline.get("mimeType") or inline.get("mime_type") or "image/png",
                model_name=model_name,
                model_version=payload.get("modelVersion"),
            )
        if text is None and part.get("text"):
            text = part["text"].strip()

    block_reason = (payload.get("promptFeedback") or {}).get("blockReason")
    finish_reasons = {
        candidate.get("finishReason") for candidate in payload.get("candidates") or []
    }
    if block_reason or finish_reasons & SAFETY_FINISH_REASONS:
        logger.warning(
            f"Restoration blocked (blockReason={block_reason}, finishReasons={finish_reasons})"
        )
        raise ContentRejectedError(SAFETY_MESSAGE)

    logger.warning(f"No image in model response. Text: {text}")
    raise NoImageReturnedError(text or NO_IMAGE_MESSAGE)


def _classify_http_error(status_code: int, body: str) -> RestorationError:
    lowered = body.lower()
    if any(marker in lowered for marker in REGION_MARKERS):
        return RegionUnavailableError(REGION_MESSAGE)
    if "safety" in lowered:
        return ContentRejectedError(SAFETY_MESSAGE)
    return ModelTransportError(f"Model request failed with status {status_code}")


class RestorationModelClient:
    """Calls the Gemini generateContent endpoint with an image and a restoration prompt"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self.base_url = (base_url or settings.gemini_api_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.gemini_timeout_seconds

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model_name}:generateContent"

    def _build_request(self, image_bytes: bytes, mime_type: str, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": base64.b64encode(image_bytes).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    async def restore(
        self,
        image_bytes: bytes,
        mime_type: str,
        additional_instructions: Optional[str] = None,
        options: Optional[Dict[str, bool]] = None,
    ) -> RestorationResult:
        """
        Send one restoration request. No retries: a failure is final for the
        calling request.

        Args:
            image_bytes: Input image
            mime_type: MIME type of the input image
            additional_instructions: Optional user instructions
            options: Optional option flags (colorize, modernize, digitize)

        Returns:
            RestorationResult with the restored image

        Raises:
            RestorationRefusedError: Model answered without an image
            ModelTransportError: Network or HTTP failure
        """
        if not self.api_key:
            raise ModelTransportError("Restoration model API key is not configured")

        prompt = build_restoration_prompt(additional_instructions, options)
        request_body = self._build_request(image_bytes, mime_type, prompt)

        logger.info(f"Processing image with {self.model_name} ({len(image_bytes)} bytes)")
        start_time = time.time()
        outcome = "error"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    self.endpoint,
                    json=request_body,
                    headers={"x-goog-api-key": self.api_key},
                )

            if response.status_code >= 400:
                error = _classify_http_error(response.status_code, response.text)
                logger.error(
                    f"Model request failed: {response.status_code} - {response.text[:500]}"
                )
                outcome = "refused" if isinstance(error, RestorationRefusedError) else "error"
                raise error

            try:
                payload = response.json()
            except ValueError as e:
                raise ModelTransportError(f"Model returned invalid JSON: {e}")

            try:
                result = parse_generate_content_response(payload, self.model_name)
            except RestorationRefusedError:
                outcome = "refused"
                raise
            outcome = "success"
            return result

        except httpx.HTTPError as e:
            logger.error(f"Model transport error: {e}")
            raise ModelTransportError(f"Model request failed: {e}")
        finally:
            metrics_collector.record_model_request(
                model=self.model_name,
                outcome=outcome,
                duration_seconds=time.time() - start_time,
            )

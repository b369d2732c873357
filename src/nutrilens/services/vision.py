"""Vision analysis service using hosted multimodal models."""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Protocol

from nutrilens.domain.errors import ExternalServiceError

logger = logging.getLogger(__name__)

_NULLABLE_NUMBER: dict[str, object] = {"anyOf": [{"type": "number"}, {"type": "null"}]}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "detectedFood": {"type": "string"},
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "totalCalories": {"type": "number", "minimum": 0},
        "protein": {"type": "number", "minimum": 0},
        "carbs": {"type": "number", "minimum": 0},
        "fats": {"type": "number", "minimum": 0},
        "fiber": _NULLABLE_NUMBER,
        "sugar": _NULLABLE_NUMBER,
        "sodium": _NULLABLE_NUMBER,
        "cholesterol": _NULLABLE_NUMBER,
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "portionSize": {"type": "string"},
    },
    "required": [
        "detectedFood",
        "confidence",
        "totalCalories",
        "protein",
        "carbs",
        "fats",
        "fiber",
        "sugar",
        "sodium",
        "cholesterol",
        "ingredients",
        "portionSize",
    ],
    "additionalProperties": False,
}

ANALYSIS_PROMPT = (
    "You are a nutrition expert AI that analyzes food images. "
    "Analyze the food in the image and provide detailed nutritional information. "
    "Be as accurate as possible with portion size estimation and nutritional "
    "values. Respond with JSON in this exact format: "
    "{ 'detectedFood': string, 'confidence': number (0-1), "
    "'totalCalories': number, 'protein': number, 'carbs': number, "
    "'fats': number, 'fiber': number, 'sugar': number, 'sodium': number, "
    "'cholesterol': number, 'ingredients': string[], 'portionSize': string }. "
    "Macronutrients, fiber and sugar are in grams; sodium and cholesterol in "
    "milligrams."
)


class VisionClient(Protocol):
    """Interface for a hosted vision model that returns nutrition JSON."""

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return the provider's structured answer for the image."""

    async def close(self) -> None:
        """Release provider resources."""


@dataclass
class UnconfiguredVisionClient(VisionClient):
    """Stand-in used when the provider credential is missing.

    Keeps startup working; every analysis fails at call time.
    """

    missing_setting: str

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        raise ExternalServiceError(
            f"Vision provider is not configured: {self.missing_setting} is not set"
        )

    async def close(self) -> None:
        return None


@dataclass
class VisionService:
    """Service that prompts the vision model and checks the raw answer."""

    client: VisionClient

    async def analyze(
        self, image_bytes: bytes, content_type: str | None = None
    ) -> dict[str, object]:
        """Return the raw nutrition estimate for an image."""
        mime_type = resolve_mime_type(image_bytes, content_type)
        try:
            raw = await self.client.analyze(
                image_bytes=image_bytes,
                mime_type=mime_type,
                prompt=ANALYSIS_PROMPT,
                schema=ANALYSIS_SCHEMA,
            )
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.warning("Vision provider call failed: %s", exc)
            raise ExternalServiceError(str(exc) or type(exc).__name__) from exc
        if not isinstance(raw, dict):
            raise ExternalServiceError("Vision provider returned a non-object payload")
        return raw


def parse_json_object(text: str | None) -> dict[str, object]:
    """Parse a provider's text output into a JSON object."""
    if not text or not text.strip():
        raise ExternalServiceError("Vision provider returned an empty response")
    try:
        payload = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise ExternalServiceError(
            f"Vision provider returned malformed JSON: {exc.msg}"
        ) from exc
    if not isinstance(payload, dict):
        raise ExternalServiceError("Vision provider returned a non-object payload")
    return payload


def to_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Convert bytes to a base64 data URL for image input."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def resolve_mime_type(image_bytes: bytes, declared: str | None = None) -> str:
    """Pick the MIME type sent to the provider for an image."""
    detected = _detect_mime_type(image_bytes)
    if detected:
        return detected
    if declared and declared.startswith("image/"):
        return declared
    return "image/jpeg"


def _detect_mime_type(image_bytes: bytes) -> str | None:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return None


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.removeprefix("```json").removeprefix("```")
        cleaned = cleaned.removesuffix("```")
    return cleaned.strip()

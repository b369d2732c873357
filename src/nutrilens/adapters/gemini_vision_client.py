"""Google Gemini client for structured food image analysis."""

from dataclasses import dataclass

from google import genai
from google.genai import types

from nutrilens.services.vision import VisionClient, parse_json_object


@dataclass
class GeminiVisionClient(VisionClient):
    """Vision client backed by Gemini JSON-schema generation."""

    client: genai.Client
    model: str

    @classmethod
    def create(cls, api_key: str, model: str) -> "GeminiVisionClient":
        """Create a Gemini vision client."""
        return cls(client=genai.Client(api_key=api_key), model=model)

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Generate a JSON answer constrained by the analysis schema."""
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                prompt,
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_json_schema=schema,
                temperature=0.2,
            ),
        )
        return parse_json_object(response.text)

    async def close(self) -> None:
        """Close the underlying async HTTP session."""
        await self.client.aio.aclose()

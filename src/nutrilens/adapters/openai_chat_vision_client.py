"""OpenAI Chat Completions client for food image analysis."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrilens.services.vision import VisionClient, parse_json_object, to_data_url


@dataclass
class OpenAIChatVisionClient(VisionClient):
    """Vision client backed by a chat completion model with image input."""

    client: AsyncOpenAI
    model: str
    max_completion_tokens: int = 2048

    @classmethod
    def create(
        cls, api_key: str, model: str, max_completion_tokens: int = 2048
    ) -> "OpenAIChatVisionClient":
        """Create a chat completions vision client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            max_completion_tokens=max_completion_tokens,
        )

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Ask the model for a JSON object describing the meal.

        JSON mode does not take a schema; the prompt spells out the shape.
        """
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": prompt},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "text",
                            "text": (
                                "Analyze this food image and provide detailed "
                                "nutritional information."
                            ),
                        },
                        {
                            "type": "image_url",
                            "image_url": {"url": to_data_url(image_bytes, mime_type)},
                        },
                    ],
                },
            ],
            response_format={"type": "json_object"},
            max_completion_tokens=self.max_completion_tokens,
        )
        if not response.choices:
            return parse_json_object(None)
        return parse_json_object(response.choices[0].message.content)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()

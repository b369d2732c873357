"""OpenAI Responses API client for structured food image analysis."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrilens.services.vision import VisionClient, parse_json_object, to_data_url


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by OpenAI Responses API structured outputs."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIVisionClient":
        """Create an OpenAI vision client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Call OpenAI Responses API with a strict JSON schema."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {
                            "type": "input_image",
                            "image_url": to_data_url(image_bytes, mime_type),
                        },
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "food_analysis",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        return parse_json_object(response.output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()

"""Tests for vision provider adapters."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from nutrilens.adapters.gemini_vision_client import GeminiVisionClient
from nutrilens.adapters.openai_chat_vision_client import OpenAIChatVisionClient
from nutrilens.adapters.openai_vision_client import OpenAIVisionClient
from nutrilens.domain.errors import ExternalServiceError
from nutrilens.services.vision import ANALYSIS_PROMPT, ANALYSIS_SCHEMA
from tests.conftest import SALMON_PAYLOAD


class _FakeCompletions:
    def __init__(self, content: str | None) -> None:
        self.content = content
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return SimpleNamespace(output_text=self.output_text)


class _FakeOpenAI:
    def __init__(self, text: str | None = None) -> None:
        self.chat = SimpleNamespace(completions=_FakeCompletions(text))
        self.responses = _FakeResponses(text or "")
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class _FakeGeminiModels:
    def __init__(self, text: str) -> None:
        self.text = text
        self.last_call: dict[str, object] | None = None

    async def generate_content(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_call = kwargs
        return SimpleNamespace(text=self.text)


class _FakeGeminiAio:
    def __init__(self, text: str) -> None:
        self.models = _FakeGeminiModels(text)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


def _analyze(client) -> dict[str, object]:  # type: ignore[no-untyped-def]
    return asyncio.run(
        client.analyze(
            image_bytes=b"fake",
            mime_type="image/jpeg",
            prompt=ANALYSIS_PROMPT,
            schema=ANALYSIS_SCHEMA,
        )
    )


def test_openai_chat_client_sends_image_and_parses_json() -> None:
    fake = _FakeOpenAI(json.dumps(SALMON_PAYLOAD))
    client = OpenAIChatVisionClient(client=fake, model="gpt-5")

    result = _analyze(client)

    assert result == SALMON_PAYLOAD
    payload = fake.chat.completions.last_payload
    assert payload["model"] == "gpt-5"
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["max_completion_tokens"] == 2048
    user_content = payload["messages"][1]["content"]
    assert user_content[1]["image_url"]["url"] == "data:image/jpeg;base64,ZmFrZQ=="


def test_openai_chat_client_rejects_malformed_json() -> None:
    client = OpenAIChatVisionClient(client=_FakeOpenAI("I think it's pasta"), model="m")

    with pytest.raises(ExternalServiceError, match="malformed JSON"):
        _analyze(client)


def test_openai_chat_client_rejects_empty_content() -> None:
    client = OpenAIChatVisionClient(client=_FakeOpenAI(None), model="m")

    with pytest.raises(ExternalServiceError, match="empty"):
        _analyze(client)


def test_openai_responses_client_uses_strict_schema() -> None:
    fake = _FakeOpenAI(json.dumps(SALMON_PAYLOAD))
    client = OpenAIVisionClient(client=fake, model="gpt-5", reasoning_effort="low")

    result = _analyze(client)

    assert result == SALMON_PAYLOAD
    payload = fake.responses.last_payload
    assert payload["text"]["format"]["strict"] is True
    assert payload["text"]["format"]["schema"] == ANALYSIS_SCHEMA
    assert payload["reasoning"] == {"effort": "low"}
    assert payload["store"] is False


def test_openai_responses_client_omits_reasoning_when_unset() -> None:
    fake = _FakeOpenAI(json.dumps(SALMON_PAYLOAD))
    client = OpenAIVisionClient(client=fake, model="gpt-5")

    _analyze(client)

    assert "reasoning" not in fake.responses.last_payload


def test_openai_clients_close_sdk_client() -> None:
    fake = _FakeOpenAI("{}")

    asyncio.run(OpenAIChatVisionClient(client=fake, model="m").close())

    assert fake.closed


def test_gemini_client_requests_json_schema_output() -> None:
    aio = _FakeGeminiAio(json.dumps(SALMON_PAYLOAD))
    client = GeminiVisionClient(client=SimpleNamespace(aio=aio), model="gemini-x")

    result = _analyze(client)
    asyncio.run(client.close())

    assert result == SALMON_PAYLOAD
    call = aio.models.last_call
    assert call["model"] == "gemini-x"
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].response_json_schema == ANALYSIS_SCHEMA
    assert call["contents"][1] == ANALYSIS_PROMPT
    assert aio.closed

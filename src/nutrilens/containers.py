"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrilens.adapters.gemini_vision_client import GeminiVisionClient
from nutrilens.adapters.in_memory_analysis_repository import (
    InMemoryAnalysisRepository,
)
from nutrilens.adapters.in_memory_user_repository import InMemoryUserRepository
from nutrilens.adapters.openai_chat_vision_client import OpenAIChatVisionClient
from nutrilens.adapters.openai_vision_client import OpenAIVisionClient
from nutrilens.config import Settings
from nutrilens.services.analyses import AnalysisService
from nutrilens.services.uploads import UploadStager
from nutrilens.services.users import UserService
from nutrilens.services.vision import (
    UnconfiguredVisionClient,
    VisionClient,
    VisionService,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    vision_service: VisionService
    analysis_service: AnalysisService
    user_service: UserService
    close_resources: Callable[[], Awaitable[None]]


def build_vision_client(settings: Settings) -> VisionClient:
    """Create the adapter for the configured vision provider."""
    api_key = settings.vision_api_key()
    if api_key is None:
        return UnconfiguredVisionClient(settings.vision_api_key_name())
    if settings.vision_provider == "gemini":
        return GeminiVisionClient.create(api_key=api_key, model=settings.gemini_model)
    if settings.vision_provider == "openai_responses":
        return OpenAIVisionClient.create(
            api_key=api_key,
            model=settings.openai_model,
            reasoning_effort=settings.openai_reasoning_effort,
            store=settings.openai_store,
        )
    return OpenAIChatVisionClient.create(
        api_key=api_key,
        model=settings.openai_model,
        max_completion_tokens=settings.openai_max_completion_tokens,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    vision_client = build_vision_client(resolved_settings)
    vision_service = VisionService(client=vision_client)
    analysis_service = AnalysisService(
        uploads=UploadStager(
            upload_dir=resolved_settings.upload_dir,
            max_bytes=resolved_settings.max_upload_bytes,
        ),
        vision_service=vision_service,
        repository=InMemoryAnalysisRepository(),
    )
    user_service = UserService(InMemoryUserRepository())

    async def close_resources() -> None:
        await vision_client.close()

    return AppContainer(
        settings=resolved_settings,
        vision_service=vision_service,
        analysis_service=analysis_service,
        user_service=user_service,
        close_resources=close_resources,
    )

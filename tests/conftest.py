"""Shared test fixtures."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from nutrilens.adapters.in_memory_analysis_repository import (
    InMemoryAnalysisRepository,
)
from nutrilens.adapters.in_memory_user_repository import InMemoryUserRepository
from nutrilens.config import Settings
from nutrilens.containers import AppContainer
from nutrilens.services.analyses import AnalysisService
from nutrilens.services.uploads import UploadStager
from nutrilens.services.users import UserService
from nutrilens.services.vision import VisionClient, VisionService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF" + b"\x00" * 64

SALMON_PAYLOAD: dict[str, object] = {
    "detectedFood": "Grilled Salmon",
    "confidence": 0.92,
    "totalCalories": 380,
    "protein": 42,
    "carbs": 5,
    "fats": 18,
    "portionSize": "1 fillet",
}


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload or raising."""

    payload: object = field(default_factory=lambda: dict(SALMON_PAYLOAD))
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)
    staged_files_seen: list[bool] = field(default_factory=list)
    upload_dir: Path | None = None
    closed: bool = False

    async def analyze(
        self,
        *,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        self.calls.append(
            {"image_bytes": image_bytes, "mime_type": mime_type, "prompt": prompt}
        )
        if self.upload_dir is not None:
            self.staged_files_seen.append(any(self.upload_dir.iterdir()))
        if self.error is not None:
            raise self.error
        return self.payload  # type: ignore[return-value]

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeUpload:
    """Minimal stand-in for FastAPI's UploadFile."""

    content: bytes
    content_type: str | None = "image/jpeg"
    filename: str | None = "meal.jpg"
    _offset: int = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self.content) - self._offset
        chunk = self.content[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir: Path) -> Settings:
    return Settings(openai_api_key="openai-key", upload_dir=upload_dir)


@pytest.fixture
def vision_client(upload_dir: Path) -> FakeVisionClient:
    return FakeVisionClient(upload_dir=upload_dir)


@pytest.fixture
def analysis_repository() -> InMemoryAnalysisRepository:
    return InMemoryAnalysisRepository()


@pytest.fixture
def analysis_service(
    settings: Settings,
    vision_client: FakeVisionClient,
    analysis_repository: InMemoryAnalysisRepository,
) -> AnalysisService:
    return AnalysisService(
        uploads=UploadStager(
            upload_dir=settings.upload_dir, max_bytes=settings.max_upload_bytes
        ),
        vision_service=VisionService(client=vision_client),
        repository=analysis_repository,
    )


@pytest.fixture
def container(
    settings: Settings,
    vision_client: FakeVisionClient,
    analysis_service: AnalysisService,
) -> AppContainer:
    async def close_resources() -> None:
        await vision_client.close()

    return AppContainer(
        settings=settings,
        vision_service=analysis_service.vision_service,
        analysis_service=analysis_service,
        user_service=UserService(InMemoryUserRepository()),
        close_resources=close_resources,
    )

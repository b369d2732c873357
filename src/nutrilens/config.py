"""Application configuration."""

import os
import tempfile
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

VisionProvider = Literal["openai_chat", "openai_responses", "gemini"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    vision_provider: VisionProvider = "openai_chat"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5"
    openai_max_completion_tokens: int = 2048
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    upload_dir: Path = Path(tempfile.gettempdir()) / "nutrilens-uploads"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def vision_api_key(self) -> str | None:
        """Return the credential for the selected vision provider, if set."""
        if self.vision_provider == "gemini":
            raw = self.gemini_api_key
        else:
            raw = self.openai_api_key
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    def vision_api_key_name(self) -> str:
        """Return the environment variable that holds the provider credential."""
        if self.vision_provider == "gemini":
            return "GEMINI_API_KEY"
        return "OPENAI_API_KEY"

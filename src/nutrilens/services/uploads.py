"""Upload validation and staging."""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from nutrilens.config import MAX_UPLOAD_BYTES
from nutrilens.domain.errors import UploadValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class UploadSource(Protocol):
    """A single uploaded file, as exposed by FastAPI's ``UploadFile``."""

    filename: str | None

    @property
    def content_type(self) -> str | None:
        """Return the declared MIME type."""

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes."""


@dataclass
class StagedUpload:
    """An accepted upload written to the staging directory."""

    path: Path
    filename: str | None
    content_type: str
    size: int
    _discarded: bool = field(default=False, repr=False)

    def read_bytes(self) -> bytes:
        """Return the staged file contents."""
        return self.path.read_bytes()

    def discard(self) -> None:
        """Delete the staged file. Later calls do nothing."""
        if self._discarded:
            return
        self._discarded = True
        self.path.unlink(missing_ok=True)


@dataclass
class UploadStager:
    """Validates uploads and stages them on local disk."""

    upload_dir: Path
    max_bytes: int = MAX_UPLOAD_BYTES

    async def stage(self, source: UploadSource | None) -> StagedUpload:
        """Validate an upload and write it to a unique temporary file."""
        if source is None:
            raise UploadValidationError("No image file provided")
        content_type = (source.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise UploadValidationError("Only image files are allowed")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        fd, raw_path = tempfile.mkstemp(
            dir=self.upload_dir, prefix="upload-", suffix=_suffix(source.filename)
        )
        path = Path(raw_path)
        size = 0
        try:
            with os.fdopen(fd, "wb") as handle:
                while chunk := await source.read(_CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise UploadValidationError(
                            f"File too large: the limit is {self.max_bytes} bytes"
                        )
                    await asyncio.to_thread(handle.write, chunk)
            if size == 0:
                raise UploadValidationError("Uploaded image is empty")
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.info("Staged upload", extra={"path": str(path), "size": size})
        return StagedUpload(
            path=path,
            filename=source.filename,
            content_type=content_type,
            size=size,
        )


def _suffix(filename: str | None) -> str:
    if not filename:
        return ""
    suffix = Path(filename).suffix.lower()
    if len(suffix) > 10 or not suffix[1:].isalnum():
        return ""
    return suffix

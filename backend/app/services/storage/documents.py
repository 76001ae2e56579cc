"""Document storage collaborator."""
import asyncio
import re
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from app.core.config import get_settings
from app.core.errors import ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class DocumentStore(Protocol):
    """Accepts an opaque upload and returns a reference string."""

    async def save(self, filename: str, content: bytes) -> str:
        ...


class LocalDocumentStore:
    """
    Stores uploads on the local filesystem.

    References look like ``documents/<uuid>/<filename>`` and are relative
    to the base directory; the lifecycle core never interprets them.
    """

    def __init__(
        self,
        base_dir: str,
        allowed_extensions: list[str],
        max_bytes: int,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._allowed_extensions = [ext.lower() for ext in allowed_extensions]
        self._max_bytes = max_bytes

    def _validate(self, filename: str, content: bytes) -> str:
        suffix = Path(filename).suffix.lower()
        if suffix not in self._allowed_extensions:
            raise ValidationError(
                "Unsupported document type",
                operation="upload_document",
                details={"filename": filename, "allowed": self._allowed_extensions},
            )
        if not content:
            raise ValidationError(
                "Uploaded document is empty",
                operation="upload_document",
                details={"filename": filename},
            )
        if len(content) > self._max_bytes:
            raise ValidationError(
                "Uploaded document is too large",
                operation="upload_document",
                details={"filename": filename, "max_bytes": self._max_bytes},
            )
        stem = _UNSAFE_CHARS.sub("_", Path(filename).stem).strip("._") or "document"
        return f"{stem}{suffix}"

    async def save(self, filename: str, content: bytes) -> str:
        safe_name = self._validate(filename, content)
        reference = f"documents/{uuid.uuid4()}/{safe_name}"
        target = self._base_dir / reference

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.info("document_stored", reference=reference, size=len(content))
        return reference


@lru_cache
def get_document_store() -> DocumentStore:
    """Get the configured document store."""
    settings = get_settings()
    return LocalDocumentStore(
        base_dir=settings.upload_dir,
        allowed_extensions=settings.allowed_document_extensions,
        max_bytes=settings.max_upload_bytes,
    )

"""Local filesystem storage implementation."""

from __future__ import annotations

import logging
import mimetypes
import os
import re
import secrets
import time
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from gera.core.config import settings
from gera.core.exceptions import TooLarge, UnsupportedType

from .abstract_storage import AbstractStorage

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"^\.[a-z0-9]{1,8}$")
_NAME_PREFIX = "imagem"


class LocalStorage(AbstractStorage):
    """Persist images to the local filesystem under the configured upload directory."""

    def __init__(
        self,
        upload_dir: str | os.PathLike[str] | None = None,
        url_prefix: str | None = None,
        max_size: int | None = None,
    ) -> None:
        self.base_directory = Path(upload_dir or settings.UPLOAD_DIR).resolve()
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")
        self.max_size = max_size if max_size is not None else settings.MAX_UPLOAD_SIZE
        os.makedirs(self.base_directory, exist_ok=True)

    # ── Validation / naming ────────────────────────────────────────
    def _validate(self, data: bytes, content_type: str | None) -> None:
        if not content_type or not content_type.lower().startswith("image/"):
            raise UnsupportedType(f"Unsupported content type: {content_type or 'unknown'}")
        if len(data) > self.max_size:
            raise TooLarge(f"File exceeds the maximum upload size of {self.max_size} bytes")

    @staticmethod
    def _extension(filename: str | None, content_type: str) -> str:
        suffix = Path(filename or "").suffix.lower()
        if _EXT_RE.match(suffix):
            return suffix
        return mimetypes.guess_extension(content_type.split(";")[0].strip()) or ""

    def _build_unique_filename(self, filename: str | None, content_type: str) -> str:
        unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{_NAME_PREFIX}-{unique}{self._extension(filename, content_type)}"

    def _resolve(self, reference: str) -> Path | None:
        """Map a reference to a path inside the upload directory, or None."""
        name = reference
        if name.startswith(self.url_prefix + "/"):
            name = name[len(self.url_prefix) + 1 :]
        candidate = (self.base_directory / name).resolve()
        if candidate.parent != self.base_directory:
            logger.warning("Rejected storage reference outside upload dir: %r", reference)
            return None
        return candidate

    # ── AbstractStorage ────────────────────────────────────────────
    async def store(self, data: bytes, content_type: str | None, filename: str | None = None) -> str:
        self._validate(data, content_type)
        name = self._build_unique_filename(filename, content_type or "")
        destination = self.base_directory / name
        await run_in_threadpool(destination.write_bytes, data)
        logger.info("Stored upload %s (%d bytes)", name, len(data))
        return name

    async def delete(self, reference: str) -> bool:
        path = self._resolve(reference)
        if path is None:
            return False
        try:
            await run_in_threadpool(path.unlink)
        except FileNotFoundError:
            return False
        logger.info("Deleted upload %s", path.name)
        return True

    def reference_for(self, value: str) -> str | None:
        path = self._resolve(value)
        if path is None or not path.is_file():
            return None
        return path.name

    def public_url_for(self, reference: str) -> str:
        if reference.startswith(self.url_prefix + "/"):
            return reference
        return f"{self.url_prefix}/{reference}"

"""Local file system key-value store implementation.

This module provides the FileKeyValueStore class, which keeps each key in its
own JSON file so that snapshots survive process restarts without any
external service.
"""

import asyncio
import time
from datetime import timedelta
from pathlib import Path
from urllib.parse import quote

import aiofiles
import aiofiles.os
import structlog

from .base import BaseKeyValueStore

# Get logger for this module
logger = structlog.get_logger(__name__)


class FileKeyValueStore(BaseKeyValueStore):
    """File-based key-value store.

    Each entry is written as ``{"expires_at": ..., "value": ...}`` to a file
    named after the quoted key. Writes go to a temporary file first and are
    moved into place, so readers never observe a half-written entry.
    """

    def __init__(self, **kwargs: object) -> None:
        """Initialize the file store.

        Keyword Args:
            path: Directory holding the entry files. Defaults to ``.prefetch``.
            create_dirs: Create the directory if it is missing. Defaults to True.
        """
        super().__init__(**kwargs)
        self._path = Path(str(kwargs.get("path") or ".prefetch"))
        if kwargs.get("create_dirs", True):
            self._path.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _file_for(self, prefixed_key: str) -> Path:
        return self._path / f"{quote(prefixed_key, safe='')}.json"

    async def put(
        self,
        key: str,
        value: object,
        ttl: int | timedelta | None = None,
        prefix: str | None = None,
    ) -> None:
        """Store a value with the given key."""
        prefixed_key = self._get_prefixed_key(key, prefix)
        filepath = self._file_for(prefixed_key)
        tmp_filepath = filepath.with_suffix(".tmp")

        ttl_seconds = self._normalize_ttl(ttl)
        envelope = {
            "expires_at": time.time() + ttl_seconds if ttl_seconds is not None else None,
            "value": value,
        }

        async with self._lock:
            async with aiofiles.open(tmp_filepath, "w", encoding="utf-8") as f:
                await f.write(self._serialize(envelope))
            await aiofiles.os.replace(tmp_filepath, filepath)

        logger.debug("FILE_ENTRY_WRITTEN", key=prefixed_key, path=str(filepath))

    async def get(
        self,
        key: str,
        default: object = None,
        prefix: str | None = None,
    ) -> object | None:
        """Retrieve a value by key.

        Raises:
            ValueError: If the entry file does not hold a valid envelope.
        """
        prefixed_key = self._get_prefixed_key(key, prefix)
        filepath = self._file_for(prefixed_key)

        async with self._lock:
            envelope = await self._read_envelope(filepath)
            if envelope is None:
                return default
            return envelope["value"]

    async def delete(self, key: str, prefix: str | None = None) -> bool:
        """Delete a key-value pair."""
        prefixed_key = self._get_prefixed_key(key, prefix)
        filepath = self._file_for(prefixed_key)

        async with self._lock:
            try:
                await aiofiles.os.remove(filepath)
            except FileNotFoundError:
                return False
            return True

    async def exists(self, key: str, prefix: str | None = None) -> bool:
        """Check if a key exists."""
        prefixed_key = self._get_prefixed_key(key, prefix)
        filepath = self._file_for(prefixed_key)

        async with self._lock:
            try:
                return await self._read_envelope(filepath) is not None
            except ValueError:
                # The entry is there even though it cannot be decoded
                return True

    async def _read_envelope(self, filepath: Path) -> dict[str, object] | None:
        try:
            async with aiofiles.open(filepath, encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return None

        envelope = self._deserialize(raw)
        if not isinstance(envelope, dict) or "value" not in envelope:
            error_message = f"Malformed entry file: {filepath}"
            raise ValueError(error_message)

        expires_at = envelope.get("expires_at")
        if isinstance(expires_at, int | float) and time.time() > expires_at:
            await aiofiles.os.remove(filepath)
            logger.debug("KEY_EXPIRED", path=str(filepath))
            return None

        return envelope

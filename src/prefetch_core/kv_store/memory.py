"""In-memory key-value store implementation.

This module provides the InMemoryKeyValueStore class for temporary storage of
key-value pairs in memory, useful for tests and for runs that do not need
snapshots to outlive the process.
"""

import asyncio
import time
from datetime import timedelta

import structlog

from .base import BaseKeyValueStore

# Get logger for this module
logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore(BaseKeyValueStore):
    """In-memory key-value store implementation.

    Values are kept JSON-encoded so that they go through the same
    serialization path as the persistent backends. Expired keys are removed
    lazily when they are read.
    """

    def __init__(self, **kwargs: object) -> None:
        """Initialize the in-memory store."""
        super().__init__(**kwargs)
        self._store: dict[str, str] = {}
        self._expiry_times: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def put(
        self,
        key: str,
        value: object,
        ttl: int | timedelta | None = None,
        prefix: str | None = None,
    ) -> None:
        """Store a value with the given key."""
        prefixed_key = self._get_prefixed_key(key, prefix)

        async with self._lock:
            self._store[prefixed_key] = self._serialize(value)

            ttl_seconds = self._normalize_ttl(ttl)
            if ttl_seconds is not None:
                self._expiry_times[prefixed_key] = time.time() + ttl_seconds
            else:
                self._expiry_times.pop(prefixed_key, None)

    async def get(
        self,
        key: str,
        default: object = None,
        prefix: str | None = None,
    ) -> object | None:
        """Retrieve a value by key."""
        prefixed_key = self._get_prefixed_key(key, prefix)

        async with self._lock:
            if not self._is_valid_key(prefixed_key):
                return default
            return self._deserialize(self._store[prefixed_key])

    async def delete(self, key: str, prefix: str | None = None) -> bool:
        """Delete a key-value pair."""
        prefixed_key = self._get_prefixed_key(key, prefix)

        async with self._lock:
            self._expiry_times.pop(prefixed_key, None)
            return self._store.pop(prefixed_key, None) is not None

    async def exists(self, key: str, prefix: str | None = None) -> bool:
        """Check if a key exists."""
        prefixed_key = self._get_prefixed_key(key, prefix)

        async with self._lock:
            return self._is_valid_key(prefixed_key)

    async def close(self) -> None:
        """Close the store and release resources."""
        async with self._lock:
            self._store.clear()
            self._expiry_times.clear()

    def _is_valid_key(self, key: str) -> bool:
        """Check if a key exists and is not expired."""
        if key not in self._store:
            return False

        if key in self._expiry_times and time.time() > self._expiry_times[key]:
            del self._store[key]
            del self._expiry_times[key]
            logger.debug("KEY_EXPIRED", key=key)
            return False

        return True

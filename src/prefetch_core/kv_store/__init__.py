"""Key-value store implementations and interfaces.

This module provides the key-value stores that back queue snapshots: in-memory,
local files, and Redis, plus the protocol they share.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .base import BaseKeyValueStore, KeyValueStore
from .factory import UnknownStoreTypeError, create_kv_store, create_store
from .file import FileKeyValueStore
from .memory import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore


@asynccontextmanager
async def get_store_context(
    store_type: str = "memory", **kwargs: object
) -> AsyncIterator[KeyValueStore]:
    """Context manager for getting a key-value store instance.

    Args:
        store_type: Type of store to use ("memory", "file" or "redis")
        **kwargs: Additional configuration parameters for the store

    Yields:
        A key-value store instance
    """
    store = create_store(store_type, **kwargs)

    try:
        yield store
    finally:
        await store.close()


__all__ = [
    "BaseKeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "UnknownStoreTypeError",
    "create_kv_store",
    "create_store",
    "get_store_context",
]

"""Key-value store factory functions.

This module provides factory functions for creating key-value store instances
backed by memory, local files, or Redis.

Environment Variables:
    PREFETCH_KV_STORE_TYPE: Store type ("memory", "file" or "redis"). Default: "file"
    PREFETCH_KV_STORE_DEFAULT_TTL: Default TTL in seconds. Default: none
    PREFETCH_KV_STORE_KEY_PREFIX: Key prefix applied to every key. Default: none
    PREFETCH_KV_STORE_FILE_PATH: Directory for the file store. Default: ".prefetch"
    PREFETCH_KV_STORE_REDIS_HOST: Redis host. Default: "localhost"
    PREFETCH_KV_STORE_REDIS_PORT: Redis port. Default: "6379"
    PREFETCH_KV_STORE_REDIS_DB: Redis database number. Default: "0"
    PREFETCH_KV_STORE_REDIS_PASSWORD: Redis password. Default: none
"""

import os

from .base import KeyValueStore
from .file import FileKeyValueStore
from .memory import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore


class UnknownStoreTypeError(ValueError):
    """Raised when an unknown key-value store type is specified."""

    def __init__(self, store_type: str) -> None:
        """Initialize the unknown store type error.

        Args:
            store_type: The unknown store type that was specified.
        """
        super().__init__(f"Unknown store type: {store_type}")
        self.store_type = store_type


def _get_env_int(key: str, default: int | None) -> int | None:
    """Get integer value from environment variable."""
    try:
        value = os.getenv(key)
        return int(value) if value else default
    except (ValueError, TypeError):
        return default


def create_store(store_type: str = "memory", **kwargs: object) -> KeyValueStore:
    """Create a key-value store instance from explicit keyword arguments.

    Args:
        store_type: Type of store to use ("memory", "file" or "redis")
        **kwargs: Additional configuration parameters for the store

    Returns:
        A configured key-value store instance

    Raises:
        UnknownStoreTypeError: If store_type is not supported
    """
    if store_type == "memory":
        return InMemoryKeyValueStore(**kwargs)
    if store_type == "file":
        return FileKeyValueStore(**kwargs)
    if store_type == "redis":
        return RedisKeyValueStore(**kwargs)
    raise UnknownStoreTypeError(store_type)


def create_kv_store(
    store_type: str | None = None,
    key_prefix: str | None = None,
    default_ttl: int | None = None,
    file_path: str | None = None,
    redis_host: str | None = None,
    redis_port: int | None = None,
    redis_db: int | None = None,
    redis_password: str | None = None,
) -> KeyValueStore:
    """Create a key-value store, falling back to environment variables.

    Args:
        store_type: Store type to use ("memory", "file" or "redis").
                   If None, uses PREFETCH_KV_STORE_TYPE or "file".
        key_prefix: Prefix applied to every key.
                   If None, uses PREFETCH_KV_STORE_KEY_PREFIX.
        default_ttl: Default TTL in seconds.
                    If None, uses PREFETCH_KV_STORE_DEFAULT_TTL (no expiry when unset).
        file_path: Directory for the file store.
                  If None, uses PREFETCH_KV_STORE_FILE_PATH or ".prefetch".
        redis_host: Redis host (when using redis).
        redis_port: Redis port (when using redis).
        redis_db: Redis database number (when using redis).
        redis_password: Redis password (when using redis).

    Returns:
        Configured key-value store instance.
    """
    store_type_str = (
        store_type or os.getenv("PREFETCH_KV_STORE_TYPE", "file") or "file"
    ).lower()

    config: dict[str, object] = {
        "default_ttl": default_ttl
        if default_ttl is not None
        else _get_env_int("PREFETCH_KV_STORE_DEFAULT_TTL", None),
        "key_prefix": key_prefix or os.getenv("PREFETCH_KV_STORE_KEY_PREFIX", ""),
    }

    if store_type_str == "memory":
        return InMemoryKeyValueStore(**config)

    if store_type_str == "file":
        config["path"] = (
            file_path or os.getenv("PREFETCH_KV_STORE_FILE_PATH") or ".prefetch"
        )
        return FileKeyValueStore(**config)

    if store_type_str == "redis":
        config["host"] = (
            redis_host or os.getenv("PREFETCH_KV_STORE_REDIS_HOST") or "localhost"
        )
        config["port"] = redis_port or _get_env_int("PREFETCH_KV_STORE_REDIS_PORT", 6379)
        config["db"] = redis_db or _get_env_int("PREFETCH_KV_STORE_REDIS_DB", 0)
        redis_password_value = redis_password or os.getenv(
            "PREFETCH_KV_STORE_REDIS_PASSWORD"
        )
        if redis_password_value:
            config["password"] = redis_password_value
        return RedisKeyValueStore(**config)

    raise UnknownStoreTypeError(store_type_str)

"""Redis key-value store implementation.

This module provides the RedisKeyValueStore class for keeping queue snapshots
in Redis, including lazy connection management.
"""

from datetime import timedelta
from typing import Any, cast

import redis.asyncio as redis
import structlog

from prefetch_core.exceptions import PersistenceError

from .base import BaseKeyValueStore

# Get logger for this module
logger = structlog.get_logger(__name__)


class RedisConnectionError(PersistenceError):
    """Raised when the Redis connection cannot be established."""

    def __init__(self, reason: object) -> None:
        """Initialize the Redis connection error."""
        super().__init__(f"Redis connection failed: {reason}", "redis")


class RedisKeyValueStore(BaseKeyValueStore):
    """Redis key-value store implementation.

    The connection is opened on first use, so constructing the store never
    touches the network.
    """

    def __init__(self, **kwargs: object) -> None:
        """Initialize the Redis store."""
        super().__init__(**kwargs)

        self._host: str = cast("str", kwargs.get("host", "localhost"))
        self._port: int = cast("int", kwargs.get("port", 6379))
        self._db: int = cast("int", kwargs.get("db", 0))
        self._password: str | None = cast("str | None", kwargs.get("password"))
        self._ssl: bool = cast("bool", kwargs.get("ssl", False))
        self._timeout: float = cast("float", kwargs.get("timeout", 5.0))

        self._redis: redis.Redis | None = cast("redis.Redis | None", kwargs.get("client"))

    async def _connection(self) -> redis.Redis:
        """Return the Redis client, connecting on first use."""
        if self._redis is None:
            connection_kwargs: dict[str, Any] = {
                "host": self._host,
                "port": self._port,
                "db": self._db,
                "password": self._password,
                "socket_timeout": self._timeout,
                "socket_connect_timeout": self._timeout,
                "decode_responses": True,
            }
            if self._ssl:
                connection_kwargs["ssl"] = self._ssl

            client = redis.Redis(**connection_kwargs)
            try:
                await client.ping()
            except redis.RedisError as e:
                await client.aclose()
                raise RedisConnectionError(e) from e

            logger.debug("REDIS_CONNECTED", host=self._host, port=self._port, db=self._db)
            self._redis = client

        return self._redis

    async def put(
        self,
        key: str,
        value: object,
        ttl: int | timedelta | None = None,
        prefix: str | None = None,
    ) -> None:
        """Store a value with the given key."""
        client = await self._connection()
        prefixed_key = self._get_prefixed_key(key, prefix)
        serialized_value = self._serialize(value)

        ttl_seconds = self._normalize_ttl(ttl)
        if ttl_seconds is not None:
            await client.setex(prefixed_key, ttl_seconds, serialized_value)
        else:
            await client.set(prefixed_key, serialized_value)

    async def get(
        self,
        key: str,
        default: object = None,
        prefix: str | None = None,
    ) -> object | None:
        """Retrieve a value by key."""
        client = await self._connection()
        serialized_value = await client.get(self._get_prefixed_key(key, prefix))

        if serialized_value is None:
            return default
        return self._deserialize(serialized_value)

    async def delete(self, key: str, prefix: str | None = None) -> bool:
        """Delete a key-value pair."""
        client = await self._connection()
        result = await client.delete(self._get_prefixed_key(key, prefix))
        return bool(result > 0)

    async def exists(self, key: str, prefix: str | None = None) -> bool:
        """Check if a key exists."""
        client = await self._connection()
        result = await client.exists(self._get_prefixed_key(key, prefix))
        return bool(result > 0)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

"""Key-value store utility functions and helpers.

This module provides utility functions for key-value store implementations,
including serialization, TTL normalization, and key prefixing.
"""

import json
from datetime import timedelta


def get_prefixed_key(key: str, prefix: str | None = None) -> str:
    """Get the key with prefix applied.

    Args:
        key: The base key
        prefix: Optional prefix to prepend to the key

    Returns:
        The key with prefix applied
    """
    if prefix:
        if not prefix.endswith(":"):
            prefix = f"{prefix}:"
        return f"{prefix}{key}"
    return key


def serialize_value(value: object) -> str:
    """Serialize a value as JSON for storage."""
    return json.dumps(value, default=str)


def deserialize_value(value: str | bytes) -> object:
    """Deserialize a stored JSON value.

    Raises:
        ValueError: If the stored value is not valid JSON.
    """
    return json.loads(value)


def normalize_ttl(
    ttl: int | timedelta | None, default_ttl: int | None = None
) -> int | None:
    """Normalize TTL to seconds.

    Args:
        ttl: The TTL value to normalize
        default_ttl: Default TTL to use if ttl is None

    Returns:
        TTL in seconds, or None if no TTL should be set
    """
    if ttl is None:
        return default_ttl

    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())

    return ttl

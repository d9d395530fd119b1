"""CLI configuration using environ-config.

This module defines the application settings, read from ``PREFETCH_APP_*``
environment variables. Command-line options override them by being layered
on top of the environment before the configuration is built.
"""

import os
from collections.abc import Mapping

import environ

from prefetch_core.config import PrefetchConfig
from prefetch_http.http_config import HttpProtocolConfig

ENV_PREFIX = "PREFETCH_APP"


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)  # type: ignore[call-overload]


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@environ.config(prefix=ENV_PREFIX)
class AppConfig:
    """Configuration shared by all commands."""

    # Provider endpoint
    base_url: str = environ.var(
        default="http://localhost:3000", help="Base URL of the item provider"
    )
    endpoint_path: str = environ.var(
        default="/api/dogs/prefetch", help="Path of the batch endpoint"
    )
    http_timeout: float = environ.var(
        default=10.0, converter=float, help="HTTP request timeout in seconds"
    )
    max_retries: int = environ.var(
        default=2, converter=int, help="Retries for transient fetch failures"
    )

    # Queue behavior
    batch_size: int = environ.var(
        default=10, converter=int, help="Items requested per fetch"
    )
    refill_threshold: int = environ.var(
        default=3, converter=int, help="Queue length below which a refill starts"
    )
    fetch_timeout: float = environ.var(
        default=15.0, converter=float, help="Upper bound of one fetch in seconds"
    )
    persist: bool = environ.bool_var(
        default=True, help="Keep a snapshot of the queue between runs"
    )
    prime_resources: bool = environ.bool_var(
        default=True, help="Download item resources ahead of time"
    )
    storage_key: str = environ.var(
        default="prefetch_queue", help="Key of the queue snapshot"
    )
    storage_prefix: str = environ.var(
        default="feed", help="Namespace of the queue snapshot key"
    )

    # KV store configuration
    kvstore: str = environ.var(
        default="file", help="Key-value store to use (memory, file or redis)"
    )
    kvstore_file_path: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="Directory of the file store (when using file)",
    )
    kvstore_key_prefix: str | None = environ.var(
        default=None, converter=_optional_str, help="Prefix applied to every key"
    )
    kvstore_default_ttl: int | None = environ.var(
        default=None,
        converter=_optional_int,
        help="Default TTL (seconds) for KV store entries",
    )
    kvstore_redis_host: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="Redis host for KV store (when using redis)",
    )
    kvstore_redis_port: int | None = environ.var(
        default=None,
        converter=_optional_int,
        help="Redis port for KV store (when using redis)",
    )
    kvstore_redis_db: int | None = environ.var(
        default=None,
        converter=_optional_int,
        help="Redis database number for KV store (when using redis)",
    )
    kvstore_redis_password: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="Redis password for KV store (when using redis)",
    )

    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )

    def to_prefetch_config(self) -> PrefetchConfig:
        return PrefetchConfig(
            batch_size=self.batch_size,
            refill_threshold=self.refill_threshold,
            persist=self.persist,
            fetch_timeout=self.fetch_timeout,
            storage_key=self.storage_key,
            storage_prefix=self.storage_prefix,
        )

    def to_http_config(self) -> HttpProtocolConfig:
        return HttpProtocolConfig(
            base_url=self.base_url,
            endpoint_path=self.endpoint_path,
            timeout=self.http_timeout,
            max_retries=self.max_retries,
        )


def create_app_config(
    overrides: Mapping[str, object] | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Create an AppConfig from environment variables and explicit overrides.

    Args:
        overrides: Field values that take precedence over the environment,
            typically collected from command-line options. None values are
            ignored.
        env: Environment to read. If None, uses os.environ.

    Returns:
        AppConfig instance.
    """
    layered = dict(os.environ if env is None else env)
    for name, value in (overrides or {}).items():
        if value is not None:
            layered[f"{ENV_PREFIX}_{name.upper()}"] = str(value)
    return environ.to_config(AppConfig, layered)

"""Factory functions for creating HTTP components.

This module provides factory functions to create and configure the HTTP
components and to wire them into a ready-to-use prefetch queue manager.
"""

from prefetch_core.config import PrefetchConfig
from prefetch_core.core import DEFAULT_LOCATOR_FIELD
from prefetch_core.kv_store import KeyValueStore
from prefetch_core.manager import PrefetchQueueManager
from prefetch_core.preload import ResourcePreloader
from prefetch_http.fetch_client import FetchClient
from prefetch_http.http_config import HttpProtocolConfig
from prefetch_http.preloader import HttpResourcePrimer


def create_http_protocol_config(
    base_url: str = "",
    endpoint_path: str = "/api/dogs/prefetch",
    timeout: float = 10.0,
    max_retries: int = 2,
    default_headers: dict[str, str] | None = None,
) -> HttpProtocolConfig:
    """Create an HTTP protocol configuration with the given settings.

    Args:
        base_url: Base URL of the item provider.
        endpoint_path: Path of the batch endpoint. Defaults to "/api/dogs/prefetch".
        timeout: Request timeout in seconds. Defaults to 10.0.
        max_retries: Maximum number of retries. Defaults to 2.
        default_headers: Default HTTP headers. Defaults to None.

    Returns:
        Configured HttpProtocolConfig instance.
    """
    return HttpProtocolConfig(
        base_url=base_url,
        endpoint_path=endpoint_path,
        timeout=timeout,
        max_retries=max_retries,
        default_headers=default_headers,
    )


def create_fetch_client(
    config: HttpProtocolConfig, locator_field: str = DEFAULT_LOCATOR_FIELD
) -> FetchClient:
    """Create a fetch client that owns its HTTP connection pool."""
    return FetchClient(config, locator_field=locator_field)


def create_resource_primer(config: HttpProtocolConfig) -> HttpResourcePrimer:
    """Create an HTTP primer for item resources."""
    return HttpResourcePrimer(config)


def create_prefetch_manager(
    http_config: HttpProtocolConfig,
    prefetch_config: PrefetchConfig | None = None,
    kv_store: KeyValueStore | None = None,
    *,
    prime_resources: bool = True,
    max_concurrent_primes: int = 4,
) -> tuple[PrefetchQueueManager, FetchClient, HttpResourcePrimer | None]:
    """Wire a manager to an HTTP fetch client and resource primer.

    The caller owns the returned client and primer and must close them after
    closing the manager.

    Args:
        http_config: HTTP configuration of the item provider.
        prefetch_config: Queue configuration.
        kv_store: Store for queue snapshots, or None to disable persistence.
        prime_resources: Whether to download item resources ahead of time.
        max_concurrent_primes: Maximum number of downloads running at once.

    Returns:
        The manager, its fetch client, and its primer (None when disabled).
    """
    prefetch_config = prefetch_config or PrefetchConfig()
    fetch_client = create_fetch_client(http_config, prefetch_config.locator_field)
    primer = create_resource_primer(http_config) if prime_resources else None
    manager = PrefetchQueueManager(
        fetch_client,
        config=prefetch_config,
        kv_store=kv_store,
        preloader=ResourcePreloader(primer, max_concurrency=max_concurrent_primes),
    )
    return manager, fetch_client, primer

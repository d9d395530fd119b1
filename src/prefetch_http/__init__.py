"""HTTP transport for the prefetch queue.

This package provides the fetch client for the item provider endpoint, the
HTTP resource primer, and factories that wire them into a manager.
"""

from .factory import (
    create_fetch_client,
    create_http_protocol_config,
    create_prefetch_manager,
    create_resource_primer,
)
from .fetch_client import FetchClient
from .http_config import HttpProtocolConfig
from .preloader import HttpResourcePrimer

__all__ = [
    "FetchClient",
    "HttpProtocolConfig",
    "HttpResourcePrimer",
    "create_fetch_client",
    "create_http_protocol_config",
    "create_prefetch_manager",
    "create_resource_primer",
]

"""Prefetch queue core.

This package keeps a consumer-facing feed supplied with prefetched items: the
deduplicating item queue, the refill policy, snapshot persistence, and
resource priming, exposed through ``PrefetchQueueManager``.
"""

from .config import PrefetchConfig
from .coordinator import BatchFetcher, RefillCoordinator, RefillState
from .core import Item, ItemId
from .exceptions import (
    ConfigurationError,
    CorruptSnapshotError,
    FetchError,
    ItemValidationError,
    PersistenceError,
    PrefetchError,
    ProtocolFailure,
    ShapeFailure,
    TransportFailure,
)
from .manager import PrefetchQueueManager
from .persistence import QueuePersistence
from .preload import ResourcePreloader

__all__ = [
    "BatchFetcher",
    "ConfigurationError",
    "CorruptSnapshotError",
    "FetchError",
    "Item",
    "ItemId",
    "ItemValidationError",
    "PersistenceError",
    "PrefetchConfig",
    "PrefetchError",
    "PrefetchQueueManager",
    "ProtocolFailure",
    "QueuePersistence",
    "RefillCoordinator",
    "RefillState",
    "ResourcePreloader",
    "ShapeFailure",
    "TransportFailure",
]

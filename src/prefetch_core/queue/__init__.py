"""Item queue implementation.

This module provides the deduplicating FIFO buffer of prefetched items and the
serializer used for its persisted snapshots.
"""

from .base import QueueChange, QueueListener, Serializer
from .item_queue import ItemQueue
from .serializers import ItemSnapshotSerializer

__all__ = [
    "ItemQueue",
    "ItemSnapshotSerializer",
    "QueueChange",
    "QueueListener",
    "Serializer",
]

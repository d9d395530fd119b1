"""In-memory item queue implementation.

This module provides the ordered, deduplicating buffer of items that have been
fetched but not yet consumed. All mutations are synchronous, so nothing can
interleave with them on the event loop.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

import structlog

from prefetch_core.core import DEFAULT_LOCATOR_FIELD
from prefetch_core.exceptions import CorruptSnapshotError

from .base import ChangeReason, QueueChange, QueueListener
from .serializers import ItemSnapshotSerializer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prefetch_core.core import Item, ItemId

    from .base import Serializer

# Get logger for this module
logger = structlog.get_logger(__name__)


class ItemQueue:
    """FIFO buffer of items with unique IDs.

    Items are appended at the tail and removed from the head or all at once.
    An item whose ID is already anywhere in the queue is never appended again.
    """

    def __init__(
        self,
        serializer: Serializer | None = None,
        locator_field: str = DEFAULT_LOCATOR_FIELD,
    ) -> None:
        """Initialize an empty queue.

        Args:
            serializer: Serializer used to validate snapshots in ``restore``.
            locator_field: Locator field name for the default serializer.
        """
        self._ser = serializer or ItemSnapshotSerializer(locator_field)
        self._items: deque[Item] = deque()
        self._ids: set[ItemId] = set()
        self._listeners: list[QueueListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def length(self) -> int:
        """Get current queue size."""
        return len(self._items)

    def head(self) -> Item | None:
        """Return the first item without removing it."""
        return self._items[0] if self._items else None

    def items(self) -> tuple[Item, ...]:
        """Return a snapshot of the queue contents in order."""
        return tuple(self._items)

    def ids(self) -> frozenset[ItemId]:
        """Return the IDs currently held."""
        return frozenset(self._ids)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def add_listener(self, listener: QueueListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: QueueListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append(self, items: Iterable[Item]) -> int:
        """Add items at the tail, skipping IDs already in the queue.

        Args:
            items: Items in provider order.

        Returns:
            Number of items actually appended.
        """
        if items is None:
            error_message = "items cannot be None"
            raise ValueError(error_message)

        appended = 0
        skipped = 0
        for item in items:
            if item.id in self._ids:
                skipped += 1
                continue
            self._items.append(item)
            self._ids.add(item.id)
            appended += 1

        if skipped:
            logger.debug("DUPLICATE_ITEMS_SKIPPED", count=skipped)
        if appended:
            self._notify("append", appended)
        return appended

    def pop_head(self) -> Item | None:
        """Remove and return the head item; no-op on an empty queue."""
        if not self._items:
            return None
        item = self._items.popleft()
        self._ids.discard(item.id)
        self._notify("pop", 1)
        return item

    def clear(self) -> int:
        """Remove all items.

        Returns:
            Number of items that were cleared from the queue.
        """
        cleared_count = len(self._items)
        self._items.clear()
        self._ids.clear()
        self._notify("clear", cleared_count)
        return cleared_count

    def restore(self, snapshot: object) -> bool:
        """Replace the contents with a previously persisted snapshot.

        An invalid snapshot is discarded and leaves the queue empty.

        Returns:
            True if the snapshot was applied.
        """
        try:
            restored = self._ser.loads(snapshot)
        except CorruptSnapshotError as e:
            logger.debug("SNAPSHOT_DISCARDED", reason=e.message)
            restored = []

        had_items = bool(self._items)
        self._items = deque(restored)
        self._ids = {item.id for item in restored}
        if restored or had_items:
            self._notify("restore", len(restored))
        return bool(restored)

    def _notify(self, reason: ChangeReason, count: int) -> None:
        change = QueueChange(reason=reason, length=len(self._items), count=count)
        for listener in list(self._listeners):
            listener(change)

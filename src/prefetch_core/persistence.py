"""Snapshot persistence for the prefetch queue.

This module provides the QueuePersistence adapter, which writes the queue
contents to a key-value store and reads them back at activation. Persistence
is an optimization: every storage failure is logged and absorbed here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from prefetch_core.core import DEFAULT_LOCATOR_FIELD
from prefetch_core.exceptions import CorruptSnapshotError
from prefetch_core.queue import ItemSnapshotSerializer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prefetch_core.core import Item
    from prefetch_core.kv_store import KeyValueStore
    from prefetch_core.queue import Serializer

# Get logger for this module
logger = structlog.get_logger(__name__)


class QueuePersistence:
    """Reads and writes queue snapshots under a single namespaced key."""

    def __init__(
        self,
        kv_store: KeyValueStore | None,
        key: str = "prefetch_queue",
        prefix: str | None = "feed",
        *,
        enabled: bool = True,
        ttl: int | None = None,
        serializer: Serializer | None = None,
        locator_field: str = DEFAULT_LOCATOR_FIELD,
    ) -> None:
        """Initialize the persistence adapter.

        Args:
            kv_store: Backing store. ``None`` disables persistence.
            key: Storage key of the snapshot.
            prefix: Namespace prefix applied to the key.
            enabled: When False no reads or writes ever happen.
            ttl: Optional lifetime of a written snapshot, in seconds.
            serializer: Snapshot serializer.
            locator_field: Locator field name for the default serializer.
        """
        self._kv_store = kv_store
        self._key = key
        self._prefix = prefix
        self._enabled = enabled and kv_store is not None
        self._ttl = ttl
        self._ser = serializer or ItemSnapshotSerializer(locator_field)

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def save(self, items: Sequence[Item]) -> bool:
        """Write the queue contents, or remove the key when the queue is empty.

        Returns:
            True if the store accepted the write.
        """
        if not self._enabled:
            return False
        try:
            if items:
                await self._store.put(
                    self._key, self._ser.dumps(items), ttl=self._ttl, prefix=self._prefix
                )
            else:
                await self._store.delete(self._key, prefix=self._prefix)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "SNAPSHOT_SAVE_FAILED",
                key=self._key,
                items=len(items),
                storage_type=type(self._kv_store).__name__,
                error=str(e),
            )
            return False

        logger.debug("SNAPSHOT_SAVED", key=self._key, items=len(items))
        return True

    async def load(self) -> list[Item] | None:
        """Read the stored snapshot.

        Returns:
            The stored items, or None when the snapshot is absent, unreadable
            or structurally invalid.
        """
        if not self._enabled:
            return None
        try:
            raw = await self._store.get(self._key, prefix=self._prefix)
        except Exception as e:  # noqa: BLE001
            logger.warning("SNAPSHOT_LOAD_FAILED", key=self._key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            items = self._ser.loads(raw)
        except CorruptSnapshotError as e:
            logger.warning("SNAPSHOT_CORRUPT", key=self._key, reason=e.message)
            return None

        logger.debug("SNAPSHOT_LOADED", key=self._key, items=len(items))
        return items or None

    async def erase(self) -> None:
        """Remove the stored snapshot."""
        if not self._enabled:
            return
        try:
            await self._store.delete(self._key, prefix=self._prefix)
        except Exception as e:  # noqa: BLE001
            logger.warning("SNAPSHOT_ERASE_FAILED", key=self._key, error=str(e))

    @property
    def _store(self) -> KeyValueStore:
        assert self._kv_store is not None  # noqa: S101
        return self._kv_store

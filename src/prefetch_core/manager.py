"""Prefetch queue manager.

This module contains the PrefetchQueueManager, the single object a consumer
talks to. It owns the item queue and wires it to the refill coordinator, the
snapshot persistence, and the resource preloader.

Example:
    async with PrefetchQueueManager(fetch_client, config=config) as manager:
        await manager.refetch()
        item = manager.current()
        ...
        manager.pop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from prefetch_core.config import PrefetchConfig
from prefetch_core.coordinator import BatchFetcher, RefillCoordinator, RefillState
from prefetch_core.persistence import QueuePersistence
from prefetch_core.preload import ResourcePreloader
from prefetch_core.queue import ItemQueue, QueueChange

if TYPE_CHECKING:
    from prefetch_core.core import Item
    from prefetch_core.kv_store import KeyValueStore

# Get logger for this module
logger = structlog.get_logger(__name__)

ManagerListener = Callable[["PrefetchQueueManager"], None]


class PrefetchQueueManager:
    """Keeps a consumer-facing feed supplied with prefetched items.

    All methods must be used from within a running event loop: mutations are
    synchronous, while fetching, snapshot writes and resource priming run as
    background tasks.
    """

    def __init__(
        self,
        fetcher: BatchFetcher,
        config: PrefetchConfig | None = None,
        kv_store: KeyValueStore | None = None,
        preloader: ResourcePreloader | None = None,
        persistence: QueuePersistence | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            fetcher: Source of new items, usually a ``FetchClient``.
            config: Queue configuration. Defaults to ``PrefetchConfig()``.
            kv_store: Store for queue snapshots. Ignored when ``persistence``
                is given; persistence is off when both are None.
            preloader: Resource preloader. Defaults to a no-op primer.
            persistence: Explicit persistence adapter.
        """
        self._config = config or PrefetchConfig()
        self._queue = ItemQueue(locator_field=self._config.locator_field)
        self._persistence = persistence or QueuePersistence(
            kv_store,
            key=self._config.storage_key,
            prefix=self._config.storage_prefix,
            enabled=self._config.persist,
            ttl=self._config.snapshot_ttl,
            locator_field=self._config.locator_field,
        )
        self._preloader = preloader or ResourcePreloader()
        self._coordinator = RefillCoordinator(
            self._queue,
            fetcher,
            batch_size=self._config.batch_size,
            refill_threshold=self._config.refill_threshold,
            fetch_timeout=self._config.fetch_timeout,
            on_state_change=self._notify_listeners,
        )

        self._listeners: list[ManagerListener] = []
        self._active = False
        self._save_task: asyncio.Task[None] | None = None
        self._save_pending = False

        self._queue.add_listener(self._on_queue_change)

    @property
    def config(self) -> PrefetchConfig:
        return self._config

    @property
    def active(self) -> bool:
        return self._active

    @property
    def state(self) -> RefillState:
        return self._coordinator.state

    def current(self) -> Item | None:
        """Return the item to display next, if any."""
        return self._queue.head()

    def length(self) -> int:
        return self._queue.length()

    def __len__(self) -> int:
        return self._queue.length()

    def items(self) -> tuple[Item, ...]:
        """Return a read-only copy of the queued items."""
        return self._queue.items()

    def is_loading(self) -> bool:
        return self._coordinator.is_fetching

    def is_exhausted(self) -> bool:
        return self._coordinator.is_exhausted

    def last_error(self) -> str | None:
        return self._coordinator.last_error

    def add_listener(self, listener: ManagerListener) -> None:
        """Register a callback invoked after every queue or flag change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ManagerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def activate(self) -> None:
        """Hydrate the queue from the snapshot and start the initial fetch.

        Calling it again while active does nothing.
        """
        if self._active:
            return
        self._active = True

        # A pending write may still hold the erase issued by clear()
        await self._wait_for_save()
        snapshot = await self._persistence.load()
        if snapshot and self._queue.length() == 0:
            self._queue.restore(snapshot)
            logger.info("QUEUE_RESTORED", items=self._queue.length())

        self._preloader.preload(self._queue.items())
        self._coordinator.activate()

    def pop(self) -> Item | None:
        """Remove the current item after the consumer is done with it."""
        item = self._queue.pop_head()
        if self._active:
            self._coordinator.after_pop()
        return item

    def clear(self) -> None:
        """Drop every item, reset all flags and erase the snapshot.

        The manager becomes inactive; the next ``activate`` behaves like the
        first one.
        """
        self._coordinator.reset()
        self._queue.clear()
        self._preloader.reset()
        self._active = False
        logger.info("QUEUE_CLEARED")

    async def refetch(self) -> None:
        """Fetch more items now and wait for the attempt to finish.

        Joins the in-flight fetch instead of starting another one.
        """
        await self._coordinator.refetch()

    async def flush(self) -> None:
        """Wait until pending snapshot writes and resource primes are done."""
        await self._wait_for_save()
        await self._preloader.drain()

    async def aclose(self) -> None:
        """Stop fetching, flush the snapshot and cancel outstanding primes."""
        await self._coordinator.aclose()
        await self._wait_for_save()
        await self._preloader.close()

    async def __aenter__(self) -> PrefetchQueueManager:
        await self.activate()
        return self

    async def __aexit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> None:
        await self.aclose()

    def _on_queue_change(self, change: QueueChange) -> None:
        logger.debug(
            "QUEUE_CHANGED", reason=change.reason, count=change.count, length=change.length
        )
        self._schedule_save()
        items = self._queue.items()
        self._preloader.retain(items)
        self._preloader.preload(items)
        if self._active and change.reason != "clear":
            self._coordinator.on_length_change()
        self._notify_listeners()

    def _schedule_save(self) -> None:
        if not self._persistence.enabled:
            return
        self._save_pending = True
        if self._save_task is None:
            self._save_task = asyncio.create_task(self._save_loop())

    async def _wait_for_save(self) -> None:
        while self._save_task is not None:
            await asyncio.wait({self._save_task})

    async def _save_loop(self) -> None:
        # Coalesces bursts of mutations; the latest contents always win
        try:
            while self._save_pending:
                self._save_pending = False
                await self._persistence.save(self._queue.items())
        finally:
            self._save_task = None

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("LISTENER_FAILED", listener=repr(listener))

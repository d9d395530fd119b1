"""Refill policy for the prefetch queue.

This module provides the RefillCoordinator, which decides when to fetch more
items, makes sure at most one fetch is in flight, merges the results into the
queue, and tracks the loading, exhausted and error flags.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

import structlog

from prefetch_core.exceptions import FetchError, TransportFailure

if TYPE_CHECKING:
    from prefetch_core.core import Item, ItemId
    from prefetch_core.queue import ItemQueue

# Get logger for this module
logger = structlog.get_logger(__name__)


class BatchFetcher(Protocol):
    """Anything able to fetch a batch of new items from the provider."""

    async def fetch_batch(
        self, count: int, exclude_ids: Iterable[ItemId]
    ) -> Sequence[Item]: ...


class RefillState(enum.Enum):
    """Effective state derived from the coordinator flags."""

    IDLE = "idle"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"


class RefillCoordinator:
    """Keeps the queue supplied while guaranteeing a single in-flight fetch."""

    def __init__(
        self,
        queue: ItemQueue,
        fetcher: BatchFetcher,
        batch_size: int = 10,
        refill_threshold: int = 3,
        fetch_timeout: float | None = 15.0,
        on_state_change: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            queue: The queue to keep supplied.
            fetcher: Source of new items.
            batch_size: Number of items requested per fetch.
            refill_threshold: Queue length below which a refill fires.
            fetch_timeout: Upper bound in seconds for a single fetch, or None.
            on_state_change: Called whenever one of the flags changes.
        """
        self._queue = queue
        self._fetcher = fetcher
        self._batch_size = batch_size
        self._refill_threshold = refill_threshold
        self._fetch_timeout = fetch_timeout
        self._on_state_change = on_state_change

        self._task: asyncio.Task[None] | None = None
        self._exhausted = False
        self._last_error: str | None = None
        self.fetch_count = 0

    @property
    def is_fetching(self) -> bool:
        return self._task is not None

    @property
    def is_exhausted(self) -> bool:
        return self._exhausted

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def state(self) -> RefillState:
        if self.is_fetching:
            return RefillState.FETCHING
        if self._exhausted:
            return RefillState.EXHAUSTED
        if self._last_error is not None:
            return RefillState.ERRORED
        return RefillState.IDLE

    def activate(self) -> asyncio.Task[None] | None:
        """Issue the initial fetch if the queue is empty after hydration."""
        if self._queue.length() == 0:
            return self.request_refill("initial")
        return None

    def on_length_change(self) -> asyncio.Task[None] | None:
        """Apply the low-water mark after the queue length changed.

        An empty queue is left to ``activate`` and ``after_pop`` so that the
        initial fetch is never triggered twice.
        """
        length = self._queue.length()
        if (
            0 < length < self._refill_threshold
            and not self.is_fetching
            and not self._exhausted
        ):
            return self.request_refill("low_water_mark")
        return None

    def after_pop(self) -> asyncio.Task[None] | None:
        """Make sure a drained queue attempts a refill."""
        if self._queue.length() == 0 and not self._exhausted:
            return self.request_refill("drained")
        return None

    def request_refill(self, reason: str = "manual") -> asyncio.Task[None]:
        """Start a fetch unless one is already in flight.

        Must be called from within a running event loop.

        Returns:
            The task of the fetch that is now in flight.
        """
        if self._task is not None:
            logger.debug("REFILL_ALREADY_IN_FLIGHT", reason=reason)
            return self._task

        exclude_ids = tuple(item.id for item in self._queue.items())
        self._task = asyncio.create_task(self._run_fetch(exclude_ids, reason))
        self.fetch_count += 1
        self._changed()
        return self._task

    async def refetch(self) -> None:
        """Trigger a fetch manually and wait for the attempt to finish."""
        task = self.request_refill("manual")
        # asyncio.wait neither cancels the shared fetch nor raises its outcome
        await asyncio.wait({task})

    def reset(self) -> None:
        """Return to idle, dropping any in-flight fetch and both flags."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            logger.debug("IN_FLIGHT_FETCH_CANCELLED")
        self._exhausted = False
        self._last_error = None
        self._changed()

    async def aclose(self) -> None:
        """Cancel the in-flight fetch and wait for it to stop."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run_fetch(self, exclude_ids: tuple[ItemId, ...], reason: str) -> None:
        task = asyncio.current_task()
        logger.info(
            "FETCH_STARTED",
            reason=reason,
            count=self._batch_size,
            excluded=len(exclude_ids),
        )
        appended = 0
        try:
            try:
                items = await asyncio.wait_for(
                    self._fetcher.fetch_batch(self._batch_size, exclude_ids),
                    timeout=self._fetch_timeout,
                )
            except TimeoutError as e:
                error_message = f"Fetch timed out after {self._fetch_timeout}s"
                raise TransportFailure(error_message) from e
        except FetchError as e:
            if self._task is not task:
                return
            self._last_error = e.message
            logger.warning(
                "FETCH_FAILED",
                reason=reason,
                error=e.message,
                error_code=e.error_code,
                queue_size=self._queue.length(),
            )
        except Exception as e:
            if self._task is not task:
                return
            self._last_error = str(e) or "Failed to fetch items"
            logger.exception("FETCH_FAILED_UNEXPECTEDLY", reason=reason)
        else:
            if self._task is not task:
                return
            self._last_error = None
            if items:
                appended = self._queue.append(items)
                self._exhausted = False
            else:
                self._exhausted = self._queue.length() == 0
            logger.info(
                "FETCH_COMPLETED",
                reason=reason,
                received=len(items),
                appended=appended,
                queue_size=self._queue.length(),
                exhausted=self._exhausted,
            )
        finally:
            if self._task is task:
                self._task = None
                self._changed()

        if appended:
            self.on_length_change()

    def _changed(self) -> None:
        if self._on_state_change is not None:
            self._on_state_change()

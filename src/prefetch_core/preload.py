"""Resource priming for queued items.

This module provides the ResourcePreloader, which warms each item's external
resource in the background so that it is ready by the time the item reaches
the head of the queue. Priming is best effort; its failures never reach the
consumer.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prefetch_core.core import Item

# Get logger for this module
logger = structlog.get_logger(__name__)

PrimeFunc = Callable[[str], Awaitable[object]]


async def noop_primer(_locator: str) -> None:
    """Primer for targets that have nothing to warm."""


class ResourcePreloader:
    """Schedules one priming request per resource locator.

    Locators are remembered while their items stay queued, so offering the
    same items again is cheap and issues no new requests.
    """

    def __init__(self, primer: PrimeFunc | None = None, max_concurrency: int = 4) -> None:
        """Initialize the preloader.

        Args:
            primer: Async callable that warms one locator. Defaults to a no-op.
            max_concurrency: Maximum number of primes running at once.
        """
        if max_concurrency < 1:
            error_message = "max_concurrency must be at least 1"
            raise ValueError(error_message)
        self._primer = primer or noop_primer
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._primed: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def primed(self) -> frozenset[str]:
        """Locators primed for items that are still queued."""
        return frozenset(self._primed)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def preload(self, items: Iterable[Item]) -> int:
        """Schedule priming for every item whose locator has not been seen.

        Must be called from within a running event loop.

        Returns:
            Number of priming requests scheduled.
        """
        scheduled = 0
        for item in items:
            locator = item.resource_url
            if locator in self._primed:
                continue
            self._primed.add(locator)
            task = asyncio.create_task(self._prime(locator))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            scheduled += 1

        if scheduled:
            logger.debug("RESOURCE_PRIMING_SCHEDULED", count=scheduled)
        return scheduled

    def retain(self, items: Iterable[Item]) -> None:
        """Forget primed locators that no longer belong to any of ``items``."""
        self._primed.intersection_update(item.resource_url for item in items)

    def reset(self) -> None:
        """Forget primed locators so they are primed again on next sight."""
        self._primed.clear()

    async def drain(self) -> None:
        """Wait until every scheduled prime has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding primes."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _prime(self, locator: str) -> None:
        async with self._semaphore:
            try:
                await self._primer(locator)
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                logger.debug("RESOURCE_PRIMING_FAILED", locator=locator, error=str(e))
            else:
                logger.debug("RESOURCE_PRIMED", locator=locator)

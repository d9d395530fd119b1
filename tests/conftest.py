"""PyTest configuration and shared test fixtures.

This module provides PyTest configuration, shared fixtures, and test
utilities that are used across multiple test files.
"""

import asyncio
from collections.abc import Callable, Generator, Iterable
from typing import Any

import pytest
import structlog

from prefetch_core.core import Item, ItemId


def _make_item(item_id: ItemId, **fields: Any) -> Item:
    record = {"id": item_id, "image_url": f"https://img.example/{item_id}.jpg"}
    record.update(fields)
    return Item.from_dict(record)


class FakeFetcher:
    """Scripted batch fetcher.

    Every call consumes the next scripted response: an iterable of IDs is
    turned into items, an exception instance is raised. Once the script runs
    out, calls return no items. When ``gated`` the call blocks until
    ``release`` is set.
    """

    def __init__(self, *responses: Iterable[ItemId] | BaseException, gated: bool = False) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[int, tuple[ItemId, ...]]] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        if not gated:
            self.release.set()

    async def fetch_batch(
        self, count: int, exclude_ids: Iterable[ItemId] = ()
    ) -> list[Item]:
        self.calls.append((count, tuple(exclude_ids)))
        self.started.set()
        await self.release.wait()
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, BaseException):
            raise response
        return [_make_item(item_id) for item_id in response]


@pytest.fixture
def make_item() -> Callable[..., Item]:
    """Build a valid item with a locator derived from its ID."""
    return _make_item


@pytest.fixture
def make_items() -> Callable[..., list[Item]]:
    """Build valid items for the given IDs, in order."""

    def _make_items(*item_ids: ItemId) -> list[Item]:
        return [_make_item(item_id) for item_id in item_ids]

    return _make_items


@pytest.fixture
def fake_fetcher() -> type[FakeFetcher]:
    """Expose the scripted fetcher class to tests."""
    return FakeFetcher


@pytest.fixture
def wait_idle() -> Callable[[Any], Any]:
    """Wait until an object's ``is_loading`` (or ``is_fetching``) turns false."""

    async def _wait_idle(target: Any, timeout: float = 1.0) -> None:
        def _busy() -> bool:
            if hasattr(target, "is_loading"):
                return bool(target.is_loading())
            return bool(target.is_fetching)

        async def _poll() -> None:
            while _busy():
                await asyncio.sleep(0)
            # Let callbacks scheduled by the last fetch run
            await asyncio.sleep(0)

        await asyncio.wait_for(_poll(), timeout)

    return _wait_idle


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo logging configuration done by the CLI under test."""
    yield
    structlog.reset_defaults()

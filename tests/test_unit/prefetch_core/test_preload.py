"""Tests for background resource priming."""

import asyncio
from collections.abc import Callable

import pytest

from prefetch_core.core import Item
from prefetch_core.preload import ResourcePreloader


class TestResourcePreloader:
    """Test ResourcePreloader scheduling."""

    @pytest.mark.asyncio
    async def test_primes_each_locator_once(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        primed: list[str] = []

        async def primer(locator: str) -> None:
            primed.append(locator)

        preloader = ResourcePreloader(primer)

        assert preloader.preload(make_items(1, 2)) == 2
        assert preloader.preload(make_items(1, 2, 3)) == 1
        await preloader.drain()

        assert sorted(primed) == [
            "https://img.example/1.jpg",
            "https://img.example/2.jpg",
            "https://img.example/3.jpg",
        ]
        assert preloader.pending == 0

    @pytest.mark.asyncio
    async def test_failures_are_absorbed(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        async def primer(locator: str) -> None:
            raise OSError(f"cannot reach {locator}")

        preloader = ResourcePreloader(primer)
        preloader.preload(make_items(1))

        await preloader.drain()

        assert "https://img.example/1.jpg" in preloader.primed

    @pytest.mark.asyncio
    async def test_reset_allows_priming_again(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        calls: list[str] = []

        async def primer(locator: str) -> None:
            calls.append(locator)

        preloader = ResourcePreloader(primer)
        preloader.preload(make_items(1))
        await preloader.drain()

        preloader.reset()
        assert preloader.primed == frozenset()
        preloader.preload(make_items(1))
        await preloader.drain()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_retain_forgets_locators_of_departed_items(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        preloader = ResourcePreloader()
        preloader.preload(make_items(1, 2, 3))
        await preloader.drain()

        preloader.retain(make_items(3))

        assert preloader.primed == frozenset({"https://img.example/3.jpg"})

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, make_items: Callable[..., list[Item]]) -> None:
        running = 0
        peak = 0

        async def primer(_locator: str) -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        preloader = ResourcePreloader(primer, max_concurrency=2)
        preloader.preload(make_items(*range(6)))
        await preloader.drain()

        assert peak == 2

    @pytest.mark.asyncio
    async def test_close_cancels_pending(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        blocker = asyncio.Event()

        async def primer(_locator: str) -> None:
            await blocker.wait()

        preloader = ResourcePreloader(primer)
        preloader.preload(make_items(1, 2))
        await asyncio.sleep(0)

        await preloader.close()

        assert preloader.pending == 0

    @pytest.mark.asyncio
    async def test_default_primer_is_noop(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        preloader = ResourcePreloader()

        assert preloader.preload(make_items(1)) == 1
        await preloader.drain()

    def test_invalid_concurrency(self) -> None:
        with pytest.raises(ValueError, match="max_concurrency must be at least 1"):
            ResourcePreloader(max_concurrency=0)

"""Tests for queue snapshot persistence."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from prefetch_core.core import Item
from prefetch_core.kv_store import InMemoryKeyValueStore
from prefetch_core.persistence import QueuePersistence
from prefetch_core.queue import ItemQueue


class TestQueuePersistence:
    """Test saving, loading and erasing snapshots."""

    @pytest.fixture
    def kv_store(self) -> InMemoryKeyValueStore:
        return InMemoryKeyValueStore()

    @pytest.fixture
    def persistence(self, kv_store: InMemoryKeyValueStore) -> QueuePersistence:
        return QueuePersistence(kv_store, key="dog_queue", prefix="feed")

    @pytest.mark.asyncio
    async def test_round_trip(
        self,
        persistence: QueuePersistence,
        make_items: Callable[..., list[Item]],
    ) -> None:
        """Test that a saved queue restores with the same items in order."""
        queue = ItemQueue()
        queue.append(make_items(3, 1, 2))

        assert await persistence.save(queue.items()) is True
        loaded = await persistence.load()

        restored = ItemQueue()
        restored.restore(loaded)
        assert restored.items() == queue.items()

    @pytest.mark.asyncio
    async def test_snapshot_layout(
        self,
        persistence: QueuePersistence,
        kv_store: InMemoryKeyValueStore,
        make_item: Callable[..., Item],
    ) -> None:
        await persistence.save([make_item(1, name="Rex")])

        assert await kv_store.get("dog_queue", prefix="feed") == [
            {"id": 1, "image_url": "https://img.example/1.jpg", "name": "Rex"}
        ]

    @pytest.mark.asyncio
    async def test_empty_queue_removes_key(
        self,
        persistence: QueuePersistence,
        kv_store: InMemoryKeyValueStore,
        make_items: Callable[..., list[Item]],
    ) -> None:
        await persistence.save(make_items(1))

        assert await persistence.save([]) is True

        assert await kv_store.exists("dog_queue", prefix="feed") is False
        assert await persistence.load() is None

    @pytest.mark.asyncio
    async def test_missing_snapshot(self, persistence: QueuePersistence) -> None:
        assert await persistence.load() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stored",
        [
            {"id": 1},
            "garbage",
            [{"id": 1}],
            [{"image_url": "https://img.example/1.jpg"}],
            [],
        ],
    )
    async def test_corrupt_snapshot_reads_as_absent(
        self,
        persistence: QueuePersistence,
        kv_store: InMemoryKeyValueStore,
        stored: object,
    ) -> None:
        await kv_store.put("dog_queue", stored, prefix="feed")

        assert await persistence.load() is None

    @pytest.mark.asyncio
    async def test_save_failure_is_absorbed(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        """Test that a failing store never raises to the caller."""
        kv_store = AsyncMock()
        kv_store.put.side_effect = OSError("quota exceeded")
        persistence = QueuePersistence(kv_store)

        assert await persistence.save(make_items(1)) is False

    @pytest.mark.asyncio
    async def test_load_failure_is_absorbed(self) -> None:
        kv_store = AsyncMock()
        kv_store.get.side_effect = ValueError("undecodable")
        persistence = QueuePersistence(kv_store)

        assert await persistence.load() is None

    @pytest.mark.asyncio
    async def test_erase(
        self,
        persistence: QueuePersistence,
        kv_store: InMemoryKeyValueStore,
        make_items: Callable[..., list[Item]],
    ) -> None:
        await persistence.save(make_items(1, 2))

        await persistence.erase()

        assert await kv_store.exists("dog_queue", prefix="feed") is False

    @pytest.mark.asyncio
    async def test_erase_failure_is_absorbed(self) -> None:
        kv_store = AsyncMock()
        kv_store.delete.side_effect = ConnectionError("down")

        await QueuePersistence(kv_store).erase()

    @pytest.mark.asyncio
    async def test_disabled_persistence_never_touches_store(
        self, make_items: Callable[..., list[Item]]
    ) -> None:
        kv_store = AsyncMock()
        persistence = QueuePersistence(kv_store, enabled=False)

        assert persistence.enabled is False
        assert await persistence.save(make_items(1)) is False
        assert await persistence.load() is None
        await persistence.erase()

        kv_store.put.assert_not_called()
        kv_store.get.assert_not_called()
        kv_store.delete.assert_not_called()

    def test_no_store_disables_persistence(self) -> None:
        assert QueuePersistence(None).enabled is False

    @pytest.mark.asyncio
    async def test_ttl_is_forwarded(self, make_items: Callable[..., list[Item]]) -> None:
        kv_store = AsyncMock()
        persistence = QueuePersistence(kv_store, key="q", prefix="p", ttl=600)

        await persistence.save(make_items(1))

        kv_store.put.assert_awaited_once()
        assert kv_store.put.await_args.kwargs == {"ttl": 600, "prefix": "p"}

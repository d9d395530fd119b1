"""Serializers for queue snapshots.

This module provides the snapshot serializer that turns queue contents into a
JSON-compatible array of item records and validates such arrays on the way back.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from prefetch_core.core import DEFAULT_LOCATOR_FIELD, Item
from prefetch_core.exceptions import CorruptSnapshotError, ItemValidationError

from .base import Serializer

if TYPE_CHECKING:
    from prefetch_core.core import ItemId


class ItemSnapshotSerializer(Serializer):
    """Serializer for item snapshots using plain record dictionaries."""

    def __init__(self, locator_field: str = DEFAULT_LOCATOR_FIELD) -> None:
        self.locator_field = locator_field

    def dumps(self, items: Sequence[Item]) -> list[dict[str, object]]:
        return [item.to_dict() for item in items]

    def loads(self, data: object) -> list[Item]:
        # A raw JSON string is accepted as well as an already decoded value
        if isinstance(data, str | bytes):
            try:
                data = json.loads(data)
            except ValueError as e:
                error_message = f"Snapshot is not valid JSON: {e}"
                raise CorruptSnapshotError(error_message) from e

        if isinstance(data, str | bytes | Mapping) or not isinstance(data, Sequence):
            error_message = f"Snapshot must be an array, got {type(data).__name__}"
            raise CorruptSnapshotError(error_message)

        items: list[Item] = []
        seen: set[ItemId] = set()
        for index, record in enumerate(data):
            if isinstance(record, Item):
                item = record
            else:
                try:
                    item = Item.from_dict(record, self.locator_field)
                except ItemValidationError as e:
                    error_message = f"Snapshot record {index} is invalid: {e.message}"
                    raise CorruptSnapshotError(error_message) from e
            if item.id in seen:
                error_message = f"Snapshot repeats item id {item.id!r}"
                raise CorruptSnapshotError(error_message)
            seen.add(item.id)
            items.append(item)

        return items

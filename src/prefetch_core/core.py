"""Core data types of the prefetch queue.

This module provides the ``Item`` record that flows through the queue,
together with the validation shared by the fetch client and snapshot
restoration.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from prefetch_core.exceptions import ItemValidationError

ItemId = int | str

DEFAULT_LOCATOR_FIELD = "image_url"


def is_valid_item_id(value: object) -> bool:
    """Check that ``value`` can serve as an item ID.

    Non-zero integers (but not booleans) and non-empty strings are accepted.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value != 0
    return isinstance(value, str) and bool(value.strip())


@dataclass(frozen=True)
class Item:
    """A unit of content identified by ``id`` with an externally hosted resource.

    ``data`` holds the full record as it was received from the provider and is
    exposed read-only; the queue never changes an item once it is built.
    """

    id: ItemId
    resource_url: str
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)
    locator_field: str = field(
        default=DEFAULT_LOCATOR_FIELD, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @classmethod
    def from_dict(
        cls, data: object, locator_field: str = DEFAULT_LOCATOR_FIELD
    ) -> Item:
        """Create an Item from a provider record.

        Args:
            data: Mapping holding at least ``id`` and the locator field.
            locator_field: Name of the field holding the resource locator.

        Returns:
            A new Item instance.

        Raises:
            ItemValidationError: If required fields are missing or invalid.
        """
        if not isinstance(data, Mapping):
            error_message = "Item record must be a mapping"
            raise ItemValidationError(error_message)

        item_id = data.get("id")
        if not is_valid_item_id(item_id):
            error_message = f"Item record has an invalid id: {item_id!r}"
            raise ItemValidationError(error_message, "id")

        locator = data.get(locator_field)
        if not isinstance(locator, str) or not locator.strip():
            error_message = (
                f"Item {item_id!r} has an invalid {locator_field}: {locator!r}"
            )
            raise ItemValidationError(error_message, locator_field)

        return cls(
            id=item_id,  # type: ignore[arg-type]
            resource_url=locator,
            data=data,
            locator_field=locator_field,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the record this item was built from."""
        return {**self.data, "id": self.id, self.locator_field: self.resource_url}

    def get(self, key: str, default: object = None) -> object:
        """Read a display field from the underlying record."""
        return self.data.get(key, default)

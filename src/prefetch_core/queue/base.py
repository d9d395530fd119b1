"""Base queue interfaces and protocols.

This module defines the protocols used by the item queue: the serializer for
persisted snapshots and the listener contract for change notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prefetch_core.core import Item

ChangeReason = Literal["append", "pop", "clear", "restore"]


@dataclass(frozen=True)
class QueueChange:
    """Description of a single queue mutation."""

    reason: ChangeReason
    length: int
    count: int = 0


class QueueListener(Protocol):
    """Callable notified synchronously after every queue mutation."""

    def __call__(self, change: QueueChange) -> None: ...


class Serializer(Protocol):
    """Protocol for converting queue contents to and from snapshot form.

    Implementations turn items into JSON-compatible records and back, rejecting
    records that do not describe valid items.
    """

    def dumps(self, items: Sequence[Item]) -> list[dict[str, object]]:
        """Convert items to JSON-compatible records.

        Args:
            items: The items to serialize, in queue order.

        Returns:
            List of records in the same order.
        """
        ...

    def loads(self, data: object) -> list[Item]:
        """Convert a stored snapshot back into items.

        Args:
            data: The decoded snapshot value.

        Returns:
            The items, in stored order.

        Raises:
            CorruptSnapshotError: If the snapshot is structurally invalid.
        """
        ...

"""Sort descriptors for multi-level ordering."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import MissingArgumentError
from .expressions import predicate_name

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


class SortDirection(str, Enum):
    """Direction of one sort level."""

    ASCENDING = "asc"
    DESCENDING = "desc"


class NullSort(str, Enum):
    """
    Placement of ``None`` keys.

    ``UNSPECIFIED`` treats ``None`` as the lowest value: first when
    ascending, last when descending.
    """

    UNSPECIFIED = "unspecified"
    NULLS_FIRST = "nulls_first"
    NULLS_LAST = "nulls_last"


@dataclass(frozen=True)
class SortDescriptor(Generic[T]):
    """One level of a sort chain: key selector, direction and null placement."""

    key: Callable[[T], Any]
    direction: SortDirection = SortDirection.ASCENDING
    nulls: NullSort = NullSort.UNSPECIFIED

    def __post_init__(self) -> None:
        if self.key is None:
            raise MissingArgumentError("key")

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    @property
    def nulls_come_first(self) -> bool:
        if self.nulls is NullSort.UNSPECIFIED:
            return not self.descending
        return self.nulls is NullSort.NULLS_FIRST

    def with_nulls(self, nulls: NullSort) -> SortDescriptor[T]:
        """Return a copy with a different null placement."""
        return replace(self, nulls=nulls)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": predicate_name(self.key),
            "direction": self.direction.value,
            "nulls": self.nulls.value,
        }

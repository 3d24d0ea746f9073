"""Active filter entries and visible subsets."""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple, TypeVar

from .item import Matcher

T = TypeVar('T')


@dataclass(frozen=True)
class AppliedFilter:
    """
    A filter currently applied to a FilterEngine.

    Equality and hashing use ``(query, flags)`` only; the matcher is carried
    along so the filter can be re-evaluated when other filters are reset.
    """

    query: str
    flags: int = 0
    matcher: Optional[Matcher] = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> Tuple[str, int]:
        return self.query, self.flags


class VisibleSubset(Sequence[T]):
    """
    Read-only snapshot of the visible items in master order.

    ``indices`` holds the master index of every visible item.
    """

    def __init__(self, items: Sequence[T], indices: Sequence[int]):
        self._items = tuple(items)
        self._indices = tuple(indices)

    @property
    def indices(self) -> Tuple[int, ...]:
        return self._indices

    def __getitem__(self, position):
        return self._items[position]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __eq__(self, other) -> bool:
        if isinstance(other, VisibleSubset):
            return self._items == other._items and self._indices == other._indices
        if isinstance(other, (list, tuple)):
            return list(self._items) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"VisibleSubset({list(self._items)!r}, indices={list(self._indices)!r})"

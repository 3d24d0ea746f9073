"""
Core data structures.

Items, groups, applied filters and the ordered Collection they live in.
No Qt dependency.
"""

from .exceptions import (
    ListEngineError,
    IndexOutOfRangeError,
    InvalidArgumentError,
    NoSuchElementError,
    FilteringUnsupportedError,
    IllegalStateError,
)
from .item import Item, Matcher
from .group import Group, FLAG_FILTER_EMPTY_GROUPS
from .applied_filter import AppliedFilter, VisibleSubset
from .listeners import ListenerSet
from .collection import Collection, Order

__all__ = [
    "ListEngineError",
    "IndexOutOfRangeError",
    "InvalidArgumentError",
    "NoSuchElementError",
    "FilteringUnsupportedError",
    "IllegalStateError",
    "Item",
    "Matcher",
    "Group",
    "FLAG_FILTER_EMPTY_GROUPS",
    "AppliedFilter",
    "VisibleSubset",
    "ListenerSet",
    "Collection",
    "Order",
]

"""
Stacked filters over a Collection's master order.

The visible set is the intersection of the matches of every active filter,
kept in master order. Filtering never reorders or removes master data.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.applied_filter import AppliedFilter, VisibleSubset
from ..core.collection import Collection
from ..core.exceptions import IndexOutOfRangeError, InvalidArgumentError
from ..core.item import Item, Matcher
from ..core.listeners import ListenerSet
from ..protocols.event_sink import publish_event

logger = logging.getLogger(__name__)


class FilterEngine:
    """
    Ordered set of applied filters and the resulting visible master indices.

    Listener callbacks (all optional):
        on_apply_filter(collection, query, flags, matcher, visible, previous)
        on_reset_filter(collection, query, flags, visible)

    While filters are active, the collection rejects data that cannot be
    matched against them (FilteringUnsupportedError) before it is inserted.
    """

    def __init__(self, collection: Collection):
        self._collection = collection
        self._listeners = ListenerSet()
        self._filters: Dict[Tuple[str, int], AppliedFilter] = {}
        self._visible: List[int] = list(range(collection.size()))
        collection.add_listener(self)
        collection.add_validator(self._validate_item)

    @property
    def collection(self) -> Collection:
        return self._collection

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    # ---- matching ----

    def _matches_all(self, item: Item, filters) -> bool:
        return all(item.match(applied.query, applied.flags, applied.matcher) for applied in filters)

    def _compute_visible(self) -> List[int]:
        filters = list(self._filters.values())
        return [
            index for index, item in enumerate(self._collection.items())
            if self._matches_all(item, filters)
        ]

    def _validate_item(self, item: Item) -> None:
        # Raises FilteringUnsupportedError for data the active filters cannot evaluate
        self._matches_all(item, list(self._filters.values()))

    # ---- filters ----

    def apply_filter(self, query: str, flags: int = 0,
                     matcher: Optional[Matcher] = None) -> Optional[VisibleSubset]:
        """
        Apply a filter on top of the active ones.

        Args:
            query: Filter query
            flags: Filter flags, part of the filter's key
            matcher: Optional predicate ``matcher(data, query, flags)``

        Returns:
            The new visible subset, or None if ``(query, flags)`` is already applied

        Raises:
            FilteringUnsupportedError: If an item cannot be matched
        """
        if query is None:
            raise InvalidArgumentError("The query may not be None")
        applied = AppliedFilter(query, flags, matcher)
        if applied.key in self._filters:
            logger.debug(f"Filter with query {query!r} and flags {flags} not applied, because it is already applied")
            publish_event("filter_apply_ignored", self, query=query, flags=flags)
            return None

        items = self._collection.items()
        visible = self.matching_indices(query, flags, matcher)
        previous = self.visible_subset()

        with self._collection.batch():
            self._filters[applied.key] = applied
            self._visible = visible
            subset = self.visible_subset()
            logger.info(f"Applied filter with query {query!r} and flags {flags}: "
                        f"{len(visible)} of {len(items)} items visible")
            publish_event("filter_applied", self, query=query, flags=flags, visible=len(visible))
            self._listeners.notify("on_apply_filter", self._collection, query, flags, matcher, subset, previous)
            self._collection.notify_data_set_changed()
        return subset

    def matching_indices(self, query: str, flags: int = 0,
                         matcher: Optional[Matcher] = None) -> List[int]:
        """
        Return the master indices that would stay visible if the filter were applied.

        Nothing is mutated and no listener is notified.

        Raises:
            InvalidArgumentError: If ``query`` is None
            FilteringUnsupportedError: If a visible item cannot be matched
        """
        if query is None:
            raise InvalidArgumentError("The query may not be None")
        items = self._collection.items()
        return [index for index in self._visible if items[index].match(query, flags, matcher)]

    def reset_filter(self, query: str, flags: int = 0) -> bool:
        """
        Remove a filter and recompute the visible set from the remaining ones.

        Returns:
            False if ``(query, flags)`` is not applied
        """
        key = (query, flags)
        if key not in self._filters:
            logger.debug(f"Filter with query {query!r} and flags {flags} not reset, because it is not applied")
            publish_event("filter_reset_ignored", self, query=query, flags=flags)
            return False

        with self._collection.batch():
            del self._filters[key]
            self._visible = self._compute_visible()
            subset = self.visible_subset()
            logger.info(f"Reset filter with query {query!r} and flags {flags}")
            publish_event("filter_reset", self, query=query, flags=flags, visible=len(subset))
            self._listeners.notify("on_reset_filter", self._collection, query, flags, subset)
            self._collection.notify_data_set_changed()
        return True

    def reset_all_filters(self) -> bool:
        """Reset every active filter. Returns False if none was applied."""
        if not self._filters:
            return False
        with self._collection.batch():
            for query, flags in list(self._filters):
                self.reset_filter(query, flags)
        return True

    def is_filtered(self) -> bool:
        return bool(self._filters)

    def is_filter_applied(self, query: str, flags: int = 0) -> bool:
        return (query, flags) in self._filters

    def get_active_filters(self) -> Tuple[AppliedFilter, ...]:
        """Return the active filters in the order they were applied."""
        return tuple(self._filters.values())

    # ---- visible set ----

    def visible_subset(self) -> VisibleSubset:
        items = self._collection.items()
        return VisibleSubset([items[index].data for index in self._visible], self._visible)

    def visible_indices(self) -> List[int]:
        return list(self._visible)

    def visible_count(self) -> int:
        return len(self._visible)

    def is_visible(self, index: int) -> bool:
        self._collection.item_at(index)
        return index in self._visible

    def get_unfiltered_index(self, position: int) -> int:
        """Translate a visible position to a master index."""
        if (not isinstance(position, int) or isinstance(position, bool)
                or position < 0 or position >= len(self._visible)):
            raise IndexOutOfRangeError(
                f"Position {position} out of range for {len(self._visible)} visible items"
            )
        return self._visible[position]

    def get_filtered_index(self, index: int) -> int:
        """Translate a master index to a visible position, or -1 if hidden."""
        self._collection.item_at(index)
        try:
            return self._visible.index(index)
        except ValueError:
            return -1

    # ---- collection listener ----

    def on_item_added(self, collection: Collection, data: Any, index: int) -> None:
        self._visible = [i + 1 if i >= index else i for i in self._visible]
        item = collection.item_at(index)
        if self._matches_all(item, list(self._filters.values())):
            self._visible.append(index)
            self._visible.sort()

    def on_item_removed(self, collection: Collection, data: Any, index: int) -> None:
        self._visible = [i - 1 if i > index else i for i in self._visible if i != index]

    def on_sorted(self, collection: Collection, order, key) -> None:
        self._visible = self._compute_visible()

"""
Ordered master store of items.

The Collection owns its Items and is the single entry point for structural
mutation. Layers register as listeners to keep their derived views in sync and
use ``batch()`` so one user operation produces one data-set notification.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Iterator, List, Optional, TypeVar

from ..protocols.engine_config import resolve
from ..protocols.event_sink import publish_event
from .exceptions import IndexOutOfRangeError, InvalidArgumentError, NoSuchElementError
from .item import Item
from .listeners import ListenerSet

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Order(Enum):
    """Sort order of a Collection."""
    ASCENDING = "ascending"
    DESCENDING = "descending"


class Collection(Generic[T]):
    """
    Ordered list of Items with duplicate policy and change notifications.

    Listener callbacks (all optional):
        on_item_added(collection, data, index)
        on_item_removed(collection, data, index)
        on_sorted(collection, order, key)

    Usage:
        collection = Collection(["a", "b"])
        collection.add("c", index=0)
        collection.remove_at(1)
    """

    def __init__(self,
                 items: Optional[Iterable[T]] = None,
                 allow_duplicates: Optional[bool] = None,
                 notify_on_change: Optional[bool] = None,
                 item_factory: Optional[Callable[[T], Item]] = None):
        """
        Initialize collection.

        Args:
            items: Initial data, added in order
            allow_duplicates: Whether equal data may be added twice (default from EngineConfig)
            notify_on_change: Whether data-set observers are called (default from EngineConfig)
            item_factory: Creates the Item wrapping added data (default: Item)
        """
        self._items: List[Item[T]] = []
        self._allow_duplicates = resolve(allow_duplicates, "allow_duplicates")
        self._notify_on_change = resolve(notify_on_change, "notify_on_change")
        self._item_factory = item_factory or Item
        self._listeners = ListenerSet()
        self._validators: List[Callable[[Item[T]], None]] = []
        self._data_set_observers: List[Callable[[], None]] = []
        self._batch_depth = 0
        self._data_set_changed = False

        if items is not None:
            self.add_all(items)

    # ---- policies ----

    @property
    def allow_duplicates(self) -> bool:
        return self._allow_duplicates

    @allow_duplicates.setter
    def allow_duplicates(self, allow: bool) -> None:
        self._allow_duplicates = allow
        logger.debug(f"Duplicates {'allowed' if allow else 'disallowed'}")

    @property
    def notify_on_change(self) -> bool:
        return self._notify_on_change

    @notify_on_change.setter
    def notify_on_change(self, notify: bool) -> None:
        self._notify_on_change = notify
        logger.debug(f"Data-set notifications {'enabled' if notify else 'disabled'}")

    # ---- listeners, validators, observers ----

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def add_validator(self, validator: Callable[[Item[T]], None]) -> None:
        """Register a callable that raises to reject an Item before it is inserted."""
        self._validators.append(validator)

    def remove_validator(self, validator: Callable[[Item[T]], None]) -> None:
        if validator in self._validators:
            self._validators.remove(validator)

    def add_data_set_observer(self, observer: Callable[[], None]) -> None:
        """Register a parameterless callback fired once after every completed mutation."""
        if observer not in self._data_set_observers:
            self._data_set_observers.append(observer)

    def remove_data_set_observer(self, observer: Callable[[], None]) -> None:
        if observer in self._data_set_observers:
            self._data_set_observers.remove(observer)

    @contextmanager
    def batch(self):
        """Coalesce data-set notifications until the outermost batch exits."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._data_set_changed:
                self._data_set_changed = False
                self._fire_data_set_changed()

    def notify_data_set_changed(self) -> None:
        """Request a data-set notification (deferred while a batch is open)."""
        if self._batch_depth > 0:
            self._data_set_changed = True
        else:
            self._fire_data_set_changed()

    def _fire_data_set_changed(self) -> None:
        if not self._notify_on_change:
            return
        for observer in list(self._data_set_observers):
            observer()

    # ---- validation helpers ----

    def _check_index(self, index: int, allow_end: bool = False) -> None:
        upper = len(self._items) if allow_end else len(self._items) - 1
        if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index > upper:
            raise IndexOutOfRangeError(
                f"Index {index} out of range for collection of size {len(self._items)}"
            )

    def _create_item(self, data: T) -> Item[T]:
        if data is None:
            raise InvalidArgumentError("Data may not be None")
        item = self._item_factory(data)
        for validator in self._validators:
            validator(item)
        return item

    # ---- mutation ----

    def add(self, data: T, index: Optional[int] = None) -> bool:
        """
        Add data at ``index`` (default: end).

        Returns:
            False if duplicates are disallowed and equal data is already present
        """
        if data is None:
            raise InvalidArgumentError("Data may not be None")
        if index is None:
            index = len(self._items)
        self._check_index(index, allow_end=True)

        if not self._allow_duplicates and self.contains(data):
            logger.debug(f"Item {data!r} not added at index {index}, because it is already contained")
            publish_event("item_add_ignored", self, data=data, index=index)
            return False

        item = self._create_item(data)
        with self.batch():
            self._items.insert(index, item)
            logger.info(f"Added item {data!r} at index {index}")
            publish_event("item_added", self, data=data, index=index)
            self._listeners.notify("on_item_added", self, data, index)
            self.notify_data_set_changed()
        return True

    def add_all(self, items: Iterable[T], index: Optional[int] = None) -> bool:
        """
        Add several data values starting at ``index`` (default: end).

        Returns:
            True only if every value was added
        """
        items = list(items)
        if index is None:
            index = len(self._items)
        self._check_index(index, allow_end=True)
        if any(data is None for data in items):
            raise InvalidArgumentError("Data may not be None")
        for data in items:
            self._create_item(data)

        result = True
        current = index
        with self.batch():
            for data in items:
                if self.add(data, current):
                    current += 1
                else:
                    result = False
        return result

    def remove_at(self, index: int) -> T:
        """Remove the item at ``index`` and return its data."""
        self._check_index(index)
        with self.batch():
            removed = self._items.pop(index).data
            logger.info(f"Removed item {removed!r} from index {index}")
            publish_event("item_removed", self, data=removed, index=index)
            self._listeners.notify("on_item_removed", self, removed, index)
            self.notify_data_set_changed()
        return removed

    def remove(self, data: T) -> bool:
        """Remove the first item equal to ``data``. Returns False if absent."""
        if data is None:
            raise InvalidArgumentError("Data may not be None")
        index = self.index_of(data)
        if index == -1:
            logger.debug(f"Item {data!r} not removed, because it is not contained")
            publish_event("item_remove_ignored", self, data=data)
            return False
        self.remove_at(index)
        return True

    def remove_all(self, items: Iterable[T]) -> bool:
        """
        Remove every item equal to one of ``items``.

        Returns:
            True if the number of removed items equals the number of given values
        """
        items = list(items)
        removed = 0
        with self.batch():
            for index in range(len(self._items) - 1, -1, -1):
                if self._items[index].data in items:
                    self.remove_at(index)
                    removed += 1
        return removed == len(items)

    def retain_all(self, items: Iterable[T]) -> None:
        """Remove every item not equal to one of ``items``."""
        items = list(items)
        with self.batch():
            for index in range(len(self._items) - 1, -1, -1):
                if self._items[index].data not in items:
                    self.remove_at(index)

    def clear(self) -> None:
        with self.batch():
            for index in range(len(self._items) - 1, -1, -1):
                self.remove_at(index)
        logger.info("Cleared collection")

    def replace_at(self, index: int, data: T) -> T:
        """
        Replace the item at ``index``; the new item starts with default flags.

        Returns:
            The replaced data
        """
        self._check_index(index)
        item = self._create_item(data)
        with self.batch():
            previous = self._items.pop(index).data
            self._listeners.notify("on_item_removed", self, previous, index)
            self._items.insert(index, item)
            self._listeners.notify("on_item_added", self, data, index)
            logger.info(f"Replaced item {previous!r} at index {index} with item {data!r}")
            publish_event("item_replaced", self, previous=previous, data=data, index=index)
            self.notify_data_set_changed()
        return previous

    def sort(self, order: Order = Order.ASCENDING, key: Optional[Callable[[T], Any]] = None) -> None:
        """Stably sort the items by their data; flags travel with their item."""
        if key is None:
            sort_key = lambda item: item.data
        else:
            sort_key = lambda item: key(item.data)
        with self.batch():
            self._items.sort(key=sort_key, reverse=order is Order.DESCENDING)
            logger.info(f"Sorted collection in {order.value} order")
            publish_event("collection_sorted", self, order=order.value)
            self._listeners.notify("on_sorted", self, order, key)
            self.notify_data_set_changed()

    # ---- queries ----

    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def at(self, index: int) -> T:
        self._check_index(index)
        return self._items[index].data

    def __getitem__(self, index: int) -> T:
        return self.at(index)

    def item_at(self, index: int) -> Item[T]:
        """Return the Item wrapper at ``index`` (for layers)."""
        self._check_index(index)
        return self._items[index]

    def index_of(self, data: T) -> int:
        if data is None:
            raise InvalidArgumentError("Data may not be None")
        for index, item in enumerate(self._items):
            if item.data == data:
                return index
        return -1

    def last_index_of(self, data: T) -> int:
        if data is None:
            raise InvalidArgumentError("Data may not be None")
        for index in range(len(self._items) - 1, -1, -1):
            if self._items[index].data == data:
                return index
        return -1

    def index_of_or_raise(self, data: T) -> int:
        index = self.index_of(data)
        if index == -1:
            raise NoSuchElementError(f"Collection does not contain {data!r}")
        return index

    def contains(self, data: T) -> bool:
        return self.index_of(data) != -1

    def __contains__(self, data: T) -> bool:
        return data is not None and self.contains(data)

    def contains_all(self, items: Iterable[T]) -> bool:
        return all(self.contains(data) for data in items)

    def __iter__(self) -> Iterator[T]:
        return self.iter_from(0)

    def iter_from(self, index: int) -> Iterator[T]:
        """Iterate the data from ``index`` to the end."""
        self._check_index(index, allow_end=True)
        return (item.data for item in self._items[index:])

    def sub_list(self, start: int, end: int) -> List[T]:
        self._check_index(start, allow_end=True)
        self._check_index(end, allow_end=True)
        if start > end:
            raise IndexOutOfRangeError(f"Start index {start} is greater than end index {end}")
        return [item.data for item in self._items[start:end]]

    def get_all_items(self) -> List[T]:
        """Return all data in master order."""
        return [item.data for item in self._items]

    def items(self) -> List[Item[T]]:
        """Return the Item wrappers in master order."""
        return list(self._items)

    def __repr__(self) -> str:
        return f"Collection({self.get_all_items()!r})"

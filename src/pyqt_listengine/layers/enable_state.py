"""Enable/disable tracking over a Collection."""

import logging
from typing import Any, List, Optional

from ..core.collection import Collection
from ..core.listeners import ListenerSet
from ..protocols.event_sink import publish_event

logger = logging.getLogger(__name__)


class EnableStateLayer:
    """
    Tracks which items of a Collection are enabled.

    Only reports transitions; reconciling the selection of a disabled item is
    done by the selection layer listening to this one.

    Listener callbacks (all optional):
        on_item_enabled(collection, data, index)
        on_item_disabled(collection, data, index)
    """

    def __init__(self, collection: Collection):
        self._collection = collection
        self._listeners = ListenerSet()

    @property
    def collection(self) -> Collection:
        return self._collection

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def is_enabled(self, index: int) -> bool:
        return self._collection.item_at(index).enabled

    def set_enabled(self, index: int, enabled: bool) -> bool:
        """
        Enable or disable the item at ``index``.

        Returns:
            True if the enable state changed
        """
        item = self._collection.item_at(index)
        if item.enabled == enabled:
            logger.debug(f"Item at index {index} already {'enabled' if enabled else 'disabled'}")
            publish_event("enable_state_ignored", self, index=index, enabled=enabled)
            return False

        with self._collection.batch():
            item.enabled = enabled
            logger.info(f"{'Enabled' if enabled else 'Disabled'} item {item.data!r} at index {index}")
            publish_event("item_enabled" if enabled else "item_disabled", self, index=index)
            callback = "on_item_enabled" if enabled else "on_item_disabled"
            self._listeners.notify(callback, self._collection, item.data, index)
            self._collection.notify_data_set_changed()
        return True

    def trigger_enabled(self, index: int) -> bool:
        """Flip the enable state of the item at ``index`` and return the new value."""
        enabled = not self.is_enabled(index)
        self.set_enabled(index, enabled)
        return enabled

    def set_all_enabled(self, enabled: bool) -> None:
        with self._collection.batch():
            for index in range(self._collection.size()):
                self.set_enabled(index, enabled)

    def trigger_all(self) -> None:
        with self._collection.batch():
            for index in range(self._collection.size()):
                self.trigger_enabled(index)

    # ---- queries ----

    def _first(self, enabled: bool) -> int:
        for index, item in enumerate(self._collection.items()):
            if item.enabled == enabled:
                return index
        return -1

    def _last(self, enabled: bool) -> int:
        items = self._collection.items()
        for index in range(len(items) - 1, -1, -1):
            if items[index].enabled == enabled:
                return index
        return -1

    def first_enabled_index(self) -> int:
        return self._first(True)

    def last_enabled_index(self) -> int:
        return self._last(True)

    def first_disabled_index(self) -> int:
        return self._first(False)

    def last_disabled_index(self) -> int:
        return self._last(False)

    def _data_at(self, index: int) -> Optional[Any]:
        return None if index == -1 else self._collection.at(index)

    def first_enabled_item(self) -> Optional[Any]:
        return self._data_at(self.first_enabled_index())

    def last_enabled_item(self) -> Optional[Any]:
        return self._data_at(self.last_enabled_index())

    def first_disabled_item(self) -> Optional[Any]:
        return self._data_at(self.first_disabled_index())

    def last_disabled_item(self) -> Optional[Any]:
        return self._data_at(self.last_disabled_index())

    def enabled_indices(self) -> List[int]:
        return [index for index, item in enumerate(self._collection.items()) if item.enabled]

    def disabled_indices(self) -> List[int]:
        return [index for index, item in enumerate(self._collection.items()) if not item.enabled]

    def enabled_items(self) -> List[Any]:
        return [item.data for item in self._collection.items() if item.enabled]

    def disabled_items(self) -> List[Any]:
        return [item.data for item in self._collection.items() if not item.enabled]

    def enabled_count(self) -> int:
        return sum(1 for item in self._collection.items() if item.enabled)

    def are_all_enabled(self) -> bool:
        return all(item.enabled for item in self._collection.items())

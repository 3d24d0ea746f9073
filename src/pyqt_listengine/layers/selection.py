"""
Selection layers reconciled with enable state, filters and structural changes.

A disabled item is never selected: selecting it is rejected and disabling a
selected item unselects it. Items hidden by the active filters cannot be
selected either, and applying a filter unselects the items it hides.
"""

import logging
from typing import Any, Callable, List, Optional

from ..core.collection import Collection
from ..core.listeners import ListenerSet
from ..protocols.engine_config import resolve
from ..protocols.event_sink import publish_event
from .enable_state import EnableStateLayer
from .filtering import FilterEngine

logger = logging.getLogger(__name__)


def nearest_index(start: int, size: int, predicate: Callable[[int], bool]) -> int:
    """
    Find the index nearest to ``start`` satisfying ``predicate``.

    Checks ``start`` first, then alternates ``start + k`` and ``start - k``
    for k = 1, 2, ... (ascending first).

    Returns:
        The found index or -1
    """
    if 0 <= start < size and predicate(start):
        return start
    for distance in range(1, size + 1):
        for index in (start + distance, start - distance):
            if 0 <= index < size and predicate(index):
                return index
    return -1


class SelectionLayer:
    """
    Base class of the single- and multiple-choice selection layers.

    Listener callbacks (all optional):
        on_item_selected(collection, data, index)
        on_item_unselected(collection, data, index)
    """

    def __init__(self,
                 collection: Collection,
                 enable_state: EnableStateLayer,
                 filtering: FilterEngine,
                 select_on_click: Optional[bool] = None):
        self._collection = collection
        self._enable_state = enable_state
        self._filtering = filtering
        self._listeners = ListenerSet()
        self.select_on_click = resolve(select_on_click, "select_on_click")

        collection.add_listener(self)
        enable_state.add_listener(self)
        filtering.add_listener(self)

    @property
    def collection(self) -> Collection:
        return self._collection

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def is_selected(self, index: int) -> bool:
        return self._collection.item_at(index).selected

    def selected_count(self) -> int:
        return sum(1 for item in self._collection.items() if item.selected)

    def selected_indices(self) -> List[int]:
        return [index for index, item in enumerate(self._collection.items()) if item.selected]

    def selected_items(self) -> List[Any]:
        return [item.data for item in self._collection.items() if item.selected]

    def is_selectable(self, index: int) -> bool:
        """Whether the item at ``index`` is enabled and visible."""
        return self._enable_state.is_enabled(index) and self._filtering.is_visible(index)

    def _reject_selection(self, index: int) -> bool:
        # Returns True if selecting the item at index is a policy no-op
        item = self._collection.item_at(index)
        if not item.enabled:
            logger.debug(f"Item at index {index} not selected, because it is disabled")
            publish_event("selection_ignored", self, index=index, reason="disabled")
            return True
        if not self._filtering.is_visible(index):
            logger.debug(f"Item at index {index} not selected, because it is filtered")
            publish_event("selection_ignored", self, index=index, reason="filtered")
            return True
        return False

    def _set_flag(self, index: int, selected: bool) -> None:
        item = self._collection.item_at(index)
        item.selected = selected
        logger.info(f"{'Selected' if selected else 'Unselected'} item {item.data!r} at index {index}")
        publish_event("item_selected" if selected else "item_unselected", self, index=index)
        callback = "on_item_selected" if selected else "on_item_unselected"
        self._listeners.notify(callback, self._collection, item.data, index)
        self._collection.notify_data_set_changed()

    # ---- listeners on the other layers ----

    def on_item_disabled(self, collection: Collection, data: Any, index: int) -> None:
        if self.is_selected(index):
            with self._collection.batch():
                self._set_flag(index, False)
                self._after_selected_item_lost(index)

    def on_apply_filter(self, collection, query, flags, matcher, visible, previous) -> None:
        hidden = [index for index in self.selected_indices() if index not in visible.indices]
        with self._collection.batch():
            for index in hidden:
                self._set_flag(index, False)
            self._after_filter_changed()

    def on_reset_filter(self, collection, query, flags, visible) -> None:
        self._after_filter_changed()

    def _after_selected_item_lost(self, index: int) -> None:
        pass

    def _after_filter_changed(self) -> None:
        pass


class SingleChoiceSelection(SelectionLayer):
    """
    At most one item of the collection is selected.

    With ``adapt_selection_automatically`` the layer keeps an item selected
    whenever an enabled, visible item exists: the first added item is
    selected, a disabled or removed selected item is replaced by the nearest
    selectable one and filter changes that leave no selection select the
    first selectable visible item.
    """

    def __init__(self,
                 collection: Collection,
                 enable_state: EnableStateLayer,
                 filtering: FilterEngine,
                 select_on_click: Optional[bool] = None,
                 adapt_selection_automatically: Optional[bool] = None):
        super().__init__(collection, enable_state, filtering, select_on_click)
        self._adapt = resolve(adapt_selection_automatically, "adapt_selection_automatically")
        if self._adapt:
            self._select_first_selectable()

    @property
    def adapt_selection_automatically(self) -> bool:
        return self._adapt

    @adapt_selection_automatically.setter
    def adapt_selection_automatically(self, adapt: bool) -> None:
        self._adapt = adapt
        logger.debug(f"Automatic selection adaption {'enabled' if adapt else 'disabled'}")
        if adapt and self.selected_index() == -1:
            self._select_first_selectable()

    def selected_index(self) -> int:
        for index, item in enumerate(self._collection.items()):
            if item.selected:
                return index
        return -1

    def selected_item(self) -> Optional[Any]:
        index = self.selected_index()
        return None if index == -1 else self._collection.at(index)

    def select(self, index: int) -> bool:
        """
        Select the item at ``index`` and unselect every other item.

        Returns:
            True if the selection changed
        """
        if self._reject_selection(index):
            return False
        if self.is_selected(index):
            logger.debug(f"Item at index {index} not selected, because it is already selected")
            publish_event("selection_ignored", self, index=index, reason="selected")
            return False

        with self._collection.batch():
            for selected in self.selected_indices():
                self._set_flag(selected, False)
            self._set_flag(index, True)
        return True

    def trigger_selection(self, index: int) -> bool:
        """
        Select the item at ``index``, or unselect it if it is the selected one.

        Returns:
            True if the selection changed
        """
        if self.is_selected(index):
            with self._collection.batch():
                self._set_flag(index, False)
            return True
        return self.select(index)

    def clear_selection(self) -> bool:
        index = self.selected_index()
        if index == -1:
            return False
        with self._collection.batch():
            self._set_flag(index, False)
        return True

    def select_nearest_selectable(self, start: int) -> int:
        """
        Select the selectable item nearest to ``start``.

        ``start`` is checked first, then ``start + k`` and ``start - k`` for
        k = 1, 2, ...

        Returns:
            The selected index, or -1 if no item is selectable
        """
        index = nearest_index(start, self._collection.size(), self.is_selectable)
        if index != -1:
            self.select(index)
        return index

    def _select_first_selectable(self) -> None:
        for index in self._filtering.visible_indices():
            if self._enable_state.is_enabled(index):
                self.select(index)
                return

    # ---- adaption ----

    def on_item_added(self, collection: Collection, data: Any, index: int) -> None:
        if self._adapt and self.selected_index() == -1 and self.is_selectable(index):
            self.select(index)

    def on_item_removed(self, collection: Collection, data: Any, index: int) -> None:
        if self._adapt and not collection.is_empty() and self.selected_index() == -1:
            self.select_nearest_selectable(min(index, collection.size() - 1))

    def on_item_enabled(self, collection: Collection, data: Any, index: int) -> None:
        if self._adapt and self.selected_index() == -1 and self.is_selectable(index):
            self.select(index)

    def _after_selected_item_lost(self, index: int) -> None:
        if self._adapt:
            self.select_nearest_selectable(index)

    def _after_filter_changed(self) -> None:
        if self._adapt and self.selected_index() == -1:
            self._select_first_selectable()


class MultipleChoiceSelection(SelectionLayer):
    """Any number of enabled, visible items may be selected."""

    def set_selected(self, index: int, selected: bool) -> bool:
        """
        Select or unselect the item at ``index``.

        Returns:
            True if the selection changed
        """
        if self.is_selected(index) == selected:
            return False
        if selected and self._reject_selection(index):
            return False
        with self._collection.batch():
            self._set_flag(index, selected)
        return True

    def trigger_selection(self, index: int) -> bool:
        """Toggle the selection of the item at ``index``. Returns True if it changed."""
        return self.set_selected(index, not self.is_selected(index))

    def set_all_selected(self, selected: bool) -> bool:
        """
        Select or unselect every item.

        Returns:
            True if every item ends up in the requested selection state
        """
        with self._collection.batch():
            for index in range(self._collection.size()):
                self.set_selected(index, selected)
        return all(item.selected == selected for item in self._collection.items())

    def trigger_all_selections(self) -> bool:
        """Toggle every item's selection. Returns True if every toggle succeeded."""
        result = True
        with self._collection.batch():
            for index in range(self._collection.size()):
                if not self.trigger_selection(index):
                    result = False
        return result

    def unselected_indices(self) -> List[int]:
        return [index for index, item in enumerate(self._collection.items()) if not item.selected]

    def unselected_items(self) -> List[Any]:
        return [item.data for item in self._collection.items() if not item.selected]

    def _first_last(self, indices: List[int], last: bool) -> int:
        if not indices:
            return -1
        return indices[-1] if last else indices[0]

    def first_selected_index(self) -> int:
        return self._first_last(self.selected_indices(), last=False)

    def last_selected_index(self) -> int:
        return self._first_last(self.selected_indices(), last=True)

    def first_unselected_index(self) -> int:
        return self._first_last(self.unselected_indices(), last=False)

    def last_unselected_index(self) -> int:
        return self._first_last(self.unselected_indices(), last=True)

    def first_selected_item(self) -> Optional[Any]:
        index = self.first_selected_index()
        return None if index == -1 else self._collection.at(index)

    def last_selected_item(self) -> Optional[Any]:
        index = self.last_selected_index()
        return None if index == -1 else self._collection.at(index)

    def first_unselected_item(self) -> Optional[Any]:
        index = self.first_unselected_index()
        return None if index == -1 else self._collection.at(index)

    def last_unselected_item(self) -> Optional[Any]:
        index = self.last_unselected_index()
        return None if index == -1 else self._collection.at(index)

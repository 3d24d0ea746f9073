"""
Flat list adapter composing a Collection with all state layers.

The adapter is what a view binds to: layers are exposed as attributes for
full control, while click dispatch, row tuples and snapshots address
visible positions the way a widget sees them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..core.applied_filter import AppliedFilter
from ..core.collection import Collection
from ..core.exceptions import IllegalStateError, InvalidArgumentError
from ..core.item import Item
from ..core.listeners import ListenerSet
from ..layers.enable_state import EnableStateLayer
from ..layers.filtering import FilterEngine
from ..layers.item_state import ItemStateLayer
from ..layers.selection import MultipleChoiceSelection, SingleChoiceSelection
from ..protocols.event_sink import publish_event

logger = logging.getLogger(__name__)


class SelectionMode(Enum):
    """Selection behavior of an adapter."""
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class RowState:
    """
    Everything a view needs to render one row.

    Attributes:
        index: Master index of the item (child index for child rows)
        position: Visible position of the row
        data: The item's data
        enabled: Whether the item is enabled
        state: Current item state
        selected: Whether the item is selected
        filtered: Whether the owning list has active filters
        expanded: Expansion flag (group rows only)
        group_index: Master index of the owning group (child rows only)
    """

    index: int
    position: int
    data: Any
    enabled: bool
    state: int
    selected: bool
    filtered: bool
    expanded: Optional[bool] = None
    group_index: Optional[int] = None


@dataclass
class ListAdapterState:
    """
    Snapshot of a ListAdapter's flags, filters and policies.

    Produced by ``ListAdapter.snapshot()`` for an external serializer; lists
    are in master order.
    """

    enabled: List[bool] = field(default_factory=list)
    states: List[int] = field(default_factory=list)
    selected: List[bool] = field(default_factory=list)
    filters: List[AppliedFilter] = field(default_factory=list)
    number_of_states: int = 1
    policies: Dict[str, bool] = field(default_factory=dict)


class ListAdapter:
    """
    Collection plus enable, state, filter and selection layers.

    Usage:
        adapter = ListAdapter(["a", "b", "c"], selection_mode=SelectionMode.SINGLE)
        adapter.enable_state.set_enabled(0, False)   # selection moves to "b"
        adapter.on_item_clicked(2)                   # selects "c"
    """

    def __init__(self,
                 items: Optional[Iterable[Any]] = None,
                 selection_mode: SelectionMode = SelectionMode.NONE,
                 allow_duplicates: Optional[bool] = None,
                 notify_on_change: Optional[bool] = None,
                 number_of_states: Optional[int] = None,
                 trigger_state_on_click: Optional[bool] = None,
                 select_on_click: Optional[bool] = None,
                 adapt_selection_automatically: Optional[bool] = None,
                 item_factory: Optional[Callable[[Any], Item]] = None):
        """
        Initialize list adapter.

        Policy arguments left as None use the values of the global EngineConfig.

        Args:
            items: Initial data
            selection_mode: NONE, SINGLE or MULTIPLE
            allow_duplicates: Whether equal data may be added twice
            notify_on_change: Whether data-set observers are called
            number_of_states: Number of item states
            trigger_state_on_click: Whether clicks advance the item state
            select_on_click: Whether clicks select (single) or toggle (multiple)
            adapt_selection_automatically: Single choice only, keep an item selected
            item_factory: Creates the Item wrapping added data
        """
        self._selection_mode = selection_mode
        self.collection = Collection(
            allow_duplicates=allow_duplicates,
            notify_on_change=notify_on_change,
            item_factory=item_factory,
        )
        self.enable_state = EnableStateLayer(self.collection)
        self.item_state = ItemStateLayer(self.collection, number_of_states, trigger_state_on_click)
        self.filtering = FilterEngine(self.collection)

        if selection_mode is SelectionMode.SINGLE:
            self.selection = SingleChoiceSelection(
                self.collection, self.enable_state, self.filtering,
                select_on_click=select_on_click,
                adapt_selection_automatically=adapt_selection_automatically,
            )
        elif selection_mode is SelectionMode.MULTIPLE:
            self.selection = MultipleChoiceSelection(
                self.collection, self.enable_state, self.filtering,
                select_on_click=select_on_click,
            )
        else:
            self.selection = None

        self._click_listeners = ListenerSet()

        if items is not None:
            self.collection.add_all(items)

    @property
    def selection_mode(self) -> SelectionMode:
        return self._selection_mode

    # ---- listeners ----

    def add_listener(self, listener: Any) -> None:
        """Register ``listener`` with the collection, every layer and click dispatch."""
        for target in self._listener_targets():
            target.add_listener(listener)
        self._click_listeners.add(listener)

    def remove_listener(self, listener: Any) -> None:
        for target in self._listener_targets():
            target.remove_listener(listener)
        self._click_listeners.remove(listener)

    def _listener_targets(self) -> list:
        targets = [self.collection, self.enable_state, self.item_state, self.filtering]
        if self.selection is not None:
            targets.append(self.selection)
        return targets

    def add_data_set_observer(self, observer: Callable[[], None]) -> None:
        self.collection.add_data_set_observer(observer)

    def remove_data_set_observer(self, observer: Callable[[], None]) -> None:
        self.collection.remove_data_set_observer(observer)

    # ---- collection shortcuts ----

    def __len__(self) -> int:
        return self.collection.size()

    def __iter__(self) -> Iterator[Any]:
        return iter(self.collection)

    def _require_selection(self):
        if self.selection is None:
            raise IllegalStateError("The adapter does not support selection")
        return self.selection

    # ---- by-value helpers ----

    def set_item_enabled(self, data: Any, enabled: bool) -> bool:
        return self.enable_state.set_enabled(self.collection.index_of_or_raise(data), enabled)

    def is_item_enabled(self, data: Any) -> bool:
        return self.enable_state.is_enabled(self.collection.index_of_or_raise(data))

    def set_item_state(self, data: Any, state: int) -> int:
        return self.item_state.set_state(self.collection.index_of_or_raise(data), state)

    def get_item_state(self, data: Any) -> int:
        return self.item_state.get_state(self.collection.index_of_or_raise(data))

    def is_item_selected(self, data: Any) -> bool:
        return self.collection.item_at(self.collection.index_of_or_raise(data)).selected

    def set_item_selected(self, data: Any, selected: bool) -> bool:
        """Select or unselect ``data`` in either selection mode."""
        selection = self._require_selection()
        index = self.collection.index_of_or_raise(data)
        if isinstance(selection, SingleChoiceSelection):
            if selected:
                return selection.select(index)
            return selection.trigger_selection(index) if selection.is_selected(index) else False
        return selection.set_selected(index, selected)

    # ---- click dispatch ----

    def on_item_clicked(self, position: int) -> None:
        """
        Handle a click on the row at visible ``position``.

        Click listeners are notified first; then the item state is advanced
        if ``trigger_state_on_click`` is set and the selection is changed if
        ``select_on_click`` is set (select for single choice, toggle for
        multiple choice).
        """
        index = self.filtering.get_unfiltered_index(position)
        data = self.collection.at(index)
        with self.collection.batch():
            logger.debug(f"Item {data!r} at index {index} clicked")
            publish_event("item_clicked", self, index=index, position=position)
            self._click_listeners.notify("on_item_clicked", self, data, index)

            if self.item_state.trigger_state_on_click:
                self.item_state.trigger_state(index)

            if self.selection is not None and self.selection.select_on_click:
                if isinstance(self.selection, SingleChoiceSelection):
                    self.selection.select(index)
                else:
                    self.selection.trigger_selection(index)

    # ---- rows ----

    def row(self, position: int) -> RowState:
        """Return the render tuple of the row at visible ``position``."""
        index = self.filtering.get_unfiltered_index(position)
        item = self.collection.item_at(index)
        return RowState(
            index=index,
            position=position,
            data=item.data,
            enabled=item.enabled,
            state=self.item_state.get_state(index),
            selected=item.selected,
            filtered=self.filtering.is_filtered(),
        )

    def rows(self) -> List[RowState]:
        return [self.row(position) for position in range(self.filtering.visible_count())]

    # ---- persistence boundary ----

    def policies(self) -> Dict[str, bool]:
        policies = {
            "allow_duplicates": self.collection.allow_duplicates,
            "notify_on_change": self.collection.notify_on_change,
            "trigger_state_on_click": self.item_state.trigger_state_on_click,
        }
        if self.selection is not None:
            policies["select_on_click"] = self.selection.select_on_click
        if isinstance(self.selection, SingleChoiceSelection):
            policies["adapt_selection_automatically"] = self.selection.adapt_selection_automatically
        return policies

    def snapshot(self) -> ListAdapterState:
        """Capture flags, active filters and policies for an external serializer."""
        items = self.collection.items()
        return ListAdapterState(
            enabled=[item.enabled for item in items],
            states=[self.item_state.get_state(index) for index in range(len(items))],
            selected=[item.selected for item in items],
            filters=list(self.filtering.get_active_filters()),
            number_of_states=self.item_state.get_number_of_states(),
            policies=self.policies(),
        )

    def restore(self, state: ListAdapterState) -> None:
        """
        Restore a snapshot taken from an adapter holding the same data.

        Raises:
            InvalidArgumentError: If the snapshot does not fit this adapter
        """
        size = self.collection.size()
        if not (len(state.enabled) == len(state.states) == len(state.selected) == size):
            raise InvalidArgumentError(f"Snapshot does not describe {size} items")
        if state.number_of_states < 1 or any(s < 0 or s >= state.number_of_states for s in state.states):
            raise InvalidArgumentError("Snapshot contains invalid item states")
        if isinstance(self.selection, SingleChoiceSelection) and sum(state.selected) > 1:
            raise InvalidArgumentError("Snapshot selects more than one item of a single choice adapter")

        with self.collection.batch():
            self.filtering.reset_all_filters()
            self.item_state.set_number_of_states(state.number_of_states)
            self._restore_policies(state.policies)
            for item, enabled, item_state, selected in zip(
                    self.collection.items(), state.enabled, state.states, state.selected):
                item.enabled = enabled
                item.state = item_state
                item.selected = selected and enabled and self.selection is not None
            for applied in state.filters:
                self.filtering.apply_filter(applied.query, applied.flags, applied.matcher)
            self.collection.notify_data_set_changed()
        logger.info(f"Restored state of {size} items")

    def _restore_policies(self, policies: Dict[str, bool]) -> None:
        if "allow_duplicates" in policies:
            self.collection.allow_duplicates = policies["allow_duplicates"]
        if "notify_on_change" in policies:
            self.collection.notify_on_change = policies["notify_on_change"]
        if "trigger_state_on_click" in policies:
            self.item_state.trigger_state_on_click = policies["trigger_state_on_click"]
        if self.selection is not None and "select_on_click" in policies:
            self.selection.select_on_click = policies["select_on_click"]
        if isinstance(self.selection, SingleChoiceSelection) and "adapt_selection_automatically" in policies:
            self.selection.adapt_selection_automatically = policies["adapt_selection_automatically"]

    def __repr__(self) -> str:
        return f"ListAdapter({self.collection.get_all_items()!r}, selection_mode={self._selection_mode.name})"


class ListAdapterView:
    """
    Read-only queries over a ListAdapter owned by another adapter.

    The owner keeps its own rules (tree-wide single choice, implicit
    propagation) by being the only one that mutates the wrapped adapter.
    """

    def __init__(self, adapter: ListAdapter):
        self._adapter = adapter

    def __len__(self) -> int:
        return len(self._adapter)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._adapter)

    def __contains__(self, data: Any) -> bool:
        return self._adapter.collection.contains(data)

    def at(self, index: int) -> Any:
        return self._adapter.collection.at(index)

    def get_all_items(self) -> List[Any]:
        return self._adapter.collection.get_all_items()

    def is_enabled(self, index: int) -> bool:
        return self._adapter.enable_state.is_enabled(index)

    def get_state(self, index: int) -> int:
        return self._adapter.item_state.get_state(index)

    def is_selected(self, index: int) -> bool:
        return self._adapter.collection.item_at(index).selected

    def get_active_filters(self) -> Tuple[AppliedFilter, ...]:
        return self._adapter.filtering.get_active_filters()

    def visible_indices(self) -> List[int]:
        return self._adapter.filtering.visible_indices()

    def visible_count(self) -> int:
        return self._adapter.filtering.visible_count()

    def is_visible(self, index: int) -> bool:
        return self._adapter.filtering.is_visible(index)

    def row(self, position: int) -> RowState:
        return self._adapter.row(position)

    def rows(self) -> List[RowState]:
        return self._adapter.rows()

    def __repr__(self) -> str:
        return f"ListAdapterView({self._adapter.collection.get_all_items()!r})"

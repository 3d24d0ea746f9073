"""
Listener protocols.

Listeners are plain objects; the engine looks callbacks up by name, so a
listener only implements the callbacks it needs. All callbacks run
synchronously, in registration order, inside the mutating call.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

if TYPE_CHECKING:
    from ..core.applied_filter import VisibleSubset


class CollectionListener(Protocol):
    """Structural changes of a Collection."""

    def on_item_added(self, collection: Any, data: Any, index: int) -> None: ...

    def on_item_removed(self, collection: Any, data: Any, index: int) -> None: ...

    def on_sorted(self, collection: Any, order: Any, key: Optional[Callable]) -> None: ...


class EnableStateListener(Protocol):
    """Enable state transitions reported by an EnableStateLayer."""

    def on_item_enabled(self, collection: Any, data: Any, index: int) -> None: ...

    def on_item_disabled(self, collection: Any, data: Any, index: int) -> None: ...


class ItemStateListener(Protocol):
    """State changes reported by an ItemStateLayer."""

    def on_item_state_changed(self, collection: Any, data: Any, index: int, state: int) -> None: ...


class FilterListener(Protocol):
    """Filter changes reported by a FilterEngine."""

    def on_apply_filter(self, collection: Any, query: str, flags: int, matcher: Optional[Callable],
                        visible: "VisibleSubset", previous: "VisibleSubset") -> None: ...

    def on_reset_filter(self, collection: Any, query: str, flags: int, visible: "VisibleSubset") -> None: ...


class SelectionListener(Protocol):
    """Selection changes reported by a selection layer."""

    def on_item_selected(self, collection: Any, data: Any, index: int) -> None: ...

    def on_item_unselected(self, collection: Any, data: Any, index: int) -> None: ...


class ItemClickListener(Protocol):
    """Clicks dispatched to a ListAdapter (``index`` is the master index)."""

    def on_item_clicked(self, adapter: Any, data: Any, index: int) -> None: ...


class ExpandableListListener(Protocol):
    """
    Events of an ExpandableListAdapter.

    Group callbacks receive ``(adapter, group, group_index)``; child callbacks
    receive ``(adapter, child, child_index, group, group_index)``. Indices are
    master indices.
    """

    def on_group_added(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_group_removed(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_child_added(self, adapter: Any, child: Any, child_index: int,
                       group: Any, group_index: int) -> None: ...

    def on_child_removed(self, adapter: Any, child: Any, child_index: int,
                         group: Any, group_index: int) -> None: ...

    def on_group_enabled(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_group_disabled(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_child_enabled(self, adapter: Any, child: Any, child_index: int,
                         group: Any, group_index: int) -> None: ...

    def on_child_disabled(self, adapter: Any, child: Any, child_index: int,
                          group: Any, group_index: int) -> None: ...

    def on_group_state_changed(self, adapter: Any, group: Any, group_index: int, state: int) -> None: ...

    def on_child_state_changed(self, adapter: Any, child: Any, child_index: int,
                               group: Any, group_index: int, state: int) -> None: ...

    def on_apply_group_filter(self, adapter: Any, query: str, flags: int, matcher: Optional[Callable],
                              visible: "VisibleSubset", previous: "VisibleSubset") -> None: ...

    def on_reset_group_filter(self, adapter: Any, query: str, flags: int, visible: "VisibleSubset") -> None: ...

    def on_apply_child_filter(self, adapter: Any, query: str, flags: int, matcher: Optional[Callable],
                              group: Any, group_index: int,
                              visible: "VisibleSubset", previous: "VisibleSubset") -> None: ...

    def on_reset_child_filter(self, adapter: Any, query: str, flags: int,
                              group: Any, group_index: int, visible: "VisibleSubset") -> None: ...

    def on_group_selected(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_group_unselected(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_child_selected(self, adapter: Any, child: Any, child_index: int,
                          group: Any, group_index: int) -> None: ...

    def on_child_unselected(self, adapter: Any, child: Any, child_index: int,
                            group: Any, group_index: int) -> None: ...

    def on_group_expanded(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_group_collapsed(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_group_clicked(self, adapter: Any, group: Any, group_index: int) -> None: ...

    def on_child_clicked(self, adapter: Any, child: Any, child_index: int,
                         group: Any, group_index: int) -> None: ...

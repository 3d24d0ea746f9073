"""
Hierarchical group/child adapter.

Groups live in an outer ListAdapter whose Items are Group instances. Every
Group exclusively owns a child ListAdapter with its own layers. This module
adds what only makes sense across the two levels: implicit propagation of
group state to children, the synthetic empty-group filter, tree-wide
selection with choice modes, and expansion.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.applied_filter import VisibleSubset
from ..core.exceptions import IllegalStateError, InvalidArgumentError
from ..core.group import FLAG_FILTER_EMPTY_GROUPS, Group
from ..core.item import Matcher
from ..core.listeners import ListenerSet
from ..layers.selection import nearest_index
from ..protocols.engine_config import resolve
from ..protocols.event_sink import publish_event
from .list_adapter import ListAdapter, ListAdapterState, ListAdapterView, RowState, SelectionMode

logger = logging.getLogger(__name__)


class ChoiceMode(Enum):
    """Which levels of an ExpandableListAdapter may be selected."""
    GROUPS_ONLY = "groups_only"
    CHILDREN_ONLY = "children_only"
    GROUPS_AND_CHILDREN = "groups_and_children"


@dataclass
class ExpandableListAdapterState:
    """Snapshot of an ExpandableListAdapter for an external serializer."""

    groups: ListAdapterState = field(default_factory=ListAdapterState)
    children: List[ListAdapterState] = field(default_factory=list)
    expanded: List[bool] = field(default_factory=list)
    number_of_child_states: int = 1
    policies: Dict[str, bool] = field(default_factory=dict)


class _GroupEventRelay:
    """Translates the group list's layer events into group callbacks."""

    def __init__(self, owner: "ExpandableListAdapter"):
        self._owner = owner

    def on_item_added(self, collection, group, index):
        self._owner._listeners.notify("on_group_added", self._owner, group, index)
        self._owner._adapt_selection(index)

    def on_item_removed(self, collection, group, index):
        self._owner._listeners.notify("on_group_removed", self._owner, group, index)
        self._owner._adapt_selection(index)

    def on_item_enabled(self, collection, group, index):
        self._owner._listeners.notify("on_group_enabled", self._owner, group, index)
        self._owner._adapt_selection(index)

    def on_item_disabled(self, collection, group, index):
        self._owner._listeners.notify("on_group_disabled", self._owner, group, index)
        self._owner._adapt_selection(index)

    def on_item_state_changed(self, collection, group, index, state):
        self._owner._listeners.notify("on_group_state_changed", self._owner, group, index, state)

    def on_apply_filter(self, collection, query, flags, matcher, visible, previous):
        self._owner._unselect_children_of_hidden_groups()
        self._owner._listeners.notify(
            "on_apply_group_filter", self._owner, query, flags, matcher, visible, previous)
        self._owner._adapt_selection(0)

    def on_reset_filter(self, collection, query, flags, visible):
        self._owner._listeners.notify("on_reset_group_filter", self._owner, query, flags, visible)
        self._owner._adapt_selection(0)

    def on_item_selected(self, collection, group, index):
        self._owner._listeners.notify("on_group_selected", self._owner, group, index)
        if self._owner.expand_group_on_selection:
            self._owner.expand_group(index)

    def on_item_unselected(self, collection, group, index):
        self._owner._listeners.notify("on_group_unselected", self._owner, group, index)


class _ChildEventRelay:
    """Translates one child list's layer events into child callbacks."""

    def __init__(self, owner: "ExpandableListAdapter", children: ListAdapter):
        self._owner = owner
        self._children = children

    def _locate(self) -> Tuple[int, Any]:
        # The owning group's index changes with group mutations, so resolve it per event
        group_index = self._owner._index_of_children(self._children)
        if group_index == -1:
            return -1, None
        return group_index, self._owner._groups.collection.at(group_index)

    def on_item_added(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_added", self._owner, child, index, group, group_index)
        self._owner._refresh_empty_group_filter_if_applied()
        self._owner._adapt_selection(group_index, index)

    def on_item_removed(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_removed", self._owner, child, index, group, group_index)
        self._owner._refresh_empty_group_filter_if_applied()
        self._owner._adapt_selection(group_index, index)

    def on_item_enabled(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_enabled", self._owner, child, index, group, group_index)
        self._owner._adapt_selection(group_index, index)

    def on_item_disabled(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_disabled", self._owner, child, index, group, group_index)
        self._owner._adapt_selection(group_index, index)

    def on_item_state_changed(self, collection, child, index, state):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify(
            "on_child_state_changed", self._owner, child, index, group, group_index, state)

    def on_apply_filter(self, collection, query, flags, matcher, visible, previous):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify(
            "on_apply_child_filter", self._owner, query, flags, matcher, group, group_index, visible, previous)
        self._owner._adapt_selection(group_index, 0)

    def on_reset_filter(self, collection, query, flags, visible):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify(
            "on_reset_child_filter", self._owner, query, flags, group, group_index, visible)
        self._owner._adapt_selection(group_index, 0)

    def on_item_selected(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_selected", self._owner, child, index, group, group_index)
        if self._owner.expand_group_on_child_selection:
            self._owner.expand_group(group_index)

    def on_item_unselected(self, collection, child, index):
        group_index, group = self._locate()
        if group_index == -1:
            return
        self._owner._listeners.notify("on_child_unselected", self._owner, child, index, group, group_index)


class ExpandableListAdapter:
    """
    Two-level list of groups and their children.

    Group operations take master group indices, child operations take a
    master group index and a master child index. Click hooks and row tuples
    take visible positions.

    Usage:
        adapter = ExpandableListAdapter(selection_mode=SelectionMode.SINGLE)
        adapter.add_group("fruit")
        adapter.add_child(0, "apple")
        adapter.apply_child_filter_to_all_groups("x", filter_empty_groups=True)
    """

    def __init__(self,
                 selection_mode: SelectionMode = SelectionMode.NONE,
                 choice_mode: ChoiceMode = ChoiceMode.GROUPS_AND_CHILDREN,
                 allow_duplicates: Optional[bool] = None,
                 notify_on_change: Optional[bool] = None,
                 number_of_group_states: Optional[int] = None,
                 number_of_child_states: Optional[int] = None,
                 trigger_group_state_on_click: Optional[bool] = None,
                 trigger_child_state_on_click: Optional[bool] = None,
                 select_on_click: Optional[bool] = None,
                 adapt_selection_automatically: Optional[bool] = None,
                 implicit_child_enable_propagation: Optional[bool] = None,
                 implicit_child_state_propagation: Optional[bool] = None,
                 expand_group_on_click: Optional[bool] = None,
                 expand_group_on_selection: Optional[bool] = None,
                 expand_group_on_child_selection: Optional[bool] = None):
        """
        Initialize expandable list adapter.

        Policy arguments left as None use the values of the global EngineConfig.
        """
        self._selection_mode = selection_mode
        self._choice_mode = choice_mode
        self._allow_duplicates = resolve(allow_duplicates, "allow_duplicates")
        self._notify_on_change = resolve(notify_on_change, "notify_on_change")
        self._number_of_child_states = resolve(number_of_child_states, "number_of_states")
        if self._number_of_child_states < 1:
            raise InvalidArgumentError("The number of child states must be at least 1")
        self._trigger_child_state_on_click = resolve(trigger_child_state_on_click, "trigger_state_on_click")
        self._adapt = resolve(adapt_selection_automatically, "adapt_selection_automatically")
        self._propagate_enable = resolve(implicit_child_enable_propagation, "implicit_child_enable_propagation")
        self._propagate_state = resolve(implicit_child_state_propagation, "implicit_child_state_propagation")
        self.select_on_click = resolve(select_on_click, "select_on_click")
        self.expand_group_on_click = resolve(expand_group_on_click, "expand_group_on_click")
        self.expand_group_on_selection = resolve(expand_group_on_selection, "expand_group_on_selection")
        self.expand_group_on_child_selection = resolve(
            expand_group_on_child_selection, "expand_group_on_child_selection")

        self._listeners = ListenerSet()
        self._groups = ListAdapter(
            selection_mode=self._layer_selection_mode(),
            allow_duplicates=self._allow_duplicates,
            notify_on_change=self._notify_on_change,
            number_of_states=number_of_group_states,
            trigger_state_on_click=trigger_group_state_on_click,
            select_on_click=False,
            item_factory=self._create_group,
        )
        self._groups.add_listener(_GroupEventRelay(self))

    @property
    def groups(self) -> ListAdapterView:
        """Read-only view of the group list. Mutate groups through this adapter."""
        return ListAdapterView(self._groups)

    def _layer_selection_mode(self) -> SelectionMode:
        # Both levels use multiple choice layers; the single choice rule spans the tree
        if self._selection_mode is SelectionMode.NONE:
            return SelectionMode.NONE
        return SelectionMode.MULTIPLE

    def _create_group(self, data: Any) -> Group:
        children = ListAdapter(
            selection_mode=self._layer_selection_mode(),
            allow_duplicates=self._allow_duplicates,
            notify_on_change=self._notify_on_change,
            number_of_states=self._number_of_child_states,
            trigger_state_on_click=self._trigger_child_state_on_click,
            select_on_click=False,
        )
        children.add_listener(_ChildEventRelay(self, children))
        children.add_data_set_observer(self._groups.collection.notify_data_set_changed)
        return Group(data, children=children)

    # ---- policies ----

    @property
    def selection_mode(self) -> SelectionMode:
        return self._selection_mode

    @property
    def choice_mode(self) -> ChoiceMode:
        return self._choice_mode

    @property
    def adapt_selection_automatically(self) -> bool:
        return self._adapt

    @adapt_selection_automatically.setter
    def adapt_selection_automatically(self, adapt: bool) -> None:
        self._adapt = adapt
        if adapt:
            self._adapt_selection(0)

    @property
    def allow_duplicates(self) -> bool:
        return self._allow_duplicates

    @allow_duplicates.setter
    def allow_duplicates(self, allow: bool) -> None:
        self._allow_duplicates = allow
        self._groups.collection.allow_duplicates = allow
        for group in self._all_groups():
            group.children.collection.allow_duplicates = allow

    @property
    def notify_on_change(self) -> bool:
        return self._notify_on_change

    @notify_on_change.setter
    def notify_on_change(self, notify: bool) -> None:
        self._notify_on_change = notify
        self._groups.collection.notify_on_change = notify
        for group in self._all_groups():
            group.children.collection.notify_on_change = notify

    @property
    def trigger_group_state_on_click(self) -> bool:
        return self._groups.item_state.trigger_state_on_click

    @trigger_group_state_on_click.setter
    def trigger_group_state_on_click(self, trigger: bool) -> None:
        self._groups.item_state.trigger_state_on_click = trigger

    @property
    def trigger_child_state_on_click(self) -> bool:
        return self._trigger_child_state_on_click

    @trigger_child_state_on_click.setter
    def trigger_child_state_on_click(self, trigger: bool) -> None:
        self._trigger_child_state_on_click = trigger
        for group in self._all_groups():
            group.children.item_state.trigger_state_on_click = trigger

    @property
    def implicit_child_enable_propagation(self) -> bool:
        return self._propagate_enable

    @implicit_child_enable_propagation.setter
    def implicit_child_enable_propagation(self, propagate: bool) -> None:
        """Turning propagation on mirrors every group's enable state to its children."""
        self._propagate_enable = propagate
        logger.debug(f"Implicit child enable propagation {'enabled' if propagate else 'disabled'}")
        if not propagate:
            return
        with self._groups.collection.batch():
            for group in self._all_groups():
                group.children.enable_state.set_all_enabled(group.enabled)

    @property
    def implicit_child_state_propagation(self) -> bool:
        return self._propagate_state

    @implicit_child_state_propagation.setter
    def implicit_child_state_propagation(self, propagate: bool) -> None:
        """
        Turning propagation on mirrors every group's state to its children.

        Raises:
            InvalidArgumentError: If a group state is not a valid child state
        """
        if propagate:
            states = [self.get_group_state(index) for index in range(self.group_count())]
            for group_index, state in enumerate(states):
                self._check_child_state(state, group_index)
        self._propagate_state = propagate
        logger.debug(f"Implicit child state propagation {'enabled' if propagate else 'disabled'}")
        if not propagate:
            return
        with self._groups.collection.batch():
            for group, state in zip(self._all_groups(), states):
                group.children.item_state.set_all_states(state)

    # ---- listeners ----

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def add_data_set_observer(self, observer: Callable[[], None]) -> None:
        self._groups.add_data_set_observer(observer)

    def remove_data_set_observer(self, observer: Callable[[], None]) -> None:
        self._groups.remove_data_set_observer(observer)

    # ---- internal lookups ----

    def _all_groups(self) -> List[Group]:
        return self._groups.collection.items()

    def _group(self, group_index: int) -> Group:
        return self._groups.collection.item_at(group_index)

    def _children(self, group_index: int) -> ListAdapter:
        return self._group(group_index).children

    def _index_of_children(self, children: ListAdapter) -> int:
        for index, group in enumerate(self._all_groups()):
            if group.children is children:
                return index
        return -1

    # ---- groups ----

    def add_group(self, group: Any, index: Optional[int] = None) -> bool:
        return self._groups.collection.add(group, index)

    def add_all_groups(self, groups, index: Optional[int] = None) -> bool:
        return self._groups.collection.add_all(groups, index)

    def remove_group_at(self, group_index: int) -> Any:
        """Remove a group together with all its children."""
        return self._groups.collection.remove_at(group_index)

    def remove_group(self, group: Any) -> bool:
        return self._groups.collection.remove(group)

    def replace_group(self, group_index: int, group: Any) -> Any:
        """Replace a group; the replacement starts without children."""
        return self._groups.collection.replace_at(group_index, group)

    def clear_groups(self) -> None:
        self._groups.collection.clear()

    def group(self, group_index: int) -> Any:
        return self._groups.collection.at(group_index)

    def group_count(self) -> int:
        return self._groups.collection.size()

    def __len__(self) -> int:
        return self._groups.collection.size()

    def is_empty(self) -> bool:
        return self._groups.collection.is_empty()

    def index_of_group(self, group: Any) -> int:
        return self._groups.collection.index_of(group)

    def index_of_group_or_raise(self, group: Any) -> int:
        return self._groups.collection.index_of_or_raise(group)

    def contains_group(self, group: Any) -> bool:
        return self._groups.collection.contains(group)

    def get_all_groups(self) -> List[Any]:
        return self._groups.collection.get_all_items()

    def children_of(self, group_index: int) -> ListAdapterView:
        """Read-only view of the children of the group at ``group_index``."""
        return ListAdapterView(self._children(group_index))

    # ---- children ----

    def add_child(self, group_index: int, child: Any, index: Optional[int] = None) -> bool:
        children = self._children(group_index)
        with self._groups.collection.batch():
            return children.collection.add(child, index)

    def add_child_to_group(self, group: Any, child: Any) -> bool:
        """Add ``child`` to the group equal to ``group``; raises NoSuchElementError if absent."""
        return self.add_child(self.index_of_group_or_raise(group), child)

    def add_all_children(self, group_index: int, children, index: Optional[int] = None) -> bool:
        target = self._children(group_index)
        with self._groups.collection.batch():
            return target.collection.add_all(children, index)

    def remove_child_at(self, group_index: int, child_index: int, remove_empty_group: bool = False) -> Any:
        """
        Remove a child.

        Args:
            group_index: Master index of the group
            child_index: Master index of the child
            remove_empty_group: Also remove the group if it has no children left

        Returns:
            The removed child
        """
        children = self._children(group_index)
        with self._groups.collection.batch():
            removed = children.collection.remove_at(child_index)
            if remove_empty_group and children.collection.is_empty():
                self.remove_group_at(group_index)
        return removed

    def remove_child(self, group_index: int, child: Any, remove_empty_group: bool = False) -> bool:
        index = self._children(group_index).collection.index_of(child)
        if index == -1:
            logger.debug(f"Child {child!r} not removed, because group {group_index} does not contain it")
            publish_event("child_remove_ignored", self, group_index=group_index, child=child)
            return False
        self.remove_child_at(group_index, index, remove_empty_group)
        return True

    def remove_child_from_all_groups(self, child: Any, remove_empty_groups: bool = False) -> bool:
        """Remove ``child`` from every group containing it. Returns True if any was removed."""
        removed = False
        with self._groups.collection.batch():
            for group_index in range(self.group_count() - 1, -1, -1):
                children = self._children(group_index).collection
                while children.contains(child):
                    self.remove_child(group_index, child, remove_empty_groups)
                    removed = True
        return removed

    def replace_child(self, group_index: int, child_index: int, child: Any) -> Any:
        children = self._children(group_index)
        with self._groups.collection.batch():
            return children.collection.replace_at(child_index, child)

    def clear_children(self, group_index: int) -> None:
        children = self._children(group_index)
        with self._groups.collection.batch():
            children.collection.clear()

    def clear_all_children(self) -> None:
        with self._groups.collection.batch():
            for group in self._all_groups():
                group.children.collection.clear()

    def child(self, group_index: int, child_index: int) -> Any:
        return self._children(group_index).collection.at(child_index)

    def child_count(self, group_index: int) -> int:
        return self._children(group_index).collection.size()

    def total_child_count(self) -> int:
        return sum(group.children.collection.size() for group in self._all_groups())

    def index_of_child(self, group_index: int, child: Any) -> int:
        return self._children(group_index).collection.index_of(child)

    def index_of_child_or_raise(self, group_index: int, child: Any) -> int:
        return self._children(group_index).collection.index_of_or_raise(child)

    def contains_child(self, group_index: int, child: Any) -> bool:
        return self._children(group_index).collection.contains(child)

    def group_index_of_child(self, child: Any) -> int:
        """Return the index of the first group containing ``child``, or -1."""
        for group_index, group in enumerate(self._all_groups()):
            if group.children.collection.contains(child):
                return group_index
        return -1

    def get_all_children(self, group_index: Optional[int] = None) -> List[Any]:
        """Return the children of one group, or of all groups in group order."""
        if group_index is not None:
            return self._children(group_index).collection.get_all_items()
        return [child for group in self._all_groups() for child in group.children.collection]

    # ---- enable state ----

    def is_group_enabled(self, group_index: int) -> bool:
        return self._groups.enable_state.is_enabled(group_index)

    def set_group_enabled(self, group_index: int, enabled: bool) -> bool:
        """
        Enable or disable a group.

        With implicit child enable propagation every child is set to the same value.

        Returns:
            True if the group's own enable state changed
        """
        self._group(group_index)
        with self._groups.collection.batch():
            changed = self._groups.enable_state.set_enabled(group_index, enabled)
            if self._propagate_enable:
                self._children(group_index).enable_state.set_all_enabled(enabled)
        return changed

    def trigger_group_enabled(self, group_index: int) -> bool:
        enabled = not self.is_group_enabled(group_index)
        self.set_group_enabled(group_index, enabled)
        return enabled

    def set_all_groups_enabled(self, enabled: bool) -> None:
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                self.set_group_enabled(group_index, enabled)

    def trigger_all_groups_enabled(self) -> None:
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                self.trigger_group_enabled(group_index)

    def enabled_group_count(self) -> int:
        return self._groups.enable_state.enabled_count()

    def enabled_group_indices(self) -> List[int]:
        return self._groups.enable_state.enabled_indices()

    def is_child_enabled(self, group_index: int, child_index: int) -> bool:
        return self._children(group_index).enable_state.is_enabled(child_index)

    def set_child_enabled(self, group_index: int, child_index: int, enabled: bool) -> bool:
        children = self._children(group_index)
        with self._groups.collection.batch():
            return children.enable_state.set_enabled(child_index, enabled)

    def trigger_child_enabled(self, group_index: int, child_index: int) -> bool:
        children = self._children(group_index)
        with self._groups.collection.batch():
            return children.enable_state.trigger_enabled(child_index)

    def set_all_children_enabled(self, enabled: bool, group_index: Optional[int] = None) -> None:
        """Enable or disable the children of one group, or of all groups."""
        with self._groups.collection.batch():
            for group in self._target_groups(group_index):
                group.children.enable_state.set_all_enabled(enabled)

    def trigger_all_children_enabled(self, group_index: Optional[int] = None) -> None:
        with self._groups.collection.batch():
            for group in self._target_groups(group_index):
                group.children.enable_state.trigger_all()

    def enabled_child_count(self, group_index: Optional[int] = None) -> int:
        return sum(group.children.enable_state.enabled_count() for group in self._target_groups(group_index))

    def _target_groups(self, group_index: Optional[int]) -> List[Group]:
        if group_index is None:
            return self._all_groups()
        return [self._group(group_index)]

    # ---- item state ----

    def get_number_of_group_states(self) -> int:
        return self._groups.item_state.get_number_of_states()

    def set_number_of_group_states(self, number_of_states: int) -> None:
        self._groups.item_state.set_number_of_states(number_of_states)

    def get_number_of_child_states(self) -> int:
        return self._number_of_child_states

    def set_number_of_child_states(self, number_of_states: int) -> None:
        if number_of_states < 1:
            raise InvalidArgumentError(f"The number of states must be at least 1, got {number_of_states}")
        self._number_of_child_states = number_of_states
        for group in self._all_groups():
            group.children.item_state.set_number_of_states(number_of_states)

    def get_group_state(self, group_index: int) -> int:
        return self._groups.item_state.get_state(group_index)

    def set_group_state(self, group_index: int, state: int) -> int:
        """
        Set a group's state.

        With implicit child state propagation the state is also set on every
        enabled child, even when the group itself is disabled; it must then be
        a valid child state as well.

        Returns:
            The previous group state, or -1 if the group is disabled
        """
        self._group(group_index)
        self._groups.item_state.check_state(state)
        if self._propagate_state:
            self._check_child_state(state, group_index)
        with self._groups.collection.batch():
            if self._propagate_state:
                self._children(group_index).item_state.set_all_states(state)
            return self._groups.item_state.set_state(group_index, state)

    def _check_child_state(self, state: int, group_index: int) -> None:
        if not 0 <= state < self._number_of_child_states:
            raise InvalidArgumentError(
                f"State {state} of group {group_index} cannot be propagated to children "
                f"with {self._number_of_child_states} states"
            )

    def trigger_group_state(self, group_index: int) -> int:
        current = self.get_group_state(group_index)
        following = 0 if current >= self._groups.item_state.max_state() else current + 1
        return self.set_group_state(group_index, following)

    def set_all_group_states(self, state: int) -> bool:
        result = True
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                if self.set_group_state(group_index, state) == -1:
                    result = False
        return result

    def trigger_all_group_states(self) -> bool:
        result = True
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                if self.trigger_group_state(group_index) == -1:
                    result = False
        return result

    def get_child_state(self, group_index: int, child_index: int) -> int:
        return self._children(group_index).item_state.get_state(child_index)

    def set_child_state(self, group_index: int, child_index: int, state: int) -> int:
        return self._children(group_index).item_state.set_state(child_index, state)

    def trigger_child_state(self, group_index: int, child_index: int) -> int:
        return self._children(group_index).item_state.trigger_state(child_index)

    def set_all_child_states(self, state: int, group_index: Optional[int] = None) -> bool:
        if not 0 <= state < self._number_of_child_states:
            raise InvalidArgumentError(f"State {state} out of range for {self._number_of_child_states} states")
        result = True
        with self._groups.collection.batch():
            for group in self._target_groups(group_index):
                if not group.children.item_state.set_all_states(state):
                    result = False
        return result

    def trigger_all_child_states(self, group_index: Optional[int] = None) -> bool:
        result = True
        with self._groups.collection.batch():
            for group in self._target_groups(group_index):
                if not group.children.item_state.trigger_all():
                    result = False
        return result

    # ---- filtering ----

    def apply_group_filter(self, query: str, flags: int = 0,
                           matcher: Optional[Matcher] = None) -> Optional[VisibleSubset]:
        return self._groups.filtering.apply_filter(query, flags, matcher)

    def reset_group_filter(self, query: str, flags: int = 0) -> bool:
        return self._groups.filtering.reset_filter(query, flags)

    def reset_all_group_filters(self) -> bool:
        return self._groups.filtering.reset_all_filters()

    def is_group_filtered(self) -> bool:
        return self._groups.filtering.is_filtered()

    def is_group_filter_applied(self, query: str, flags: int = 0) -> bool:
        return self._groups.filtering.is_filter_applied(query, flags)

    def apply_child_filter(self, group_index: int, query: str, flags: int = 0,
                           matcher: Optional[Matcher] = None,
                           filter_empty_groups: bool = False) -> Optional[VisibleSubset]:
        """
        Apply a filter to the children of one group.

        Args:
            filter_empty_groups: Hide groups left without visible children

        Returns:
            The group's new visible children, or None if the filter was already applied
        """
        children = self._children(group_index)
        with self._groups.collection.batch():
            result = children.filtering.apply_filter(query, flags, matcher)
            self._after_child_filter_change(filter_empty_groups)
        return result

    def apply_child_filter_to_all_groups(self, query: str, flags: int = 0,
                                         matcher: Optional[Matcher] = None,
                                         filter_empty_groups: bool = False) -> bool:
        """
        Apply a filter to the children of every group.

        Every group's children are matched before any group is filtered, so
        a child that cannot be matched leaves all groups untouched. The
        empty-group filter is refreshed once, after all groups were filtered.

        Returns:
            True if the filter was newly applied to every group

        Raises:
            FilteringUnsupportedError: If a child of any group cannot be matched
        """
        for group in self._all_groups():
            if not group.children.filtering.is_filter_applied(query, flags):
                group.children.filtering.matching_indices(query, flags, matcher)
        result = True
        with self._groups.collection.batch():
            for group in self._all_groups():
                if group.children.filtering.apply_filter(query, flags, matcher) is None:
                    result = False
            self._after_child_filter_change(filter_empty_groups)
        return result

    def reset_child_filter(self, group_index: int, query: str, flags: int = 0,
                           filter_empty_groups: bool = False) -> bool:
        children = self._children(group_index)
        with self._groups.collection.batch():
            result = children.filtering.reset_filter(query, flags)
            self._after_child_filter_change(filter_empty_groups)
        return result

    def reset_child_filter_of_all_groups(self, query: str, flags: int = 0,
                                         filter_empty_groups: bool = False) -> bool:
        """Reset a child filter in every group. Returns True if it was applied to every group."""
        result = True
        with self._groups.collection.batch():
            for group in self._all_groups():
                if not group.children.filtering.reset_filter(query, flags):
                    result = False
            self._after_child_filter_change(filter_empty_groups)
        return result

    def reset_all_child_filters(self) -> None:
        """Reset every child filter of every group and the empty-group filter."""
        with self._groups.collection.batch():
            for group in self._all_groups():
                group.children.filtering.reset_all_filters()
            self._groups.filtering.reset_filter("", FLAG_FILTER_EMPTY_GROUPS)

    def is_child_filtered(self, group_index: Optional[int] = None) -> bool:
        return any(group.children.filtering.is_filtered() for group in self._target_groups(group_index))

    def is_child_filter_applied(self, group_index: int, query: str, flags: int = 0) -> bool:
        return self._children(group_index).filtering.is_filter_applied(query, flags)

    def is_empty_group_filter_applied(self) -> bool:
        return self._groups.filtering.is_filter_applied("", FLAG_FILTER_EMPTY_GROUPS)

    def _after_child_filter_change(self, filter_empty_groups: bool) -> None:
        if filter_empty_groups or self.is_empty_group_filter_applied():
            self._refresh_empty_group_filter()

    def _refresh_empty_group_filter_if_applied(self) -> None:
        if self.is_empty_group_filter_applied():
            self._refresh_empty_group_filter()

    def _refresh_empty_group_filter(self) -> None:
        # Child visibility may have changed since the synthetic filter was evaluated
        with self._groups.collection.batch():
            self._groups.filtering.reset_filter("", FLAG_FILTER_EMPTY_GROUPS)
            self._groups.filtering.apply_filter("", FLAG_FILTER_EMPTY_GROUPS)

    # ---- selection ----

    def _groups_selectable(self) -> bool:
        return self._choice_mode in (ChoiceMode.GROUPS_ONLY, ChoiceMode.GROUPS_AND_CHILDREN)

    def _children_selectable(self) -> bool:
        return self._choice_mode in (ChoiceMode.CHILDREN_ONLY, ChoiceMode.GROUPS_AND_CHILDREN)

    def _require_selection(self) -> None:
        if self._selection_mode is SelectionMode.NONE:
            raise IllegalStateError("The adapter does not support selection")

    def _require_group_choice(self) -> None:
        self._require_selection()
        if not self._groups_selectable():
            raise IllegalStateError(f"Groups cannot be selected in choice mode {self._choice_mode.name}")

    def _require_child_choice(self) -> None:
        self._require_selection()
        if not self._children_selectable():
            raise IllegalStateError(f"Children cannot be selected in choice mode {self._choice_mode.name}")

    def _require_multiple_choice(self) -> None:
        if self._selection_mode is not SelectionMode.MULTIPLE:
            raise IllegalStateError("Operation requires multiple choice selection")

    def is_group_selectable(self, group_index: int) -> bool:
        return self._groups.selection is not None and self._groups.selection.is_selectable(group_index)

    def is_child_selectable(self, group_index: int, child_index: int) -> bool:
        children = self._children(group_index)
        return (children.selection is not None
                and self._groups.filtering.is_visible(group_index)
                and children.selection.is_selectable(child_index))

    def is_group_selected(self, group_index: int) -> bool:
        return self._group(group_index).selected

    def is_child_selected(self, group_index: int, child_index: int) -> bool:
        return self._children(group_index).collection.item_at(child_index).selected

    def has_selection(self) -> bool:
        for group in self._all_groups():
            if group.selected or group.children.selection is not None and group.children.selection.selected_count():
                return True
        return False

    def selected_group_index(self) -> int:
        """Return the first selected group index, or -1."""
        for group_index, group in enumerate(self._all_groups()):
            if group.selected:
                return group_index
        return -1

    def selected_child_index(self) -> Tuple[int, int]:
        """Return ``(group_index, child_index)`` of the first selected child, or ``(-1, -1)``."""
        for group_index, group in enumerate(self._all_groups()):
            for child_index, item in enumerate(group.children.collection.items()):
                if item.selected:
                    return group_index, child_index
        return -1, -1

    def selected_group_indices(self) -> List[int]:
        return [index for index, group in enumerate(self._all_groups()) if group.selected]

    def selected_groups(self) -> List[Any]:
        return [group.data for group in self._all_groups() if group.selected]

    def selected_child_indices(self, group_index: int) -> List[int]:
        children = self._children(group_index)
        return [index for index, item in enumerate(children.collection.items()) if item.selected]

    def selected_children(self, group_index: Optional[int] = None) -> List[Any]:
        return [
            item.data
            for group in self._target_groups(group_index)
            for item in group.children.collection.items()
            if item.selected
        ]

    def selected_count(self) -> int:
        return len(self.selected_group_indices()) + sum(
            len(self.selected_child_indices(group_index)) for group_index in range(self.group_count()))

    def _unselect_all(self) -> None:
        if self._groups.selection is not None:
            self._groups.selection.set_all_selected(False)
        for group in self._all_groups():
            if group.children.selection is not None:
                group.children.selection.set_all_selected(False)

    def select_group(self, group_index: int) -> bool:
        """
        Select a group; in single choice every other group and child is unselected.

        Returns:
            True if the selection changed

        Raises:
            IllegalStateError: If groups cannot be selected
        """
        self._require_group_choice()
        self._group(group_index)
        if self.is_group_selected(group_index) or not self.is_group_selectable(group_index):
            logger.debug(f"Group at index {group_index} not selected")
            publish_event("group_selection_ignored", self, group_index=group_index)
            return False
        with self._groups.collection.batch():
            if self._selection_mode is SelectionMode.SINGLE:
                self._unselect_all()
            self._groups.selection.set_selected(group_index, True)
        return True

    def select_child(self, group_index: int, child_index: int) -> bool:
        """
        Select a child; in single choice every other group and child is unselected.

        Raises:
            IllegalStateError: If children cannot be selected
        """
        self._require_child_choice()
        self._children(group_index).collection.item_at(child_index)
        if self.is_child_selected(group_index, child_index) or not self.is_child_selectable(group_index, child_index):
            logger.debug(f"Child at index {child_index} of group {group_index} not selected")
            publish_event("child_selection_ignored", self, group_index=group_index, child_index=child_index)
            return False
        with self._groups.collection.batch():
            if self._selection_mode is SelectionMode.SINGLE:
                self._unselect_all()
            self._children(group_index).selection.set_selected(child_index, True)
        return True

    def set_group_selected(self, group_index: int, selected: bool) -> bool:
        if selected:
            return self.select_group(group_index)
        self._require_group_choice()
        if not self.is_group_selected(group_index):
            return False
        return self._groups.selection.set_selected(group_index, False)

    def set_child_selected(self, group_index: int, child_index: int, selected: bool) -> bool:
        if selected:
            return self.select_child(group_index, child_index)
        self._require_child_choice()
        if not self.is_child_selected(group_index, child_index):
            return False
        return self._children(group_index).selection.set_selected(child_index, False)

    def trigger_group_selection(self, group_index: int) -> bool:
        """Toggle a group's selection. Returns True if the selection changed."""
        return self.set_group_selected(group_index, not self.is_group_selected(group_index))

    def trigger_child_selection(self, group_index: int, child_index: int) -> bool:
        return self.set_child_selected(group_index, child_index, not self.is_child_selected(group_index, child_index))

    def clear_selection(self) -> None:
        self._require_selection()
        with self._groups.collection.batch():
            self._unselect_all()

    def set_all_groups_selected(self, selected: bool) -> bool:
        """Multiple choice only. Returns True if every group ends up in the requested state."""
        self._require_group_choice()
        self._require_multiple_choice()
        return self._groups.selection.set_all_selected(selected)

    def set_all_children_selected(self, selected: bool, group_index: Optional[int] = None) -> bool:
        """Multiple choice only. Children of hidden groups cannot be selected."""
        self._require_child_choice()
        self._require_multiple_choice()
        result = True
        with self._groups.collection.batch():
            for target in self._target_groups(group_index):
                target_index = self._index_of_children(target.children)
                if selected and not self._groups.filtering.is_visible(target_index):
                    if target.children.collection.size():
                        result = False
                    continue
                if not target.children.selection.set_all_selected(selected):
                    result = False
        return result

    def _unselect_children_of_hidden_groups(self) -> None:
        if self._selection_mode is SelectionMode.NONE:
            return
        for group_index, group in enumerate(self._all_groups()):
            if not self._groups.filtering.is_visible(group_index):
                group.children.selection.set_all_selected(False)

    def _adapt_selection(self, group_index: int, child_index: Optional[int] = None) -> None:
        """
        Restore a single choice selection after it was lost.

        Tries the nearest selectable child of the same group, then the nearest
        selectable group, then the first selectable child of any group.
        """
        if (self._selection_mode is not SelectionMode.SINGLE or not self._adapt
                or self.is_empty() or self.has_selection()):
            return
        group_count = self.group_count()
        group_index = min(max(group_index, 0), group_count - 1)

        if child_index is not None and self._children_selectable():
            size = self.child_count(group_index)
            if size:
                index = nearest_index(min(child_index, size - 1), size,
                                      lambda i: self.is_child_selectable(group_index, i))
                if index != -1:
                    self.select_child(group_index, index)
                    return

        if self._groups_selectable():
            index = nearest_index(group_index, group_count, self.is_group_selectable)
            if index != -1:
                self.select_group(index)
                return

        if self._children_selectable():
            for candidate in range(group_count):
                for index in range(self.child_count(candidate)):
                    if self.is_child_selectable(candidate, index):
                        self.select_child(candidate, index)
                        return

    # ---- expansion ----

    def is_group_expanded(self, group_index: int) -> bool:
        return self._group(group_index).expanded

    def is_group_collapsed(self, group_index: int) -> bool:
        return not self._group(group_index).expanded

    def _set_expanded(self, group_index: int, expanded: bool) -> bool:
        group = self._group(group_index)
        if group.expanded == expanded:
            return False
        with self._groups.collection.batch():
            group.expanded = expanded
            logger.info(f"{'Expanded' if expanded else 'Collapsed'} group {group.data!r} at index {group_index}")
            publish_event("group_expanded" if expanded else "group_collapsed", self, group_index=group_index)
            callback = "on_group_expanded" if expanded else "on_group_collapsed"
            self._listeners.notify(callback, self, group.data, group_index)
            self._groups.collection.notify_data_set_changed()
        return True

    def expand_group(self, group_index: int) -> bool:
        return self._set_expanded(group_index, True)

    def collapse_group(self, group_index: int) -> bool:
        return self._set_expanded(group_index, False)

    def trigger_group_expansion(self, group_index: int) -> bool:
        """Toggle a group's expansion and return the new value."""
        expanded = not self.is_group_expanded(group_index)
        self._set_expanded(group_index, expanded)
        return expanded

    def expand_all_groups(self) -> None:
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                self.expand_group(group_index)

    def collapse_all_groups(self) -> None:
        with self._groups.collection.batch():
            for group_index in range(self.group_count()):
                self.collapse_group(group_index)

    def expanded_group_indices(self) -> List[int]:
        return [index for index, group in enumerate(self._all_groups()) if group.expanded]

    def collapsed_group_indices(self) -> List[int]:
        return [index for index, group in enumerate(self._all_groups()) if not group.expanded]

    def expanded_groups(self) -> List[Any]:
        return [group.data for group in self._all_groups() if group.expanded]

    def collapsed_groups(self) -> List[Any]:
        return [group.data for group in self._all_groups() if not group.expanded]

    def expanded_group_count(self) -> int:
        return len(self.expanded_group_indices())

    # ---- click dispatch ----

    def on_group_clicked(self, position: int) -> None:
        """
        Handle a click on the group row at visible ``position``.

        Click listeners first, then state trigger, selection and expansion
        according to the click policies.
        """
        group_index = self._groups.filtering.get_unfiltered_index(position)
        group = self.group(group_index)
        with self._groups.collection.batch():
            publish_event("group_clicked", self, group_index=group_index, position=position)
            self._listeners.notify("on_group_clicked", self, group, group_index)
            if self.trigger_group_state_on_click:
                self.trigger_group_state(group_index)
            if (self.select_on_click and self._selection_mode is not SelectionMode.NONE
                    and self._groups_selectable()):
                if self._selection_mode is SelectionMode.SINGLE:
                    self.select_group(group_index)
                else:
                    self.trigger_group_selection(group_index)
            if self.expand_group_on_click:
                self.trigger_group_expansion(group_index)

    def on_child_clicked(self, group_position: int, child_position: int) -> None:
        """Handle a click on the child row at visible positions ``(group_position, child_position)``."""
        group_index = self._groups.filtering.get_unfiltered_index(group_position)
        children = self._children(group_index)
        child_index = children.filtering.get_unfiltered_index(child_position)
        child = children.collection.at(child_index)
        with self._groups.collection.batch():
            publish_event("child_clicked", self, group_index=group_index, child_index=child_index)
            self._listeners.notify("on_child_clicked", self, child, child_index, self.group(group_index), group_index)
            if self.trigger_child_state_on_click:
                self.trigger_child_state(group_index, child_index)
            if (self.select_on_click and self._selection_mode is not SelectionMode.NONE
                    and self._children_selectable()):
                if self._selection_mode is SelectionMode.SINGLE:
                    self.select_child(group_index, child_index)
                else:
                    self.trigger_child_selection(group_index, child_index)

    # ---- rows ----

    def group_row(self, position: int) -> RowState:
        row = self._groups.row(position)
        return RowState(
            index=row.index,
            position=row.position,
            data=row.data,
            enabled=row.enabled,
            state=row.state,
            selected=row.selected,
            filtered=row.filtered,
            expanded=self._group(row.index).expanded,
        )

    def group_rows(self) -> List[RowState]:
        return [self.group_row(position) for position in range(self._groups.filtering.visible_count())]

    def child_row(self, group_position: int, child_position: int) -> RowState:
        group_index = self._groups.filtering.get_unfiltered_index(group_position)
        row = self._children(group_index).row(child_position)
        return RowState(
            index=row.index,
            position=row.position,
            data=row.data,
            enabled=row.enabled,
            state=row.state,
            selected=row.selected,
            filtered=row.filtered,
            group_index=group_index,
        )

    def child_rows(self, group_position: int) -> List[RowState]:
        group_index = self._groups.filtering.get_unfiltered_index(group_position)
        return [
            self.child_row(group_position, position)
            for position in range(self._children(group_index).filtering.visible_count())
        ]

    # ---- persistence boundary ----

    def policies(self) -> Dict[str, bool]:
        return {
            "allow_duplicates": self._allow_duplicates,
            "notify_on_change": self._notify_on_change,
            "trigger_group_state_on_click": self.trigger_group_state_on_click,
            "trigger_child_state_on_click": self._trigger_child_state_on_click,
            "select_on_click": self.select_on_click,
            "adapt_selection_automatically": self._adapt,
            "implicit_child_enable_propagation": self._propagate_enable,
            "implicit_child_state_propagation": self._propagate_state,
            "expand_group_on_click": self.expand_group_on_click,
            "expand_group_on_selection": self.expand_group_on_selection,
            "expand_group_on_child_selection": self.expand_group_on_child_selection,
        }

    def snapshot(self) -> ExpandableListAdapterState:
        """Capture group and child flags, filters, expansion and policies."""
        return ExpandableListAdapterState(
            groups=self._groups.snapshot(),
            children=[group.children.snapshot() for group in self._all_groups()],
            expanded=[group.expanded for group in self._all_groups()],
            number_of_child_states=self._number_of_child_states,
            policies=self.policies(),
        )

    def restore(self, state: ExpandableListAdapterState) -> None:
        """
        Restore a snapshot taken from an adapter holding the same groups and children.

        Raises:
            InvalidArgumentError: If the snapshot does not fit this adapter
        """
        group_count = self.group_count()
        if len(state.children) != group_count or len(state.expanded) != group_count:
            raise InvalidArgumentError(f"Snapshot does not describe {group_count} groups")
        if self._selection_mode is SelectionMode.SINGLE:
            selected = sum(state.groups.selected) + sum(sum(child.selected) for child in state.children)
            if selected > 1:
                raise InvalidArgumentError("Snapshot selects more than one item of a single choice adapter")

        adapt = self._adapt
        self._adapt = False
        try:
            with self._groups.collection.batch():
                self._groups.filtering.reset_all_filters()
                self.set_number_of_child_states(state.number_of_child_states)
                for group, child_state, expanded in zip(self._all_groups(), state.children, state.expanded):
                    group.children.restore(child_state)
                    group.expanded = expanded
                self._groups.restore(state.groups)
                self._restore_policies(state.policies)
        finally:
            self._adapt = state.policies.get("adapt_selection_automatically", adapt)
        logger.info(f"Restored state of {group_count} groups")

    def _restore_policies(self, policies: Dict[str, bool]) -> None:
        for name in ("allow_duplicates", "notify_on_change", "trigger_group_state_on_click",
                     "trigger_child_state_on_click", "select_on_click", "expand_group_on_click",
                     "expand_group_on_selection", "expand_group_on_child_selection"):
            if name in policies:
                setattr(self, name, policies[name])
        if "implicit_child_enable_propagation" in policies:
            self._propagate_enable = policies["implicit_child_enable_propagation"]
        if "implicit_child_state_propagation" in policies:
            self._propagate_state = policies["implicit_child_state_propagation"]

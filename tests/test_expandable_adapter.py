"""Tests for the hierarchical group/child adapter."""

import pytest


def _tree(named, selection_mode=None, **kwargs):
    from pyqt_listengine.adapters import ExpandableListAdapter, SelectionMode

    adapter = ExpandableListAdapter(selection_mode=selection_mode or SelectionMode.NONE, **kwargs)
    adapter.add_group(named("fruit"))
    adapter.add_all_children(0, [named("apple"), named("banana")])
    adapter.add_group(named("vegetables"))
    adapter.add_all_children(1, [named("carrot"), named("leek")])
    return adapter


def test_group_and_child_crud(named, recorder):
    """Test group and child structure with notifications."""
    from pyqt_listengine.adapters import ExpandableListAdapter

    adapter = ExpandableListAdapter()
    adapter.add_listener(recorder)

    assert adapter.add_group("g1")
    assert not adapter.add_group("g1")
    assert adapter.add_child(0, "c1")
    assert adapter.add_child_to_group("g1", "c2")
    assert adapter.child_count(0) == 2
    assert adapter.get_all_children() == ["c1", "c2"]
    assert adapter.group_index_of_child("c2") == 0
    assert adapter.index_of_child(0, "c2") == 1

    assert adapter.remove_child(0, "c1")
    assert recorder.events == [
        ("on_group_added", ("g1", 0)),
        ("on_child_added", ("c1", 0, "g1", 0)),
        ("on_child_added", ("c2", 1, "g1", 0)),
        ("on_child_removed", ("c1", 0, "g1", 0)),
    ]


def test_remove_child_removes_empty_group():
    """Test removing the last child can remove its group."""
    from pyqt_listengine.adapters import ExpandableListAdapter

    adapter = ExpandableListAdapter()
    adapter.add_group("g1")
    adapter.add_child(0, "c1")
    adapter.add_child(0, "c2")

    adapter.remove_child(0, "c1", remove_empty_group=True)
    assert adapter.group_count() == 1
    adapter.remove_child(0, "c2", remove_empty_group=True)
    assert adapter.group_count() == 0


def test_missing_group_raises(named):
    """Test by-value group lookups raise NoSuchElementError."""
    from pyqt_listengine.core import NoSuchElementError

    adapter = _tree(named)
    with pytest.raises(NoSuchElementError):
        adapter.add_child_to_group(named("dairy"), named("milk"))


def test_child_lists_are_exclusive(named):
    """Test every group owns its own child list."""
    adapter = _tree(named)
    assert adapter.children_of(0).get_all_items() == [named("apple"), named("banana")]
    assert adapter.get_all_children(1) == [named("carrot"), named("leek")]


def test_group_and_child_views_are_read_only(named):
    """Test the exposed group and child lists only answer queries."""
    from pyqt_listengine.adapters import ListAdapterView, SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE)
    children = adapter.children_of(0)
    assert isinstance(children, ListAdapterView)
    assert isinstance(adapter.groups, ListAdapterView)
    assert not hasattr(children, "selection")
    assert not hasattr(adapter.groups, "collection")

    assert len(adapter.groups) == 2
    assert named("banana") in children
    assert [row.data for row in children.rows()] == [named("apple"), named("banana")]


def test_implicit_enable_propagation(named):
    """Test disabling a group disables all its children with propagation on."""
    adapter = _tree(named, implicit_child_enable_propagation=True)

    adapter.set_group_enabled(0, False)
    assert not adapter.is_group_enabled(0)
    assert all(not adapter.is_child_enabled(0, index) for index in range(adapter.child_count(0)))
    assert adapter.is_child_enabled(1, 0)

    adapter.trigger_group_enabled(0)
    assert adapter.enabled_child_count(0) == 2


def test_enable_without_propagation(named):
    """Test children keep their enable state without propagation."""
    adapter = _tree(named)
    adapter.set_group_enabled(0, False)
    assert adapter.enabled_child_count(0) == 2


def test_enable_and_state_propagation_are_independent(named):
    """Test each propagation flag only mirrors its own flag."""
    adapter = _tree(named, number_of_group_states=3, number_of_child_states=3,
                    implicit_child_enable_propagation=True)
    assert adapter.implicit_child_enable_propagation
    assert not adapter.implicit_child_state_propagation

    adapter.set_group_state(0, 2)
    assert adapter.get_child_state(0, 0) == 0
    adapter.set_group_enabled(1, False)
    assert adapter.enabled_child_count(1) == 0

    adapter = _tree(named, number_of_group_states=3, number_of_child_states=3,
                    implicit_child_state_propagation=True)
    adapter.set_group_enabled(1, False)
    assert adapter.enabled_child_count(1) == 2
    adapter.set_group_state(0, 2)
    assert adapter.get_child_state(0, 0) == 2
    assert adapter.get_child_state(0, 1) == 2


def test_turning_propagation_on_mirrors_groups(named):
    """Test enabling either propagation flag mirrors only that group flag to children."""
    adapter = _tree(named, number_of_group_states=3, number_of_child_states=3)
    adapter.set_group_state(1, 2)
    adapter.set_group_enabled(0, False)

    adapter.implicit_child_enable_propagation = True
    assert adapter.enabled_child_count(0) == 0
    assert adapter.get_child_state(1, 0) == 0

    adapter.implicit_child_state_propagation = True
    assert adapter.get_child_state(1, 0) == 2
    assert adapter.get_child_state(1, 1) == 2


def test_turning_state_propagation_on_rejects_invalid_child_state(named):
    """Test a group state outside the child range blocks state propagation."""
    from pyqt_listengine.core import InvalidArgumentError

    adapter = _tree(named, number_of_group_states=3, number_of_child_states=2)
    adapter.set_group_state(1, 2)

    with pytest.raises(InvalidArgumentError):
        adapter.implicit_child_state_propagation = True
    assert not adapter.implicit_child_state_propagation
    assert adapter.get_child_state(1, 0) == 0


def test_state_propagation_validated_first(named):
    """Test a group state invalid for children is rejected before mutation."""
    from pyqt_listengine.core import InvalidArgumentError

    adapter = _tree(named, number_of_group_states=3, number_of_child_states=2,
                    implicit_child_state_propagation=True)

    assert adapter.set_group_state(0, 1) == 0
    assert adapter.get_child_state(0, 1) == 1

    with pytest.raises(InvalidArgumentError):
        adapter.set_group_state(0, 2)
    assert adapter.get_group_state(0) == 1
    assert adapter.get_child_state(0, 1) == 1


def test_state_propagates_to_children_of_disabled_group(named):
    """Test a disabled group still passes its new state on to its children."""
    adapter = _tree(named, number_of_group_states=2, number_of_child_states=2,
                    implicit_child_state_propagation=True)
    adapter.set_group_enabled(0, False)

    assert adapter.set_group_state(0, 1) == -1
    assert adapter.get_group_state(0) == 0
    assert adapter.get_child_state(0, 0) == 1
    assert adapter.get_child_state(0, 1) == 1


def test_invalid_state_for_all_children_changes_nothing(named, recorder):
    """Test an out-of-range state for every group's children raises before any change."""
    from pyqt_listengine.core import InvalidArgumentError

    adapter = _tree(named, number_of_child_states=2)
    adapter.add_listener(recorder)

    with pytest.raises(InvalidArgumentError):
        adapter.set_all_child_states(2)
    assert all(adapter.get_child_state(group, child) == 0
               for group in range(2) for child in range(2))
    assert recorder.events == []


def test_child_states(named):
    """Test child state operations and bulk setters."""
    adapter = _tree(named, number_of_child_states=2)

    assert adapter.trigger_child_state(0, 0) == 0
    assert adapter.get_child_state(0, 0) == 1
    adapter.set_child_enabled(1, 1, False)
    assert not adapter.set_all_child_states(1)
    assert adapter.get_child_state(1, 1) == 0
    assert adapter.set_all_child_states(0, group_index=0)


def test_child_filter_with_empty_group_filter(named):
    """Test groups without visible children are hidden and shown again."""
    adapter = _tree(named)

    assert adapter.apply_child_filter_to_all_groups("an", filter_empty_groups=True)
    assert adapter.is_empty_group_filter_applied()
    assert adapter.groups.visible_indices() == [0]
    assert adapter.children_of(0).visible_count() == 1

    adapter.reset_child_filter(0, "an")
    assert adapter.groups.visible_indices() == [0]

    adapter.reset_child_filter(1, "an")
    assert adapter.groups.visible_indices() == [0, 1]

    adapter.reset_all_child_filters()
    assert not adapter.is_empty_group_filter_applied()


def test_filter_all_groups_rejects_unmatchable_child_atomically(named, recorder):
    """Test an unmatchable child in a later group leaves every group unfiltered."""
    from pyqt_listengine.adapters import ExpandableListAdapter
    from pyqt_listengine.core import FilteringUnsupportedError

    adapter = ExpandableListAdapter()
    adapter.add_group(named("fruit"))
    adapter.add_child(0, named("apple"))
    adapter.add_group(named("misc"))
    adapter.add_child(1, "plain string")
    adapter.add_listener(recorder)
    notifications = []
    adapter.add_data_set_observer(lambda: notifications.append(True))

    with pytest.raises(FilteringUnsupportedError):
        adapter.apply_child_filter_to_all_groups("app", filter_empty_groups=True)

    assert not adapter.is_child_filter_applied(0, "app")
    assert not adapter.is_child_filtered()
    assert not adapter.is_empty_group_filter_applied()
    assert adapter.groups.visible_indices() == [0, 1]
    assert recorder.events == []
    assert notifications == []


def test_empty_group_filter_tracks_later_child_filters(named):
    """Test a later child filter refreshes the empty-group filter."""
    from pyqt_listengine.core import FLAG_FILTER_EMPTY_GROUPS

    adapter = _tree(named)
    adapter.apply_child_filter(0, "", filter_empty_groups=True)
    assert adapter.groups.visible_count() == 2

    adapter.apply_child_filter(1, "xyz")
    assert adapter.groups.visible_indices() == [0]
    assert adapter.is_group_filter_applied("", FLAG_FILTER_EMPTY_GROUPS)

    adapter.add_child(1, named("xyz root"))
    assert adapter.groups.visible_indices() == [0, 1]


def test_group_filter(named):
    """Test filtering groups by their own data."""
    adapter = _tree(named)
    visible = adapter.apply_group_filter("veg")
    assert list(visible) == [named("vegetables")]
    assert adapter.is_group_filtered()
    assert adapter.reset_group_filter("veg")
    assert not adapter.is_group_filtered()


def test_single_choice_across_tree(named):
    """Test at most one group or child is selected in the whole tree."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE, adapt_selection_automatically=False)

    assert adapter.select_group(0)
    assert adapter.select_child(1, 1)
    assert not adapter.is_group_selected(0)
    assert adapter.selected_child_index() == (1, 1)
    assert adapter.selected_count() == 1

    assert adapter.trigger_child_selection(1, 1)
    assert not adapter.has_selection()


def test_choice_mode_forbids_selection(named):
    """Test selecting a level excluded by the choice mode raises."""
    from pyqt_listengine.adapters import ChoiceMode, SelectionMode
    from pyqt_listengine.core import IllegalStateError

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE, choice_mode=ChoiceMode.GROUPS_ONLY)
    with pytest.raises(IllegalStateError):
        adapter.select_child(0, 0)

    adapter = _tree(named, selection_mode=SelectionMode.MULTIPLE, choice_mode=ChoiceMode.CHILDREN_ONLY)
    with pytest.raises(IllegalStateError):
        adapter.set_group_selected(0, True)

    adapter = _tree(named)
    with pytest.raises(RuntimeError):
        adapter.select_group(0)


def test_single_choice_adaption(named):
    """Test a lost selection moves to the nearest child, then the nearest group."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE, expand_group_on_selection=False)
    assert adapter.selected_group_index() == 0

    adapter.select_child(0, 0)
    adapter.set_child_enabled(0, 0, False)
    assert adapter.selected_child_index() == (0, 1)

    adapter.set_child_enabled(0, 1, False)
    assert adapter.selected_group_index() == 0
    assert adapter.selected_count() == 1


def test_children_only_adaption(named):
    """Test children-only single choice falls back to the first selectable child."""
    from pyqt_listengine.adapters import ChoiceMode, SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE, choice_mode=ChoiceMode.CHILDREN_ONLY)
    assert adapter.selected_child_index() == (0, 0)

    adapter.set_all_children_enabled(False, group_index=0)
    assert adapter.selected_child_index() == (1, 0)


def test_group_filter_unselects_children_of_hidden_groups(named):
    """Test hiding a group unselects its children."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.MULTIPLE)
    adapter.set_child_selected(0, 0, True)
    adapter.set_child_selected(1, 0, True)

    adapter.apply_group_filter("veg")
    assert adapter.selected_children() == [named("carrot")]
    assert not adapter.select_child(0, 1)


def test_multiple_choice_bulk(named):
    """Test multiple choice bulk selection of groups and children."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.MULTIPLE, expand_group_on_selection=True)
    assert adapter.set_all_groups_selected(True)
    assert adapter.selected_group_indices() == [0, 1]
    assert adapter.expanded_group_indices() == [0, 1]

    assert adapter.set_all_children_selected(True, group_index=1)
    assert adapter.selected_children() == [named("carrot"), named("leek")]
    assert adapter.selected_count() == 4

    adapter.clear_selection()
    assert not adapter.has_selection()


def test_expansion(named, recorder):
    """Test expansion state and notifications."""
    adapter = _tree(named)
    adapter.add_listener(recorder)

    assert adapter.expand_group(0)
    assert not adapter.expand_group(0)
    assert adapter.trigger_group_expansion(1)
    assert adapter.expanded_group_count() == 2
    adapter.collapse_all_groups()
    assert adapter.collapsed_groups() == [named("fruit"), named("vegetables")]

    assert recorder.names() == [
        "on_group_expanded", "on_group_expanded", "on_group_collapsed", "on_group_collapsed",
    ]


def test_click_dispatch(named, recorder):
    """Test group and child clicks honor the click policies."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.SINGLE,
                    adapt_selection_automatically=False,
                    expand_group_on_child_selection=False,
                    trigger_child_state_on_click=True,
                    number_of_child_states=2)
    adapter.add_listener(recorder)

    adapter.on_group_clicked(1)
    assert adapter.is_group_expanded(1)
    assert adapter.selected_group_index() == 1

    adapter.on_child_clicked(1, 1)
    assert adapter.selected_child_index() == (1, 1)
    assert adapter.get_child_state(1, 1) == 1
    assert not adapter.is_group_expanded(0)
    assert "on_group_clicked" in recorder.names()
    assert "on_child_clicked" in recorder.names()


def test_child_selection_expands_group(named):
    """Test selecting a child expands its group by default."""
    from pyqt_listengine.adapters import SelectionMode

    adapter = _tree(named, selection_mode=SelectionMode.MULTIPLE)
    adapter.select_child(1, 0)
    assert adapter.is_group_expanded(1)


def test_rows(named):
    """Test group and child row tuples use visible positions."""
    adapter = _tree(named)
    adapter.expand_group(1)
    adapter.apply_group_filter("veg")
    adapter.apply_child_filter(1, "ee")

    group_row = adapter.group_row(0)
    assert group_row.index == 1
    assert group_row.expanded is True
    assert group_row.filtered

    child_row = adapter.child_row(0, 0)
    assert child_row.data == named("leek")
    assert child_row.index == 1
    assert child_row.group_index == 1
    assert [row.data for row in adapter.child_rows(0)] == [named("leek")]


def test_snapshot_and_restore(named):
    """Test snapshots of the whole tree restore into an equal tree."""
    from pyqt_listengine.adapters import SelectionMode

    source = _tree(named, selection_mode=SelectionMode.SINGLE, number_of_child_states=2)
    source.select_child(1, 0)
    source.set_child_state(0, 1, 1)
    source.apply_child_filter_to_all_groups("a", filter_empty_groups=True)
    state = source.snapshot()

    target = _tree(named, selection_mode=SelectionMode.SINGLE, number_of_child_states=2)
    target.restore(state)

    assert target.selected_child_index() == (1, 0)
    assert target.get_child_state(0, 1) == 1
    assert target.is_empty_group_filter_applied()
    assert target.expanded_group_indices() == source.expanded_group_indices()
    assert target.snapshot() == state


def test_data_set_notification_bubbles_from_children(named):
    """Test child mutations notify the adapter's data-set observers once."""
    adapter = _tree(named)
    calls = []
    adapter.add_data_set_observer(lambda: calls.append(1))

    adapter.apply_child_filter_to_all_groups("a", filter_empty_groups=True)
    assert calls == [1]

    adapter.add_child(0, named("avocado"))
    assert calls == [1, 1]

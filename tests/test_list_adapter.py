"""Tests for the flat list adapter."""

import pytest


def test_click_selects_in_single_choice():
    """Test clicks select the clicked row in single choice mode."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode

    adapter = ListAdapter(["a", "b", "c"], selection_mode=SelectionMode.SINGLE)
    adapter.on_item_clicked(2)
    assert adapter.selection.selected_item() == "c"

    adapter.on_item_clicked(2)
    assert adapter.selection.selected_item() == "c"


def test_click_toggles_in_multiple_choice():
    """Test clicks toggle the clicked row in multiple choice mode."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode

    adapter = ListAdapter(["a", "b"], selection_mode=SelectionMode.MULTIPLE)
    adapter.on_item_clicked(1)
    assert adapter.selection.selected_indices() == [1]
    adapter.on_item_clicked(1)
    assert adapter.selection.selected_indices() == []


def test_click_uses_visible_positions(named, recorder):
    """Test click positions are translated through the active filters."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode

    adapter = ListAdapter([named("apple"), named("banana"), named("grape")],
                          selection_mode=SelectionMode.MULTIPLE,
                          trigger_state_on_click=True,
                          number_of_states=2)
    adapter.add_listener(recorder)
    adapter.filtering.apply_filter("ap")
    recorder.events.clear()

    adapter.on_item_clicked(1)
    assert recorder.names() == ["on_item_clicked", "on_item_state_changed", "on_item_selected"]
    assert adapter.item_state.get_state(2) == 1
    assert adapter.selection.selected_indices() == [2]


def test_click_policies_disabled():
    """Test select_on_click can be turned off."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode

    adapter = ListAdapter(["a", "b"], selection_mode=SelectionMode.MULTIPLE, select_on_click=False)
    adapter.on_item_clicked(0)
    assert adapter.selection.selected_indices() == []


def test_row_state(named):
    """Test row tuples expose everything needed to render a row."""
    from pyqt_listengine.adapters import ListAdapter, RowState, SelectionMode

    adapter = ListAdapter([named("apple"), named("banana"), named("grape")],
                          selection_mode=SelectionMode.SINGLE,
                          number_of_states=3)
    adapter.item_state.set_state(2, 2)
    adapter.filtering.apply_filter("ap")

    assert adapter.row(1) == RowState(
        index=2, position=1, data=named("grape"), enabled=True, state=2, selected=False, filtered=True,
    )
    assert [row.index for row in adapter.rows()] == [0, 2]
    assert adapter.rows()[0].selected


def test_by_value_helpers():
    """Test the by-value helpers resolve data to indices."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode
    from pyqt_listengine.core import NoSuchElementError

    adapter = ListAdapter(["a", "b"], selection_mode=SelectionMode.SINGLE, number_of_states=2)

    assert adapter.set_item_enabled("a", False)
    assert not adapter.is_item_enabled("a")
    assert adapter.is_item_selected("b")
    assert adapter.set_item_state("b", 1) == 0
    assert adapter.get_item_state("b") == 1
    assert adapter.set_item_selected("b", False)
    assert not adapter.is_item_selected("b")

    with pytest.raises(NoSuchElementError):
        adapter.set_item_enabled("zz", True)


def test_selection_unsupported():
    """Test selection helpers raise without a selection layer."""
    from pyqt_listengine.adapters import ListAdapter
    from pyqt_listengine.core import IllegalStateError

    adapter = ListAdapter(["a"])
    assert adapter.selection is None
    with pytest.raises(IllegalStateError):
        adapter.set_item_selected("a", True)


def test_snapshot_and_restore(named):
    """Test snapshots carry flags, filters and policies."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode

    source = ListAdapter([named("apple"), named("banana"), named("grape")],
                         selection_mode=SelectionMode.MULTIPLE,
                         number_of_states=3)
    source.enable_state.set_enabled(1, False)
    source.item_state.set_state(2, 2)
    source.selection.set_selected(2, True)
    source.filtering.apply_filter("ap")
    state = source.snapshot()

    assert state.enabled == [True, False, True]
    assert state.states == [0, 0, 2]
    assert state.selected == [False, False, True]
    assert [applied.query for applied in state.filters] == ["ap"]
    assert state.policies["select_on_click"] is True

    target = ListAdapter([named("apple"), named("banana"), named("grape")],
                         selection_mode=SelectionMode.MULTIPLE)
    target.restore(state)

    assert target.snapshot() == state
    assert target.filtering.visible_indices() == [0, 2]


def test_restore_rejects_mismatch():
    """Test restoring a snapshot of another size raises."""
    from pyqt_listengine.adapters import ListAdapter, ListAdapterState
    from pyqt_listengine.core import InvalidArgumentError

    adapter = ListAdapter(["a", "b"])
    with pytest.raises(InvalidArgumentError):
        adapter.restore(ListAdapterState(enabled=[True], states=[0], selected=[False]))


def test_event_sink_receives_ignored_operations():
    """Test policy no-ops are published as ignored events."""
    from pyqt_listengine.adapters import ListAdapter, SelectionMode
    from pyqt_listengine.protocols import register_event_sink

    class Sink:
        def __init__(self):
            self.events = []

        def publish(self, event):
            self.events.append(event)

    sink = Sink()
    register_event_sink(sink)
    adapter = ListAdapter(["a", "b"], selection_mode=SelectionMode.SINGLE)
    adapter.enable_state.set_enabled(1, False)
    sink.events.clear()

    adapter.collection.add("a")
    adapter.selection.select(1)

    assert [event.name for event in sink.events] == ["item_add_ignored", "selection_ignored"]
    assert all(event.ignored for event in sink.events)
    assert sink.events[1].source == "SingleChoiceSelection"
    assert sink.events[1].payload == {"index": 1, "reason": "disabled"}

"""Tests for the item state layer."""

import pytest


def _layer(items, number_of_states=3):
    from pyqt_listengine.core import Collection
    from pyqt_listengine.layers import EnableStateLayer, ItemStateLayer

    collection = Collection(items)
    return collection, EnableStateLayer(collection), ItemStateLayer(collection, number_of_states)


def test_set_state_returns_previous(recorder):
    """Test set_state validates the range and returns the previous state."""
    from pyqt_listengine.core import InvalidArgumentError

    collection, enable_state, layer = _layer(["a", "b"])
    layer.add_listener(recorder)

    assert layer.set_state(0, 2) == 0
    assert layer.get_state(0) == 2
    with pytest.raises(InvalidArgumentError):
        layer.set_state(0, 3)
    with pytest.raises(ValueError):
        layer.set_state(0, -1)
    assert layer.get_state(0) == 2
    assert recorder.events == [("on_item_state_changed", ("a", 0, 2))]


def test_trigger_state_wraps():
    """Test trigger_state advances and wraps past the maximum."""
    collection, enable_state, layer = _layer(["a"])

    assert layer.trigger_state(0) == 0
    assert layer.trigger_state(0) == 1
    assert layer.get_state(0) == 2
    assert layer.trigger_state(0) == 2
    assert layer.get_state(0) == 0


def test_disabled_item_state_is_rejected(recorder):
    """Test state changes of disabled items return -1 without notification."""
    collection, enable_state, layer = _layer(["a", "b"])
    enable_state.set_enabled(1, False)
    layer.add_listener(recorder)

    assert layer.set_state(1, 1) == -1
    assert layer.trigger_state(1) == -1
    assert layer.get_state(1) == 0
    assert recorder.events == []

    assert not layer.set_all_states(2)
    assert layer.get_state(0) == 2
    assert layer.get_state(1) == 0


def test_number_of_states_shrinks_lazily():
    """Test shrinking the number of states clamps on read without rewriting."""
    from pyqt_listengine.core import InvalidArgumentError

    collection, enable_state, layer = _layer(["a"], number_of_states=5)
    layer.set_state(0, 4)

    layer.set_number_of_states(2)
    assert layer.get_state(0) == 1
    assert collection.item_at(0).state == 4

    layer.set_number_of_states(5)
    assert layer.get_state(0) == 4

    with pytest.raises(InvalidArgumentError):
        layer.set_number_of_states(0)


def test_state_queries():
    """Test queries by state."""
    collection, enable_state, layer = _layer(["a", "b", "c"])
    layer.set_state(1, 1)
    layer.set_state(2, 1)

    assert layer.min_state() == 0
    assert layer.max_state() == 2
    assert layer.indices_with_state(1) == [1, 2]
    assert layer.items_with_state(0) == ["a"]
    assert layer.state_count(1) == 2
    assert layer.first_index_with_state(1) == 1
    assert layer.last_item_with_state(1) == "c"
    assert layer.first_item_with_state(2) is None

    assert layer.trigger_all()
    assert layer.indices_with_state(2) == [1, 2]

"""Tests for the PyQt6 bridge."""


def test_list_model_rows_follow_filters(qapp, named):
    """Test the model exposes visible rows and resets on changes."""
    from PyQt6.QtCore import Qt
    from pyqt_listengine.adapters import ListAdapter, SelectionMode
    from pyqt_listengine.qt import ENABLED_ROLE, MASTER_INDEX_ROLE, SELECTED_ROLE, ListAdapterModel

    adapter = ListAdapter([named("apple"), named("banana"), named("grape")],
                          selection_mode=SelectionMode.SINGLE)
    model = ListAdapterModel(adapter)
    resets = []
    model.modelReset.connect(lambda: resets.append(1))

    assert model.rowCount() == 3
    adapter.filtering.apply_filter("ap")
    assert resets == [1]
    assert model.rowCount() == 2

    index = model.index(1, 0)
    assert model.data(index) == "Named('grape')"
    assert model.data(index, MASTER_INDEX_ROLE) == 2
    assert model.data(index, ENABLED_ROLE) is True
    assert model.data(model.index(0, 0), SELECTED_ROLE) is True
    assert model.data(index, Qt.ItemDataRole.CheckStateRole) == Qt.CheckState.Unchecked


def test_list_model_flags_and_clicks(qapp):
    """Test disabled rows get no flags and clicks reach the adapter."""
    from PyQt6.QtCore import Qt
    from pyqt_listengine.adapters import ListAdapter, SelectionMode
    from pyqt_listengine.qt import ListAdapterModel

    adapter = ListAdapter(["a", "b"], selection_mode=SelectionMode.MULTIPLE)
    model = ListAdapterModel(adapter)
    adapter.enable_state.set_enabled(0, False)

    assert model.flags(model.index(0, 0)) == Qt.ItemFlag.NoItemFlags
    assert model.flags(model.index(1, 0)) & Qt.ItemFlag.ItemIsEnabled

    model.clicked(model.index(1, 0))
    assert adapter.selection.selected_indices() == [1]

    model.detach()
    adapter.enable_state.set_enabled(0, True)
    assert model.rowCount() == 2


def test_debounced_filter_replaces_query(qapp, named):
    """Test the debounced filter resets the previous query before applying."""
    from pyqt_listengine.adapters import ListAdapter
    from pyqt_listengine.qt import DebouncedTextFilter

    adapter = ListAdapter([named("apple"), named("banana"), named("grape")])
    applied = []
    text_filter = DebouncedTextFilter(adapter, delay_ms=10_000, on_applied=applied.append)

    text_filter.trigger("ap")
    assert not adapter.filtering.is_filtered()
    text_filter.force()
    assert adapter.filtering.visible_count() == 2

    text_filter.trigger("ban")
    text_filter.force()
    assert [applied_filter.query for applied_filter in adapter.filtering.get_active_filters()] == ["ban"]
    assert text_filter.active_query == "ban"

    text_filter.trigger("")
    text_filter.force()
    assert not adapter.filtering.is_filtered()
    assert applied == ["ap", "ban", ""]


def test_debounced_filter_cancel(qapp, named):
    """Test cancel drops the pending query."""
    from pyqt_listengine.adapters import ListAdapter
    from pyqt_listengine.qt import DebouncedTextFilter

    adapter = ListAdapter([named("apple")])
    text_filter = DebouncedTextFilter(adapter, delay_ms=10_000)

    text_filter.trigger("x")
    assert text_filter.pending_query == "x"
    text_filter.cancel()
    text_filter.force()
    assert not adapter.filtering.is_filtered()

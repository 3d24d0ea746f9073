"""Qt item model presenting the visible rows of a ListAdapter."""

import logging
from typing import Optional

from PyQt6.QtCore import QAbstractListModel, QModelIndex, QObject, Qt

from ..adapters.list_adapter import ListAdapter

logger = logging.getLogger(__name__)

# Custom roles for delegates
ENABLED_ROLE = Qt.ItemDataRole.UserRole + 1
STATE_ROLE = Qt.ItemDataRole.UserRole + 2
SELECTED_ROLE = Qt.ItemDataRole.UserRole + 3
FILTERED_ROLE = Qt.ItemDataRole.UserRole + 4
MASTER_INDEX_ROLE = Qt.ItemDataRole.UserRole + 5
ITEM_DATA_ROLE = Qt.ItemDataRole.UserRole + 6


class ListAdapterModel(QAbstractListModel):
    """List model over the visible rows of a ListAdapter.

    The model holds no data of its own. Every data-set notification of the
    adapter resets the model, and ``clicked`` (connect it to a view's
    ``clicked`` signal) forwards to the adapter's click dispatch.
    """

    def __init__(self, adapter: ListAdapter, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._adapter = adapter
        adapter.add_data_set_observer(self._on_data_set_changed)

    @property
    def adapter(self) -> ListAdapter:
        return self._adapter

    def detach(self) -> None:
        """Stop tracking the adapter."""
        self._adapter.remove_data_set_observer(self._on_data_set_changed)

    def _on_data_set_changed(self) -> None:
        self.beginResetModel()
        self.endResetModel()

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid():
            return 0
        return self._adapter.filtering.visible_count()

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None
        position = index.row()
        if position < 0 or position >= self.rowCount():
            return None

        row = self._adapter.row(position)
        if role == Qt.ItemDataRole.DisplayRole:
            return str(row.data)
        if role == Qt.ItemDataRole.CheckStateRole and self._adapter.selection is not None:
            return Qt.CheckState.Checked if row.selected else Qt.CheckState.Unchecked
        if role == ENABLED_ROLE:
            return row.enabled
        if role == STATE_ROLE:
            return row.state
        if role == SELECTED_ROLE:
            return row.selected
        if role == FILTERED_ROLE:
            return row.filtered
        if role == MASTER_INDEX_ROLE:
            return row.index
        if role == ITEM_DATA_ROLE:
            return row.data
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:  # type: ignore[override]
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        master_index = self._adapter.filtering.get_unfiltered_index(index.row())
        if not self._adapter.enable_state.is_enabled(master_index):
            return Qt.ItemFlag.NoItemFlags
        return Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable

    def roleNames(self):  # type: ignore[override]
        names = dict(super().roleNames())
        names.update({
            ENABLED_ROLE: b"enabled",
            STATE_ROLE: b"state",
            SELECTED_ROLE: b"selected",
            FILTERED_ROLE: b"filtered",
            MASTER_INDEX_ROLE: b"masterIndex",
            ITEM_DATA_ROLE: b"itemData",
        })
        return names

    def clicked(self, index: QModelIndex) -> None:
        """Dispatch a view click to the adapter."""
        if not index.isValid():
            return
        logger.debug(f"Row {index.row()} clicked")
        self._adapter.on_item_clicked(index.row())

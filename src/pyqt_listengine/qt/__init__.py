"""
PyQt6 bridge.

Item model and debounced search filter binding adapters to Qt views.
"""

from .list_model import (
    ListAdapterModel,
    ENABLED_ROLE,
    STATE_ROLE,
    SELECTED_ROLE,
    FILTERED_ROLE,
    MASTER_INDEX_ROLE,
    ITEM_DATA_ROLE,
)
from .filter_debouncer import DebouncedTextFilter

__all__ = [
    "ListAdapterModel",
    "ENABLED_ROLE",
    "STATE_ROLE",
    "SELECTED_ROLE",
    "FILTERED_ROLE",
    "MASTER_INDEX_ROLE",
    "ITEM_DATA_ROLE",
    "DebouncedTextFilter",
]

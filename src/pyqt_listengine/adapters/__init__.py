"""
Adapters composing collections and layers for views.
"""

from .list_adapter import ListAdapter, ListAdapterState, ListAdapterView, RowState, SelectionMode
from .expandable_adapter import ChoiceMode, ExpandableListAdapter, ExpandableListAdapterState

__all__ = [
    "ListAdapter",
    "ListAdapterState",
    "ListAdapterView",
    "RowState",
    "SelectionMode",
    "ChoiceMode",
    "ExpandableListAdapter",
    "ExpandableListAdapterState",
]

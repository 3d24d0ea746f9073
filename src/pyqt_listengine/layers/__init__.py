"""
State layers composed over one Collection.

Each layer holds a back-reference to the Collection, stores its flags on the
collection's Items and reports transitions to its own listeners.
"""

from .enable_state import EnableStateLayer
from .item_state import ItemStateLayer
from .filtering import FilterEngine
from .selection import SelectionLayer, SingleChoiceSelection, MultipleChoiceSelection

__all__ = [
    "EnableStateLayer",
    "ItemStateLayer",
    "FilterEngine",
    "SelectionLayer",
    "SingleChoiceSelection",
    "MultipleChoiceSelection",
]

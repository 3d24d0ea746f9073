"""
pyqt-listengine: stateful collection engine for PyQt6 list views.

Tracks an ordered collection of items, optionally grouped into a
group/child hierarchy, and keeps enable state, item state, filtering and
selection mutually consistent under any interleaving of mutations.

Architecture:
- Tier 1 (Core): Items, groups, applied filters and the Collection
- Tier 2 (Layers): Enable state, item state, filtering and selection layers
- Tier 3 (Adapters): ListAdapter and ExpandableListAdapter compositions
- Tier 4 (Qt): Item model and debounced search filter (pyqt_listengine.qt)

Key Features:
- Stacked filters replayed correctly when any one of them is reset
- Single choice selection with automatic adaption
- Implicit propagation of group state to children
- Synthetic filter hiding groups without visible children
- Snapshot/restore of all flags for external serializers
"""

__version__ = "0.1.0"

from .core import (
    ListEngineError,
    IndexOutOfRangeError,
    InvalidArgumentError,
    NoSuchElementError,
    FilteringUnsupportedError,
    IllegalStateError,
    Item,
    Group,
    FLAG_FILTER_EMPTY_GROUPS,
    AppliedFilter,
    VisibleSubset,
    Collection,
    Order,
)
from .layers import (
    EnableStateLayer,
    ItemStateLayer,
    FilterEngine,
    SingleChoiceSelection,
    MultipleChoiceSelection,
)
from .adapters import (
    ListAdapter,
    ListAdapterState,
    ListAdapterView,
    RowState,
    SelectionMode,
    ChoiceMode,
    ExpandableListAdapter,
    ExpandableListAdapterState,
)
from .protocols import (
    EngineConfig,
    set_engine_config,
    get_engine_config,
    EngineEvent,
    register_event_sink,
    get_event_sink,
)

__all__ = [
    "__version__",
    "ListEngineError",
    "IndexOutOfRangeError",
    "InvalidArgumentError",
    "NoSuchElementError",
    "FilteringUnsupportedError",
    "IllegalStateError",
    "Item",
    "Group",
    "FLAG_FILTER_EMPTY_GROUPS",
    "AppliedFilter",
    "VisibleSubset",
    "Collection",
    "Order",
    "EnableStateLayer",
    "ItemStateLayer",
    "FilterEngine",
    "SingleChoiceSelection",
    "MultipleChoiceSelection",
    "ListAdapter",
    "ListAdapterState",
    "ListAdapterView",
    "RowState",
    "SelectionMode",
    "ChoiceMode",
    "ExpandableListAdapter",
    "ExpandableListAdapterState",
    "EngineConfig",
    "set_engine_config",
    "get_engine_config",
    "EngineEvent",
    "register_event_sink",
    "get_event_sink",
]

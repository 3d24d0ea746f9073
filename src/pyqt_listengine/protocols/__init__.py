"""
Listener protocols, engine configuration and the observability sink registry.
"""

from .listeners import (
    CollectionListener,
    EnableStateListener,
    ItemStateListener,
    FilterListener,
    SelectionListener,
    ItemClickListener,
    ExpandableListListener,
)
from .engine_config import EngineConfig, set_engine_config, get_engine_config
from .event_sink import EngineEvent, EventSink, register_event_sink, get_event_sink, publish_event

__all__ = [
    "CollectionListener",
    "EnableStateListener",
    "ItemStateListener",
    "FilterListener",
    "SelectionListener",
    "ItemClickListener",
    "ExpandableListListener",
    "EngineConfig",
    "set_engine_config",
    "get_engine_config",
    "EngineEvent",
    "EventSink",
    "register_event_sink",
    "get_event_sink",
    "publish_event",
]

"""Default policy configuration for list engines.

Provides a hook for applications to change the defaults used when an
adapter or layer is created without explicit policy arguments.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class EngineConfig:
    """Default policies for collections, layers and adapters.

    Attributes:
        allow_duplicates: Whether collections accept data equal to data already present
        notify_on_change: Whether collections fire data-set notifications
        number_of_states: Number of item states (at least 1)
        trigger_state_on_click: Whether a click advances the item state
        select_on_click: Whether a click selects (single) or toggles (multiple) an item
        adapt_selection_automatically: Whether single-choice selection keeps an item selected
        implicit_child_enable_propagation: Whether group enable changes are mirrored to children
        implicit_child_state_propagation: Whether group state changes are mirrored to children
        expand_group_on_click: Whether clicking a group toggles its expansion
        expand_group_on_selection: Whether selecting a group expands it
        expand_group_on_child_selection: Whether selecting a child expands its group
    """

    allow_duplicates: bool = False
    notify_on_change: bool = True
    number_of_states: int = 1
    trigger_state_on_click: bool = False
    select_on_click: bool = True
    adapt_selection_automatically: bool = True
    implicit_child_enable_propagation: bool = False
    implicit_child_state_propagation: bool = False
    expand_group_on_click: bool = True
    expand_group_on_selection: bool = False
    expand_group_on_child_selection: bool = True


# Global config instance (set by application)
_engine_config: Optional[EngineConfig] = None


def set_engine_config(config: Optional[EngineConfig]) -> None:
    """Set the global engine configuration.

    Args:
        config: EngineConfig instance, or None to restore the defaults
    """
    global _engine_config
    _engine_config = config


def get_engine_config() -> EngineConfig:
    """Get the current engine configuration.

    Returns:
        Current EngineConfig or default if not set
    """
    if _engine_config is None:
        return EngineConfig()
    return _engine_config


def resolve(value, name: str):
    """Return ``value`` unless it is None, else the configured default named ``name``."""
    if value is None:
        return getattr(get_engine_config(), name)
    return value

"""Optional observability sink for structured engine events.

The engine never requires a consumer. Applications that want to trace
mutations and ignored requests (re-applied filters, selections of disabled
items, ...) register a sink once at startup.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class EngineEvent:
    """A single structured engine event.

    Attributes:
        name: Event name, e.g. ``"filter_applied"``. Policy no-ops end with ``"_ignored"``.
        source: Class name of the component that published the event
        payload: Event specific values (indices, queries, states)
    """

    name: str
    source: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ignored(self) -> bool:
        return self.name.endswith("_ignored")


class EventSink(Protocol):
    """Protocol for consumers of engine events."""

    def publish(self, event: EngineEvent) -> None:
        """Receive one event. Called synchronously on the mutating thread."""
        ...


_event_sink: Optional[EventSink] = None


def register_event_sink(sink: Optional[EventSink]) -> None:
    """Register the global event sink (``None`` unregisters it)."""
    global _event_sink
    _event_sink = sink


def get_event_sink() -> Optional[EventSink]:
    """Get the registered event sink."""
    return _event_sink


def publish_event(name: str, source: Any, **payload: Any) -> None:
    """Publish an event to the registered sink, if any.

    Args:
        name: Event name
        source: Publishing object (its class name is recorded)
        **payload: Event specific values
    """
    if _event_sink is None:
        return
    _event_sink.publish(EngineEvent(name, type(source).__name__, dict(payload)))

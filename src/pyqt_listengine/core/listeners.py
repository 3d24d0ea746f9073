"""Ordered listener registry used by collections and layers."""

from typing import Any, List


class ListenerSet:
    """
    Listeners notified synchronously in registration order.

    A listener only needs to implement the callbacks it cares about; missing
    methods are skipped.
    """

    def __init__(self):
        self._listeners: List[Any] = []

    def add(self, listener: Any) -> bool:
        if any(existing is listener for existing in self._listeners):
            return False
        self._listeners.append(listener)
        return True

    def remove(self, listener: Any) -> bool:
        for position, existing in enumerate(self._listeners):
            if existing is listener:
                del self._listeners[position]
                return True
        return False

    def notify(self, callback_name: str, *args: Any) -> None:
        # Copy so callbacks may unregister themselves
        for listener in list(self._listeners):
            callback = getattr(listener, callback_name, None)
            if callback is not None:
                callback(*args)

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener: Any) -> bool:
        return any(existing is listener for existing in self._listeners)

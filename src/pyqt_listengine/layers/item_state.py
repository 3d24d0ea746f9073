"""Bounded cyclic item states over a Collection."""

import logging
from typing import Any, List, Optional

from ..core.collection import Collection
from ..core.exceptions import InvalidArgumentError
from ..core.listeners import ListenerSet
from ..protocols.engine_config import resolve
from ..protocols.event_sink import publish_event

logger = logging.getLogger(__name__)


class ItemStateLayer:
    """
    Tracks a state in ``range(number_of_states)`` per item.

    Shrinking the number of states does not rewrite stored states; reads clamp
    them to the new maximum. State changes of disabled items are rejected with
    the sentinel -1.

    Listener callbacks (all optional):
        on_item_state_changed(collection, data, index, state)
    """

    def __init__(self,
                 collection: Collection,
                 number_of_states: Optional[int] = None,
                 trigger_state_on_click: Optional[bool] = None):
        """
        Initialize item state layer.

        Args:
            collection: Collection whose items carry the states
            number_of_states: Number of states, at least 1 (default from EngineConfig)
            trigger_state_on_click: Click policy consumed by adapters (default from EngineConfig)
        """
        self._collection = collection
        self._listeners = ListenerSet()
        self._number_of_states = 1
        self.set_number_of_states(resolve(number_of_states, "number_of_states"))
        self.trigger_state_on_click = resolve(trigger_state_on_click, "trigger_state_on_click")

    @property
    def collection(self) -> Collection:
        return self._collection

    def add_listener(self, listener: Any) -> bool:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._listeners.remove(listener)

    def get_number_of_states(self) -> int:
        return self._number_of_states

    def set_number_of_states(self, number_of_states: int) -> None:
        if number_of_states < 1:
            raise InvalidArgumentError(f"The number of states must be at least 1, got {number_of_states}")
        self._number_of_states = number_of_states
        logger.debug(f"Set number of states to {number_of_states}")

    def min_state(self) -> int:
        return 0

    def max_state(self) -> int:
        return self._number_of_states - 1

    def check_state(self, state: int) -> None:
        """Raise InvalidArgumentError if ``state`` is not between 0 and the maximum state."""
        if state < 0 or state >= self._number_of_states:
            raise InvalidArgumentError(
                f"State {state} out of range, must be between 0 and {self.max_state()}"
            )

    def get_state(self, index: int) -> int:
        return min(self._collection.item_at(index).state, self.max_state())

    def set_state(self, index: int, state: int) -> int:
        """
        Set the state of the item at ``index``.

        Returns:
            The previous state, or -1 if the item is disabled

        Raises:
            InvalidArgumentError: If ``state`` is out of range
        """
        item = self._collection.item_at(index)
        self.check_state(state)

        if not item.enabled:
            logger.debug(f"State of item at index {index} not changed, because it is disabled")
            publish_event("item_state_ignored", self, index=index, state=state)
            return -1

        previous = self.get_state(index)
        if previous == state and item.state == state:
            return previous

        with self._collection.batch():
            item.state = state
            logger.info(f"Changed state of item {item.data!r} at index {index} to {state}")
            publish_event("item_state_changed", self, index=index, state=state)
            self._listeners.notify("on_item_state_changed", self._collection, item.data, index, state)
            self._collection.notify_data_set_changed()
        return previous

    def trigger_state(self, index: int) -> int:
        """
        Advance the state of the item at ``index``, wrapping to 0 past the maximum.

        Returns:
            The previous state, or -1 if the item is disabled
        """
        current = self.get_state(index)
        following = 0 if current >= self.max_state() else current + 1
        return self.set_state(index, following)

    def set_all_states(self, state: int) -> bool:
        """
        Set the state of every item.

        Returns:
            True if no item was skipped for being disabled
        """
        self.check_state(state)
        result = True
        with self._collection.batch():
            for index in range(self._collection.size()):
                if self.set_state(index, state) == -1:
                    result = False
        return result

    def trigger_all(self) -> bool:
        """Advance every item's state. Returns True if no item was skipped."""
        result = True
        with self._collection.batch():
            for index in range(self._collection.size()):
                if self.trigger_state(index) == -1:
                    result = False
        return result

    # ---- queries ----

    def indices_with_state(self, state: int) -> List[int]:
        return [index for index in range(self._collection.size()) if self.get_state(index) == state]

    def items_with_state(self, state: int) -> List[Any]:
        return [self._collection.at(index) for index in self.indices_with_state(state)]

    def state_count(self, state: int) -> int:
        return len(self.indices_with_state(state))

    def first_index_with_state(self, state: int) -> int:
        indices = self.indices_with_state(state)
        return indices[0] if indices else -1

    def last_index_with_state(self, state: int) -> int:
        indices = self.indices_with_state(state)
        return indices[-1] if indices else -1

    def first_item_with_state(self, state: int) -> Optional[Any]:
        index = self.first_index_with_state(state)
        return None if index == -1 else self._collection.at(index)

    def last_item_with_state(self, state: int) -> Optional[Any]:
        index = self.last_index_with_state(state)
        return None if index == -1 else self._collection.at(index)

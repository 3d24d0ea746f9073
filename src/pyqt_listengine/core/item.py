"""State wrapper around one piece of caller data."""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import FilteringUnsupportedError, InvalidArgumentError

T = TypeVar('T')

# matcher(data, query, flags) -> bool
Matcher = Callable[[Any, str, int], bool]


@dataclass(eq=False)
class Item(Generic[T]):
    """
    One entry of a Collection.

    The flags are owned by the item but only mutated through the layers, which
    enforce the cross-item rules (single choice, disabled items, state range).

    Attributes:
        data: The wrapped caller data, never None
        enabled: Whether the item is enabled
        state: Raw state counter, clamped by the ItemStateLayer on read
        selected: Whether the item is selected
    """

    data: T
    enabled: bool = True
    state: int = 0
    selected: bool = False

    def __post_init__(self):
        if self.data is None:
            raise InvalidArgumentError("Item data may not be None")

    def match(self, query: str, flags: int, matcher: Optional[Matcher] = None) -> bool:
        """
        Check whether the item passes a filter.

        Args:
            query: Filter query
            flags: Filter flags
            matcher: Optional predicate used instead of the data's own ``match`` method

        Returns:
            True if the item matches

        Raises:
            FilteringUnsupportedError: If no matcher is given and the data has no ``match`` method
        """
        if matcher is not None:
            return bool(matcher(self.data, query, flags))

        match = getattr(self.data, "match", None)
        if not callable(match):
            raise FilteringUnsupportedError(
                f"{type(self.data).__name__} does not implement match(query, flags) "
                f"and no matcher was supplied"
            )
        return bool(match(query, flags))

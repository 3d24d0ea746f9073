"""Group item owning a child list."""

from dataclasses import dataclass
from typing import Any, Optional

from .item import Item, Matcher

# Reserved flags of the synthetic filter hiding groups without visible children
FLAG_FILTER_EMPTY_GROUPS = 281281382


@dataclass(eq=False)
class Group(Item):
    """
    Item of a hierarchical list.

    The group's own enabled/state/selected flags are the inherited Item fields.
    ``children`` is the child ListAdapter exclusively owned by this group.
    """

    children: Any = None
    expanded: bool = False

    def match(self, query: str, flags: int, matcher: Optional[Matcher] = None) -> bool:
        if flags == FLAG_FILTER_EMPTY_GROUPS:
            return self.children is not None and self.children.filtering.visible_count() > 0
        return super().match(query, flags, matcher)

"""Cumulative "load more" pagination over filtered events."""
from dataclasses import dataclass, field, replace
from typing import List, Sequence

from processor.models import Event, PaginationState


def visible_slice(filtered: Sequence[Event], page: int, page_size: int) -> List[Event]:
    """Return the first page * page_size events."""
    return list(filtered[0:page * page_size])


def has_more(filtered: Sequence[Event], page: int, page_size: int) -> bool:
    return page * page_size < len(filtered)


def advance(filtered: Sequence[Event], state: PaginationState) -> PaginationState:
    """Reveal one more page, or return the state unchanged when none is left."""
    if not has_more(filtered, state.current_page, state.page_size):
        return state
    return replace(state, current_page=state.current_page + 1)


@dataclass(frozen=True)
class PaginatedView:
    """Immutable view of filtered events at a pagination state."""
    filtered: Sequence[Event]
    state: PaginationState = field(default_factory=PaginationState)

    @property
    def visible(self) -> List[Event]:
        return visible_slice(self.filtered, self.state.current_page, self.state.page_size)

    @property
    def has_more(self) -> bool:
        return has_more(self.filtered, self.state.current_page, self.state.page_size)

    @property
    def total(self) -> int:
        return len(self.filtered)

    @property
    def is_empty(self) -> bool:
        return not self.filtered

    def advance(self) -> 'PaginatedView':
        return replace(self, state=advance(self.filtered, self.state))

"""Browsing of active events with filters and "load more" pagination."""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from errors import EventNotFoundError, ValidationError
from processor.event_filter import EventFilterEngine
from processor.formatting import event_card
from processor.models import Event, FilterState, PaginationState
from processor.pagination import PaginatedView
from storage.event_store import EventStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrowseState:
    """Filter and pagination state for one browsing session."""
    filters: FilterState = field(default_factory=FilterState)
    pagination: PaginationState = field(default_factory=PaginationState)


@dataclass
class BrowsePage:
    """The visible slice of filtered events."""
    events: List[Event]
    page: int
    has_more: bool
    total: int

    @property
    def empty(self) -> bool:
        return self.total == 0

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        return {
            'events': [event_card(event, now) for event in self.events],
            'page': self.page,
            'has_more': self.has_more,
            'total': self.total,
            'empty': self.empty,
        }


class EventBrowser:
    """Loads active events and derives pages from explicit browse state."""

    def __init__(
        self,
        store: EventStore,
        engine: Optional[EventFilterEngine] = None,
        query_limit: int = 100,
        page_size: int = 20
    ):
        self.store = store
        self.engine = engine or EventFilterEngine()
        self.query_limit = query_limit
        self.page_size = page_size

    def initial_state(self) -> BrowseState:
        return BrowseState(pagination=PaginationState(page_size=self.page_size))

    def load_events(self) -> List[Event]:
        """Fetch active events from the store, ordered by date."""
        events = self.store.query_active_events(limit=self.query_limit)
        logger.info(f"Loaded {len(events)} events")
        return events

    def get_event(self, event_id: str) -> Event:
        event = self.store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event not found: {event_id}")
        return event

    def set_filter(self, state: BrowseState, key: str, value: Optional[str]) -> BrowseState:
        """Change one filter; pagination restarts at page 1."""
        return BrowseState(
            filters=state.filters.with_value(key, value),
            pagination=state.pagination.reset()
        )

    def clear_filters(self, state: BrowseState) -> BrowseState:
        return BrowseState(
            filters=state.filters.cleared(),
            pagination=state.pagination.reset()
        )

    def load_more(self, events: Sequence[Event], state: BrowseState, now: Optional[datetime] = None) -> BrowseState:
        """Advance to the next cumulative page when more events remain."""
        filtered = self.engine.apply(events, state.filters, now)
        view = PaginatedView(filtered, state.pagination).advance()
        return replace(state, pagination=view.state)

    def page(self, events: Sequence[Event], state: BrowseState, now: Optional[datetime] = None) -> BrowsePage:
        """Apply the state's filters and return its visible slice."""
        filtered = self.engine.apply(events, state.filters, now)
        view = PaginatedView(filtered, state.pagination)
        return BrowsePage(
            events=view.visible,
            page=view.state.current_page,
            has_more=view.has_more,
            total=view.total
        )

    def state_from_params(self, params: Optional[Dict[str, str]]) -> BrowseState:
        """
        Build browse state from request query parameters.

        Args:
            params: date, category, school, search and page values

        Raises:
            ValidationError: If page is not a positive integer
        """
        params = params or {}
        state = self.initial_state()
        for key in FilterState.KEYS:
            if key in params:
                state = self.set_filter(state, key, params[key])

        raw_page = params.get('page', '1')
        try:
            page = int(raw_page)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid page: {raw_page}")
        if page < 1:
            raise ValidationError(f"Invalid page: {raw_page}")

        return replace(state, pagination=replace(state.pagination, current_page=page))

"""Filtering of in-memory event collections."""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from processor.date_normalizer import DateNormalizer, midnight
from processor.models import (
    Event, FilterResult, FilterState, PaginationState, WILDCARD
)

logger = logging.getLogger(__name__)

DATE_RANGES = {
    'today': lambda start: start + timedelta(days=1),
    'week': lambda start: start + timedelta(days=7),
    'month': lambda start: start + relativedelta(months=1),
}


def _is_wildcard(value: Optional[str]) -> bool:
    return not value or value == WILDCARD


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


class EventFilterEngine:
    """Applies date, category, school and search predicates to events."""

    SEARCH_FIELDS = ('name', 'description', 'short_description', 'location', 'school')

    def __init__(self, date_normalizer: Optional[DateNormalizer] = None):
        self.date_normalizer = date_normalizer or DateNormalizer()

    def apply(
        self,
        events: Sequence[Event],
        filters: FilterState,
        now: Optional[datetime] = None
    ) -> List[Event]:
        """
        Filter events, preserving their original order.

        Args:
            events: Events to filter; not modified
            filters: Active filter values, combined with AND
            now: Reference time for date ranges (default: current time)

        Returns:
            New list holding the events that satisfy every active predicate
        """
        predicates = self._build_predicates(filters, now or datetime.now())
        filtered = [
            event for event in events
            if all(predicate(event) for predicate in predicates)
        ]
        logger.debug(f"Filtered {len(filtered)} events out of {len(events)}")
        return filtered

    def apply_and_reset(
        self,
        events: Sequence[Event],
        filters: FilterState,
        pagination: PaginationState,
        now: Optional[datetime] = None
    ) -> FilterResult:
        """Apply filters and return the pagination state reset to page 1."""
        return FilterResult(
            events=self.apply(events, filters, now),
            pagination=pagination.reset()
        )

    def _build_predicates(self, filters: FilterState, now: datetime) -> List[Callable[[Event], bool]]:
        predicates = []

        if not _is_wildcard(filters.date):
            predicates.append(self._date_predicate(filters.date, now))

        if not _is_wildcard(filters.category):
            category = filters.category.lower()
            predicates.append(
                lambda event: any(_contains(cat, category) for cat in (event.category or []))
            )

        if not _is_wildcard(filters.school):
            school = filters.school.lower()
            predicates.append(lambda event: _contains(event.school, school))

        term = (filters.search or '').strip().lower()
        if term:
            predicates.append(
                lambda event: any(
                    _contains(getattr(event, name), term) for name in self.SEARCH_FIELDS
                )
            )

        return predicates

    def _date_predicate(self, date_key: str, now: datetime) -> Callable[[Event], bool]:
        start = midnight(now)
        range_end = DATE_RANGES.get(date_key)
        end = range_end(start) if range_end else None

        def matches(event: Event) -> bool:
            event_date = self.date_normalizer.parse(event.date)
            # Undated events never satisfy a concrete date filter
            if event_date is None:
                return False
            if end is None:
                return True
            return start <= event_date < end

        return matches

"""Date parsing and relative-date helpers."""
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil import parser as dateparser

from processor.models import DATE_TBD

logger = logging.getLogger(__name__)


class DateNormalizer:
    """Parses heterogeneous date strings into naive datetimes."""

    def parse(self, raw: Union[str, date, datetime, None]) -> Optional[datetime]:
        """
        Parse a date string.

        Args:
            raw: Date string in any common format, or a date/datetime

        Returns:
            Naive datetime, or None if the value cannot be parsed
        """
        if raw is None:
            return None
        if isinstance(raw, datetime):
            return self._to_naive(raw)
        if isinstance(raw, date):
            return datetime(raw.year, raw.month, raw.day)
        if not isinstance(raw, str) or not raw.strip():
            return None

        try:
            parsed = dateparser.parse(raw.strip())
        except (ValueError, OverflowError, TypeError) as e:
            logger.debug(f"Unparseable date '{raw}': {e}")
            return None

        return self._to_naive(parsed)

    def _to_naive(self, value: datetime) -> datetime:
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def days_until(self, instant: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
        """Whole calendar days from today to the instant (today = 0)."""
        if instant is None:
            return None
        today = (now or datetime.now()).date()
        return (instant.date() - today).days

    def is_future(self, instant: Optional[datetime], now: Optional[datetime] = None) -> bool:
        if instant is None:
            return False
        return instant > (now or datetime.now())

    def relative_label(self, days: Optional[int]) -> str:
        """
        Human label for a day offset.

        Args:
            days: Result of days_until, or None for an undated event

        Returns:
            Label such as "Today", "In 3 days" or "Past event"
        """
        if days is None:
            return DATE_TBD
        if days < 0:
            return 'Past event'
        if days == 0:
            return 'Today'
        if days == 1:
            return 'Tomorrow'
        if days <= 7:
            return f"In {days} days"
        if days <= 30:
            return f"In {days // 7} weeks"
        return f"In {days // 30} months"

    def relative_time_string(self, instant: Optional[datetime], now: Optional[datetime] = None) -> str:
        return self.relative_label(self.days_until(instant, now))


def midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)

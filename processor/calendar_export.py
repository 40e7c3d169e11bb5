"""iCalendar (.ics) export for single events."""
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

from ics import Calendar, Event as IcsEvent
from ics.grammar.parse import ContentLine

from processor.formatting import sanitize_filename
from processor.models import Event

DEFAULT_DURATION = timedelta(hours=2)
PRODID = '-//UMich Events//EN'
UID_DOMAIN = 'umich-events.com'
MAX_LINE_OCTETS = 75


def fold_line(line: str) -> Iterator[str]:
    """Split a content line into chunks of at most 75 octets; continuations start with a space."""
    chunk, size, limit = '', 0, MAX_LINE_OCTETS
    for char in line:
        width = len(char.encode('utf-8'))
        if size + width > limit:
            yield chunk
            chunk, size, limit = ' ', 1, MAX_LINE_OCTETS
        chunk += char
        size += width
    yield chunk


def _to_ics_event(event: Event, stamp: datetime, duration: timedelta) -> IcsEvent:
    start = event.date or stamp

    ics_event = IcsEvent()
    ics_event.uid = f'{event.id or "event"}@{UID_DOMAIN}'
    ics_event.name = event.name
    ics_event.begin = start
    ics_event.end = start + duration
    ics_event.created = stamp
    ics_event.description = event.description or event.short_description or None
    ics_event.location = event.location or None
    ics_event.url = event.registration_link or event.source_url or None
    ics_event.status = 'CONFIRMED'
    ics_event.extra.append(ContentLine(name='SEQUENCE', value='0'))
    return ics_event


def generate_ics(
    event: Event,
    duration: Optional[timedelta] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Build a VCALENDAR document holding one event.

    Args:
        event: Event to export; undated events start at the current time
        duration: Event length (default: 2 hours)
        now: Timestamp for DTSTAMP (default: current UTC time)

    Returns:
        ICS file content with CRLF line endings and lines folded at 75 octets
    """
    stamp = now or datetime.now(timezone.utc).replace(tzinfo=None)

    calendar = Calendar(creator=PRODID)
    calendar.extra.append(ContentLine(name='CALSCALE', value='GREGORIAN'))
    calendar.extra.append(ContentLine(name='METHOD', value='PUBLISH'))
    calendar.events.add(_to_ics_event(event, stamp, duration or DEFAULT_DURATION))

    lines = ''.join(calendar.serialize_iter()).splitlines()
    folded = [part for line in lines if line for part in fold_line(line)]
    return '\r\n'.join(folded) + '\r\n'


def ics_filename(event: Event) -> str:
    return f"{sanitize_filename(event.name)}.ics"

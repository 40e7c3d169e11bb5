"""Display helpers for event listings."""
import re
from datetime import datetime
from typing import Optional

from processor.date_normalizer import DateNormalizer
from processor.models import DATE_TBD, Event, LOCATION_TBD, TIME_TBD

CARD_CATEGORY_LIMIT = 3
CARD_DESCRIPTION_LENGTH = 150
DEFAULT_SCHOOL = 'UMich'
NO_DESCRIPTION = 'No description available.'

CATEGORY_EMOJI = {
    'career': '💼',
    'academic': '📚',
    'networking': '🤝',
    'social': '🎉',
    'cultural': '🎭',
    'entrepreneurship': '🚀',
    'startup': '🚀',
    'sustainability': '🌱',
    'sports': '⚽',
    'health': '🏥',
    'tech': '💻',
    'technology': '💻',
    'arts': '🎨',
    'diversity': '🌈',
    'research': '🔬',
    'finance': '💰',
    'consulting': '💼',
    'leadership': '👔',
}
DEFAULT_EMOJI = '📅'

_date_normalizer = DateNormalizer()


def format_date(date: Optional[datetime]) -> str:
    """Format as e.g. "Monday, January 15, 2025"."""
    if date is None:
        return DATE_TBD
    return f"{date:%A}, {date:%B} {date.day}, {date.year}"


def format_short_date(date: Optional[datetime]) -> str:
    """Format as e.g. "Mon, Jan 15"."""
    if date is None:
        return DATE_TBD
    return f"{date:%a}, {date:%b} {date.day}"


def format_time(time: Optional[str]) -> str:
    return time or TIME_TBD


def truncate_text(text: Optional[str], max_length: int) -> str:
    if not text:
        return ''
    if len(text) <= max_length:
        return text
    return text[:max_length] + '...'


def category_emoji(category: str) -> str:
    return CATEGORY_EMOJI.get((category or '').lower(), DEFAULT_EMOJI)


def sanitize_filename(filename: str) -> str:
    """Replace non-alphanumerics with dashes, capped at 50 characters."""
    dashed = re.sub(r'[^a-z0-9]', '-', filename or '', flags=re.IGNORECASE)
    return re.sub(r'-+', '-', dashed)[:50]


def event_card(event: Event, now: Optional[datetime] = None) -> dict:
    """
    Build the JSON-ready summary shown in event listings.

    Args:
        event: Event to summarize
        now: Reference time for the relative date label

    Returns:
        Dictionary of display fields
    """
    description = event.short_description or event.description or NO_DESCRIPTION
    categories = list(event.category or [])[:CARD_CATEGORY_LIMIT]

    return {
        'id': event.id,
        'name': event.name,
        'date': event.date.isoformat() if event.date else None,
        'date_display': format_short_date(event.date),
        'relative': _date_normalizer.relative_time_string(event.date, now),
        'time': format_time(event.time),
        'location': event.location or LOCATION_TBD,
        'location_type': event.location_type,
        'categories': categories,
        'category_emoji': category_emoji(categories[0]) if categories else DEFAULT_EMOJI,
        'school': event.school or DEFAULT_SCHOOL,
        'description': truncate_text(description, CARD_DESCRIPTION_LENGTH),
        'image_url': event.image_url or None,
    }


def event_details(event: Event, now: Optional[datetime] = None) -> dict:
    """Card fields plus the full description and links."""
    details = event_card(event, now)
    details.update({
        'date_display': format_date(event.date),
        'description': event.description or event.short_description or NO_DESCRIPTION,
        'tags': list(event.tags or []),
        'organization': event.organization,
        'registration_link': event.registration_link or None,
        'source_url': event.source_url or None,
    })
    return details

"""Data models for event ingestion, browsing and profiles."""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

DATE_TBD = 'Date TBD'
TIME_TBD = 'Time TBD'
LOCATION_TBD = 'Location TBD'
DEFAULT_CATEGORY = 'general'
WILDCARD = 'all'
DEFAULT_PAGE_SIZE = 20


@dataclass
class RawScrapedEvent:
    """Raw event fields as pulled from a listing page."""
    name: str = ''
    description: str = ''
    date: str = ''
    time: str = ''
    location: str = ''
    registration_link: str = ''
    image_url: str = ''


@dataclass
class SourceConfig:
    """Where and how to scrape one event source."""
    source_id: str
    name: str
    url: str
    school: str = ''
    item_selector: str = '.event-item'
    title_selector: str = '.event-title'
    description_selector: str = '.event-description'
    date_selector: str = '.event-date'
    time_selector: str = '.event-time'
    location_selector: str = '.event-location'
    link_selector: str = '.event-link'
    image_selector: str = '.event-image'


@dataclass
class Event:
    """Canonical event record."""
    id: str
    name: str
    date: Optional[datetime] = None
    time: str = TIME_TBD
    location: str = LOCATION_TBD
    location_type: str = 'physical'
    category: List[str] = field(default_factory=lambda: [DEFAULT_CATEGORY])
    tags: List[str] = field(default_factory=list)
    school: str = ''
    description: str = ''
    short_description: str = ''
    organization: str = ''
    source_id: str = ''
    source_url: str = ''
    registration_link: str = ''
    image_url: str = ''
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Classification:
    """Categories and tags detected in free text."""
    categories: frozenset
    tags: frozenset


@dataclass
class NormalizationOutcome:
    """Result of normalizing one raw record: an event or a rejection reason."""
    event: Optional[Event] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.event is not None


@dataclass
class IngestionReport:
    """Result of normalizing a batch of raw records."""
    events: List[Event]
    rejected: List[str]
    total: int


@dataclass
class ScrapeResult:
    """Summary of one scrape run against a source."""
    success: bool
    source_id: str
    total: int = 0
    valid: int = 0
    events: List[Event] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class FilterState:
    """Browse filters; each key is a wildcard or a concrete match value."""
    date: str = WILDCARD
    category: str = WILDCARD
    school: str = WILDCARD
    search: str = ''

    KEYS = ('date', 'category', 'school', 'search')

    def with_value(self, key: str, value: Optional[str]) -> 'FilterState':
        """Return a copy with one filter key changed."""
        if key not in self.KEYS:
            raise ValueError(f"Unknown filter key: {key}")
        if key == 'search':
            return replace(self, search=(value or '').strip().lower())
        return replace(self, **{key: (value or WILDCARD).strip() or WILDCARD})

    def cleared(self) -> 'FilterState':
        return FilterState()

    @property
    def is_wildcard(self) -> bool:
        return self == FilterState()


@dataclass(frozen=True)
class PaginationState:
    """Cumulative pagination: page N reveals the first N * page_size items."""
    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 1

    def reset(self) -> 'PaginationState':
        return replace(self, current_page=1)


@dataclass
class FilterResult:
    """Filtered events paired with the pagination state they reset."""
    events: List[Event]
    pagination: PaginationState


@dataclass
class SyncResult:
    """Result of sync operation."""
    added: int
    updated: int
    deleted: int
    errors: list[str]


@dataclass
class EmailPreferences:
    digest_frequency: str = 'weekly'
    event_alerts: bool = True
    reminder_before: int = 24


@dataclass
class UserProfile:
    """User document keyed by identity uid."""
    uid: str
    email: str
    first_name: str = ''
    last_name: str = ''
    photo_url: str = ''
    school: str = ''
    year: str = ''
    program: str = ''
    interests: List[str] = field(default_factory=list)
    career_goals: List[str] = field(default_factory=list)
    saved_events: List[str] = field(default_factory=list)
    viewed_events: List[str] = field(default_factory=list)
    email_preferences: EmailPreferences = field(default_factory=EmailPreferences)
    created_at: Optional[str] = None
    last_login: Optional[str] = None
    updated_at: Optional[str] = None
    is_active: bool = True

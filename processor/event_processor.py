"""Normalizes raw scraped events into canonical event records."""
import hashlib
import logging
import re
from datetime import datetime
from typing import List, Optional

from processor.date_normalizer import DateNormalizer
from processor.models import (
    Event, IngestionReport, LOCATION_TBD, NormalizationOutcome,
    RawScrapedEvent, SourceConfig, TIME_TBD
)
from processor.text_classifier import TextClassifier

logger = logging.getLogger(__name__)

VIRTUAL_KEYWORDS = ('zoom', 'virtual', 'online', 'webinar', 'teams')
HYBRID_KEYWORDS = ('hybrid',)

_SPACES = re.compile(r'\s+')
_NEWLINES = re.compile(r'\n+')


def clean_text(text: Optional[str]) -> str:
    """Trim and collapse whitespace runs to a single space."""
    if not text:
        return ''
    cleaned = _SPACES.sub(' ', text.strip())
    return _NEWLINES.sub('\n', cleaned)


def detect_location_type(location: Optional[str]) -> str:
    """Classify a location as physical, virtual or hybrid."""
    if not location:
        return 'physical'

    lowered = location.lower()
    if any(keyword in lowered for keyword in VIRTUAL_KEYWORDS):
        return 'virtual'
    if any(keyword in lowered for keyword in HYBRID_KEYWORDS):
        return 'hybrid'
    return 'physical'


class IngestionNormalizer:
    """Validates raw scraped events and maps them to the canonical schema."""

    SHORT_DESCRIPTION_LENGTH = 200

    def __init__(
        self,
        classifier: Optional[TextClassifier] = None,
        date_normalizer: Optional[DateNormalizer] = None
    ):
        self.classifier = classifier or TextClassifier()
        self.date_normalizer = date_normalizer or DateNormalizer()

    def process_events(
        self,
        raw_events: List[RawScrapedEvent],
        source: SourceConfig,
        now: Optional[datetime] = None
    ) -> IngestionReport:
        """
        Normalize a batch of raw events.

        One bad record never aborts the batch: rejections and unexpected
        errors are logged and collected as reasons.

        Args:
            raw_events: Raw events from a scraper
            source: Configuration of the source they came from
            now: Ingestion time (default: current time)

        Returns:
            IngestionReport with accepted events and rejection reasons
        """
        events = []
        rejected = []
        ingested_at = now or datetime.now()

        for raw in raw_events:
            try:
                outcome = self.normalize(raw, source, now=ingested_at)
            except Exception as e:
                logger.warning(f"Failed to process event '{raw.name}': {e}")
                rejected.append(f"{raw.name or '<unnamed>'}: {e}")
                continue

            if outcome.accepted:
                events.append(outcome.event)
            else:
                rejected.append(outcome.reason)

        logger.info(
            f"[{source.source_id}] Processed {len(events)} valid events out of "
            f"{len(raw_events)} total events"
        )
        return IngestionReport(events=events, rejected=rejected, total=len(raw_events))

    def normalize(
        self,
        raw: RawScrapedEvent,
        source: SourceConfig,
        now: Optional[datetime] = None
    ) -> NormalizationOutcome:
        """
        Normalize a single raw event.

        Args:
            raw: Raw scraped fields
            source: Source configuration supplying school and provenance
            now: Ingestion time used for the active flag

        Returns:
            NormalizationOutcome holding the event or the rejection reason
        """
        name = clean_text(raw.name)
        if not name:
            return self._reject('missing name')

        parsed_date = self.date_normalizer.parse(raw.date)
        if parsed_date is None:
            return self._reject(f"invalid date - {raw.date}")

        ingested_at = now or datetime.now()
        description = clean_text(raw.description)
        classification = self.classifier.classify_event(raw.name, raw.description)

        event = Event(
            id=self.generate_event_id(name, parsed_date, source.source_id),
            name=name,
            date=parsed_date,
            time=clean_text(raw.time) or TIME_TBD,
            location=clean_text(raw.location) or LOCATION_TBD,
            location_type=detect_location_type(raw.location),
            category=self.classifier.ordered_categories(classification.categories),
            tags=sorted(classification.tags),
            school=source.school,
            description=description,
            short_description=description[:self.SHORT_DESCRIPTION_LENGTH],
            organization=source.name,
            source_id=source.source_id,
            source_url=source.url,
            registration_link=raw.registration_link or '',
            image_url=raw.image_url or '',
            is_active=parsed_date > ingested_at,
            created_at=ingested_at,
            updated_at=ingested_at
        )
        return NormalizationOutcome(event=event)

    def _reject(self, reason: str) -> NormalizationOutcome:
        logger.info(f"Skipping event: {reason}")
        return NormalizationOutcome(reason=reason)

    def generate_event_id(self, name: str, date: datetime, source_id: str) -> str:
        """
        Generate a stable identifier from name, date and source.

        Returns:
            SHA256 hex digest of "name|date|source_id"
        """
        composite = f"{name}|{date.isoformat()}|{source_id}"
        return hashlib.sha256(composite.encode('utf-8')).hexdigest()

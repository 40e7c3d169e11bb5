"""Unit tests for IngestionNormalizer."""
from datetime import datetime, timedelta

import pytest

from processor.event_processor import IngestionNormalizer, clean_text, detect_location_type
from processor.models import RawScrapedEvent, SourceConfig

NOW = datetime(2025, 1, 10, 12, 0)


@pytest.fixture
def source():
    return SourceConfig(
        source_id='ross-events',
        name='Ross Career Events',
        url='https://example.umich.edu/events',
        school='Ross School of Business'
    )


def raw_event(**overrides):
    fields = {
        'name': 'Consulting Career Fair',
        'description': 'Meet employers hiring for internships.',
        'date': 'January 15, 2025 4:00 PM',
        'time': '4:00 PM - 6:00 PM',
        'location': 'Ross Building, Room 1230',
        'registration_link': 'https://example.umich.edu/events/1',
        'image_url': ''
    }
    fields.update(overrides)
    return RawScrapedEvent(**fields)


class TestIngestionNormalizer:
    """Test cases for IngestionNormalizer class."""

    def test_normalize_valid_event(self, source):
        """Test normalizing a well-formed raw event."""
        normalizer = IngestionNormalizer()

        outcome = normalizer.normalize(raw_event(), source, now=NOW)

        assert outcome.accepted
        event = outcome.event
        assert event.name == 'Consulting Career Fair'
        assert event.date == datetime(2025, 1, 15, 16, 0)
        assert event.time == '4:00 PM - 6:00 PM'
        assert event.location == 'Ross Building, Room 1230'
        assert event.location_type == 'physical'
        assert event.category == ['career']
        assert 'consulting' in event.tags
        assert event.school == 'Ross School of Business'
        assert event.organization == 'Ross Career Events'
        assert event.source_id == 'ross-events'
        assert event.source_url == 'https://example.umich.edu/events'
        assert event.is_active is True
        assert event.created_at == NOW
        assert len(event.id) == 64

    def test_rejects_empty_name(self, source):
        outcome = IngestionNormalizer().normalize(raw_event(name=''), source, now=NOW)

        assert not outcome.accepted
        assert outcome.reason == 'missing name'

    def test_rejects_whitespace_name(self, source):
        outcome = IngestionNormalizer().normalize(raw_event(name='  \n '), source, now=NOW)

        assert not outcome.accepted

    def test_rejects_unparseable_date(self, source):
        outcome = IngestionNormalizer().normalize(raw_event(date='not a date'), source, now=NOW)

        assert not outcome.accepted
        assert 'invalid date' in outcome.reason

    def test_tomorrow_is_active(self, source):
        """Test that an event dated tomorrow is active and categorized."""
        tomorrow = (datetime.now() + timedelta(days=1)).strftime('%Y-%m-%d')

        outcome = IngestionNormalizer().normalize(
            raw_event(name='Quiet Hour', description='', date=tomorrow), source
        )

        assert outcome.accepted
        assert outcome.event.is_active is True
        assert outcome.event.category == ['general']

    def test_past_event_is_inactive(self, source):
        outcome = IngestionNormalizer().normalize(raw_event(date='2025-01-05'), source, now=NOW)

        assert outcome.accepted
        assert outcome.event.is_active is False

    def test_defaults_for_missing_time_and_location(self, source):
        outcome = IngestionNormalizer().normalize(
            raw_event(time='', location=''), source, now=NOW
        )

        assert outcome.event.time == 'Time TBD'
        assert outcome.event.location == 'Location TBD'
        assert outcome.event.location_type == 'physical'

    def test_short_description_truncated(self, source):
        outcome = IngestionNormalizer().normalize(
            raw_event(description='word ' * 100), source, now=NOW
        )

        assert len(outcome.event.short_description) == 200
        assert outcome.event.description.startswith(outcome.event.short_description)

    def test_text_is_cleaned(self, source):
        outcome = IngestionNormalizer().normalize(
            raw_event(name='  Career   Fair \n\n 2025 ', description='Line one\n\n\nline   two'),
            source,
            now=NOW
        )

        assert outcome.event.name == 'Career Fair 2025'
        assert outcome.event.description == 'Line one line two'

    def test_generate_event_id_consistency(self):
        normalizer = IngestionNormalizer()
        date = datetime(2025, 1, 15, 16, 0)

        assert (
            normalizer.generate_event_id('Event', date, 'src')
            == normalizer.generate_event_id('Event', date, 'src')
        )

    def test_generate_event_id_uniqueness(self):
        normalizer = IngestionNormalizer()
        date = datetime(2025, 1, 15, 16, 0)

        ids = {
            normalizer.generate_event_id('Event A', date, 'src'),
            normalizer.generate_event_id('Event B', date, 'src'),
            normalizer.generate_event_id('Event A', date + timedelta(days=1), 'src'),
            normalizer.generate_event_id('Event A', date, 'other'),
        }
        assert len(ids) == 4

    def test_process_events_multiple_valid_and_invalid(self, source):
        """Test that bad records are skipped without aborting the batch."""
        raws = [
            raw_event(name='Valid Event 1'),
            raw_event(name=''),
            raw_event(name='Bad Date', date='someday soon'),
            raw_event(name='Valid Event 2', date='2025-02-01'),
        ]

        report = IngestionNormalizer().process_events(raws, source, now=NOW)

        assert report.total == 4
        assert [e.name for e in report.events] == ['Valid Event 1', 'Valid Event 2']
        assert len(report.rejected) == 2

    def test_process_events_survives_unexpected_errors(self, source):
        class ExplodingClassifier:
            def classify_event(self, name, description):
                if name == 'Boom':
                    raise RuntimeError('classifier failure')
                return IngestionNormalizer().classifier.classify_event(name, description)

            def ordered_categories(self, categories):
                return sorted(categories)

        normalizer = IngestionNormalizer(classifier=ExplodingClassifier())
        report = normalizer.process_events(
            [raw_event(name='Boom'), raw_event(name='Fine')], source, now=NOW
        )

        assert [e.name for e in report.events] == ['Fine']
        assert 'classifier failure' in report.rejected[0]


class TestHelpers:
    """Test cases for text and location helpers."""

    @pytest.mark.parametrize('location,expected', [
        ('Zoom', 'virtual'),
        ('Online via Microsoft Teams', 'virtual'),
        ('Webinar', 'virtual'),
        ('Hybrid: Ross R1220 + stream', 'hybrid'),
        ('Michigan Union', 'physical'),
        ('', 'physical'),
        (None, 'physical'),
    ])
    def test_detect_location_type(self, location, expected):
        assert detect_location_type(location) == expected

    def test_clean_text(self):
        assert clean_text('  a \t b  ') == 'a b'
        assert clean_text(None) == ''

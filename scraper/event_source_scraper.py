"""Template scraper for campus event listing pages."""
import logging
import time
from datetime import datetime
from typing import List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from processor.event_processor import IngestionNormalizer
from processor.models import RawScrapedEvent, ScrapeResult, SourceConfig

logger = logging.getLogger(__name__)

USER_AGENT = 'UMichEventsBot/1.0 (UMich Event Aggregator; https://github.com/umich-events)'


class EventSourceScraper:
    """Scrapes one configured event source into canonical events."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(
        self,
        source: SourceConfig,
        timeout: int = 30,
        normalizer: Optional[IngestionNormalizer] = None
    ):
        """
        Initialize the scraper.

        Args:
            source: Source URL, school and CSS selectors
            timeout: HTTP request timeout in seconds (default: 30)
            normalizer: Normalizer for raw events (default: new instance)
        """
        self.source = source
        self.timeout = timeout
        self.normalizer = normalizer or IngestionNormalizer()

    def scrape(self, now: Optional[datetime] = None) -> ScrapeResult:
        """
        Fetch, parse and normalize events from the source.

        Fetch failures are reported in the result rather than raised.

        Returns:
            ScrapeResult with the valid events
        """
        source_id = self.source.source_id
        logger.info(f"[{source_id}] Starting scrape of {self.source.url}")

        try:
            raw_events = self.fetch_raw_events()
        except requests.RequestException as e:
            logger.error(f"[{source_id}] Error: {e}")
            return ScrapeResult(success=False, source_id=source_id, error=str(e))

        logger.info(f"[{source_id}] Found {len(raw_events)} raw events")
        report = self.normalizer.process_events(raw_events, self.source, now=now)

        return ScrapeResult(
            success=True,
            source_id=source_id,
            total=report.total,
            valid=len(report.events),
            events=report.events
        )

    def fetch_raw_events(self) -> List[RawScrapedEvent]:
        """
        Fetch the listing page and parse its raw events.

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        html_content = self._fetch_html()
        return self._parse_events(html_content)

    def _fetch_html(self) -> str:
        """
        Fetch the listing page HTML with exponential backoff.

        Returns:
            HTML content as string

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        headers = {'User-Agent': USER_AGENT}

        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"[{self.source.source_id}] Loading page "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.get(
                    self.source.url,
                    headers=headers,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.text

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise

    def _parse_events(self, html_content: str) -> List[RawScrapedEvent]:
        soup = BeautifulSoup(html_content, 'html.parser')
        events = []

        for element in soup.select(self.source.item_selector):
            try:
                events.append(self._parse_event_element(element))
            except Exception as e:
                logger.warning(f"Failed to parse event element: {e}")
                continue

        return events

    def _parse_event_element(self, element) -> RawScrapedEvent:
        """
        Extract raw fields from one listing element.

        Missing elements become empty strings; validation happens during
        normalization.
        """
        source = self.source
        link = element.select_one(source.link_selector)
        image = element.select_one(source.image_selector)

        return RawScrapedEvent(
            name=self._text(element, source.title_selector),
            description=self._text(element, source.description_selector),
            date=self._text(element, source.date_selector),
            time=self._text(element, source.time_selector),
            location=self._text(element, source.location_selector),
            registration_link=self._absolute(link, 'href'),
            image_url=self._absolute(image, 'src')
        )

    def _absolute(self, element, attribute: str) -> str:
        value = element.get(attribute) if element else None
        return urljoin(self.source.url, value) if value else ''

    def _text(self, element, selector: str) -> str:
        found = element.select_one(selector)
        return found.get_text(strip=True) if found else ''

"""DynamoDB storage for the events collection."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from processor.models import Event, SyncResult

logger = logging.getLogger(__name__)

ACTIVE_DATE_INDEX = 'active-date-index'


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class EventStore:
    """Manager for the events table."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit
    TTL_DAYS = 90

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the events table
            region_name: AWS region (default: from the environment)
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized EventStore for table: {table_name}")

    def query_active_events(self, limit: int = 100) -> List[Event]:
        """
        Fetch active events in ascending date order.

        Events without a date are not part of the date index and are
        never returned here.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of Event objects
        """
        logger.info(f"Querying up to {limit} active events")
        events = []
        kwargs = {
            'IndexName': ACTIVE_DATE_INDEX,
            'KeyConditionExpression': Key('is_active').eq(1),
            'ScanIndexForward': True,
            'Limit': limit,
        }

        try:
            while len(events) < limit:
                response = self.table.query(**kwargs)
                for item in response.get('Items', []):
                    event = self._item_to_event(item)
                    if event:
                        events.append(event)
                if 'LastEvaluatedKey' not in response:
                    break
                kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
                kwargs['Limit'] = limit - len(events)

        except ClientError as e:
            logger.error(f"Error querying active events: {e}")
            raise

        logger.info(f"Loaded {len(events)} events from DynamoDB")
        return events[:limit]

    def get_event(self, event_id: str) -> Optional[Event]:
        """Fetch one event by id, or None if it does not exist."""
        try:
            response = self.table.get_item(Key={'event_id': event_id})
        except ClientError as e:
            logger.error(f"Error loading event {event_id}: {e}")
            raise

        item = response.get('Item')
        return self._item_to_event(item) if item else None

    def get_events_by_source(self, source_id: str) -> Dict[str, Event]:
        """
        Retrieve all events from one source using a filtered Scan.

        Returns:
            Dictionary mapping event id to Event
        """
        logger.info(f"Scanning events table for source: {source_id}")
        events = {}
        scan_filter = Attr('source_id').eq(source_id)

        try:
            response = self.table.scan(FilterExpression=scan_filter)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=scan_filter,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            for item in items:
                event = self._item_to_event(item)
                if event:
                    events[event.id] = event

            logger.info(f"Retrieved {len(events)} events for source {source_id}")
            return events

        except ClientError as e:
            logger.error(f"Error scanning events table: {e}")
            raise

    def sync_events(self, new_events: List[Event], source_id: str) -> SyncResult:
        """
        Synchronize one source's events with DynamoDB.

        Compares freshly scraped events with the stored events of the same
        source, then performs additions, updates, and deletions as needed.
        Events from other sources are left untouched.

        Args:
            new_events: Current events from the source
            source_id: Source whose stored events are being replaced

        Returns:
            SyncResult with counts of added, updated, deleted events
        """
        logger.info(
            f"Starting sync for {source_id} with {len(new_events)} new events"
        )
        errors = []

        try:
            existing_events = self.get_events_by_source(source_id)
            new_events_dict = {event.id: event for event in new_events}

            events_to_add = [
                event for event_id, event in new_events_dict.items()
                if event_id not in existing_events
            ]

            events_to_update = [
                event for event_id, event in new_events_dict.items()
                if event_id in existing_events and
                self._events_differ(event, existing_events[event_id])
            ]

            event_ids_to_delete = [
                event_id for event_id in existing_events
                if event_id not in new_events_dict
            ]

            logger.info(
                f"Sync plan: {len(events_to_add)} to add, "
                f"{len(events_to_update)} to update, "
                f"{len(event_ids_to_delete)} to delete"
            )

            added_count = 0
            updated_count = 0
            deleted_count = 0

            if events_to_add or events_to_update:
                # Updates keep their original creation time
                for event in events_to_update:
                    event.created_at = existing_events[event.id].created_at or event.created_at
                write_count = self.batch_write_events(events_to_add + events_to_update)
                added_count = min(write_count, len(events_to_add))
                updated_count = write_count - added_count

            if event_ids_to_delete:
                deleted_count = self.batch_delete_events(event_ids_to_delete)

            logger.info(
                f"Sync complete: {added_count} added, {updated_count} updated, "
                f"{deleted_count} deleted"
            )

            return SyncResult(
                added=added_count,
                updated=updated_count,
                deleted=deleted_count,
                errors=errors
            )

        except ClientError as e:
            error_msg = f"Error during sync operation: {e}"
            logger.error(error_msg)
            errors.append(error_msg)
            return SyncResult(added=0, updated=0, deleted=0, errors=errors)

    def deactivate_past_events(self, now: Optional[datetime] = None) -> int:
        """
        Clear the active flag on events whose date has passed.

        Returns:
            Number of events deactivated
        """
        cutoff = (now or datetime.now()).isoformat()
        deactivated = 0

        try:
            kwargs = {
                'IndexName': ACTIVE_DATE_INDEX,
                'KeyConditionExpression': Key('is_active').eq(1) & Key('event_date').lt(cutoff),
            }
            while True:
                response = self.table.query(**kwargs)
                for item in response.get('Items', []):
                    self.table.update_item(
                        Key={'event_id': item['event_id']},
                        UpdateExpression='SET is_active = :inactive, updated_at = :now',
                        ExpressionAttributeValues={':inactive': 0, ':now': cutoff}
                    )
                    deactivated += 1
                if 'LastEvaluatedKey' not in response:
                    break
                kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']

        except ClientError as e:
            logger.error(f"Error deactivating past events: {e}")
            raise

        logger.info(f"Deactivated {deactivated} past events")
        return deactivated

    def batch_write_events(self, events: List[Event]) -> int:
        """
        Write events to DynamoDB in batches of 25 items.

        Args:
            events: Events to write

        Returns:
            Count of successfully written events
        """
        if not events:
            return 0

        logger.info(f"Writing {len(events)} events to DynamoDB")
        success_count = 0

        for i in range(0, len(events), self.BATCH_SIZE):
            batch = events[i:i + self.BATCH_SIZE]

            try:
                with self.table.batch_writer() as writer:
                    for event in batch:
                        writer.put_item(Item=self._event_to_item(event))
                success_count += len(batch)

            except ClientError as e:
                logger.error(
                    f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                continue

        logger.info(f"Successfully wrote {success_count} events")
        return success_count

    def batch_delete_events(self, event_ids: List[str]) -> int:
        """
        Delete events from DynamoDB in batches of 25 items.

        Args:
            event_ids: Ids of the events to delete

        Returns:
            Count of successfully deleted events
        """
        if not event_ids:
            return 0

        logger.info(f"Deleting {len(event_ids)} events from DynamoDB")
        success_count = 0

        for i in range(0, len(event_ids), self.BATCH_SIZE):
            batch = event_ids[i:i + self.BATCH_SIZE]

            try:
                with self.table.batch_writer() as writer:
                    for event_id in batch:
                        writer.delete_item(Key={'event_id': event_id})
                success_count += len(batch)

            except ClientError as e:
                logger.error(
                    f"Error deleting batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                continue

        logger.info(f"Successfully deleted {success_count} events")
        return success_count

    def _item_to_event(self, item: dict) -> Optional[Event]:
        """
        Convert a DynamoDB item to an Event.

        Returns:
            Event object or None if conversion fails
        """
        try:
            return Event(
                id=item['event_id'],
                name=item['name'],
                date=_parse_iso(item.get('event_date')),
                time=item.get('time', ''),
                location=item.get('location', ''),
                location_type=item.get('location_type', 'physical'),
                category=list(item.get('category', [])),
                tags=list(item.get('tags', [])),
                school=item.get('school', ''),
                description=item.get('description', ''),
                short_description=item.get('short_description', ''),
                organization=item.get('organization', ''),
                source_id=item.get('source_id', ''),
                source_url=item.get('source_url', ''),
                registration_link=item.get('registration_link', ''),
                image_url=item.get('image_url', ''),
                is_active=bool(item.get('is_active', 0)),
                created_at=_parse_iso(item.get('created_at')),
                updated_at=_parse_iso(item.get('updated_at'))
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to convert item to Event: {e}")
            return None

    def _event_to_item(self, event: Event) -> dict:
        item = {
            'event_id': event.id,
            'name': event.name,
            'time': event.time,
            'location': event.location,
            'location_type': event.location_type,
            'category': list(event.category),
            'tags': list(event.tags),
            'school': event.school,
            'description': event.description,
            'short_description': event.short_description,
            'organization': event.organization,
            'source_id': event.source_id,
            'source_url': event.source_url,
            'registration_link': event.registration_link,
            'image_url': event.image_url,
            'is_active': 1 if event.is_active else 0,
            'updated_at': _iso(event.updated_at or datetime.now()),
        }

        # Index key attributes must be absent rather than empty
        if event.date:
            item['event_date'] = event.date.isoformat()
            item['ttl'] = self._calculate_ttl(event.date)
        if event.created_at:
            item['created_at'] = event.created_at.isoformat()

        return item

    def _calculate_ttl(self, event_date: datetime) -> int:
        """Unix timestamp TTL_DAYS after the event date."""
        expires = event_date.replace(tzinfo=timezone.utc) + timedelta(days=self.TTL_DAYS)
        return int(expires.timestamp())

    def _events_differ(self, event1: Event, event2: Event) -> bool:
        """Compare content fields, ignoring ingestion timestamps."""
        fields = (
            'name', 'date', 'time', 'location', 'location_type', 'category',
            'tags', 'school', 'description', 'short_description',
            'organization', 'source_url', 'registration_link', 'image_url',
            'is_active'
        )
        return any(getattr(event1, f) != getattr(event2, f) for f in fields)

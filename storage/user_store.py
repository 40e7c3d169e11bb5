"""DynamoDB storage for the users collection."""
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from processor.models import EmailPreferences, UserProfile

logger = logging.getLogger(__name__)


def server_timestamp() -> str:
    """Write-time UTC timestamp assigned by the store."""
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    """Manager for the users table, keyed by identity uid."""

    MAX_VIEWED_EVENTS = 50

    # Attributes callers may change through update_user
    UPDATABLE_FIELDS = frozenset({
        'first_name', 'last_name', 'photo_url', 'school', 'year', 'program',
        'interests', 'career_goals', 'email_preferences', 'is_active',
    })

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized UserStore for table: {table_name}")

    def get_user(self, uid: str) -> Optional[UserProfile]:
        """Fetch a user profile, or None if the user has no document."""
        try:
            response = self.table.get_item(Key={'uid': uid})
        except ClientError as e:
            logger.error(f"Error loading user {uid}: {e}")
            raise

        item = response.get('Item')
        return self._item_to_profile(item) if item else None

    def create_user(self, profile: UserProfile) -> UserProfile:
        """
        Write a new user document, stamping created_at and last_login.

        Returns:
            The stored profile
        """
        now = server_timestamp()
        profile.created_at = now
        profile.last_login = now

        try:
            self.table.put_item(Item=self._profile_to_item(profile))
        except ClientError as e:
            logger.error(f"Error creating user {profile.uid}: {e}")
            raise

        logger.info(f"New user profile created: {profile.uid}")
        return profile

    def update_user(self, uid: str, **fields) -> None:
        """
        Partially update a user document and stamp updated_at.

        Raises:
            ValueError: If a field is not updatable
        """
        unknown = set(fields) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        if isinstance(values.get('email_preferences'), EmailPreferences):
            values['email_preferences'] = asdict(values['email_preferences'])
        values['updated_at'] = server_timestamp()
        self._set_attributes(uid, values)

    def touch_last_login(self, uid: str) -> None:
        self._set_attributes(uid, {'last_login': server_timestamp()})

    def add_saved_event(self, uid: str, event_id: str) -> bool:
        """
        Append an event id to the saved list unless it is already there.

        Returns:
            False if the event was already saved
        """
        try:
            self.table.update_item(
                Key={'uid': uid},
                UpdateExpression='SET saved_events = list_append(if_not_exists(saved_events, :empty), :ids)',
                ExpressionAttributeValues={':empty': [], ':ids': [event_id], ':eid': event_id},
                ConditionExpression='attribute_exists(uid) AND NOT contains(saved_events, :eid)'
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException' and self.get_user(uid):
                return False
            logger.error(f"Error saving event {event_id} for {uid}: {e}")
            raise
        return True

    def remove_saved_event(self, uid: str, event_id: str) -> None:
        """Remove an event id from the saved list, keeping the order of the rest."""
        profile = self.get_user(uid)
        if profile is None or event_id not in profile.saved_events:
            return
        saved = [e for e in profile.saved_events if e != event_id]
        self._set_attributes(uid, {'saved_events': saved})

    def record_view(self, uid: str, event_id: str) -> list:
        """
        Move an event to the front of the viewed list, capped at 50 entries.

        Returns:
            The updated viewed list, or an empty list for unknown users
        """
        profile = self.get_user(uid)
        if profile is None:
            return []

        viewed = [event_id] + [e for e in profile.viewed_events if e != event_id]
        viewed = viewed[:self.MAX_VIEWED_EVENTS]
        self._set_attributes(uid, {'viewed_events': viewed})
        return viewed

    def _set_attributes(self, uid: str, values: dict) -> None:
        """SET the given attributes on an existing user document."""
        names = {f'#f{i}': name for i, name in enumerate(values)}
        expression = 'SET ' + ', '.join(f'#f{i} = :v{i}' for i in range(len(values)))
        names['#key'] = 'uid'

        try:
            self.table.update_item(
                Key={'uid': uid},
                UpdateExpression=expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues={
                    f':v{i}': value for i, value in enumerate(values.values())
                },
                ConditionExpression='attribute_exists(#key)'
            )
        except ClientError as e:
            logger.error(f"Error updating user {uid}: {e}")
            raise

    def _profile_to_item(self, profile: UserProfile) -> dict:
        item = asdict(profile)
        return {key: value for key, value in item.items() if value is not None}

    def _item_to_profile(self, item: dict) -> UserProfile:
        prefs = item.get('email_preferences') or {}
        return UserProfile(
            uid=item['uid'],
            email=item.get('email', ''),
            first_name=item.get('first_name', ''),
            last_name=item.get('last_name', ''),
            photo_url=item.get('photo_url', ''),
            school=item.get('school', ''),
            year=item.get('year', ''),
            program=item.get('program', ''),
            interests=list(item.get('interests', [])),
            career_goals=list(item.get('career_goals', [])),
            saved_events=list(item.get('saved_events', [])),
            viewed_events=list(item.get('viewed_events', [])),
            email_preferences=EmailPreferences(
                digest_frequency=prefs.get('digest_frequency', 'weekly'),
                event_alerts=bool(prefs.get('event_alerts', True)),
                reminder_before=int(prefs.get('reminder_before', 24))
            ),
            created_at=item.get('created_at'),
            last_login=item.get('last_login'),
            updated_at=item.get('updated_at'),
            is_active=bool(item.get('is_active', True))
        )

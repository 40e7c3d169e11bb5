"""User profile management: details, preferences, saved and viewed events."""
import logging
from typing import List, Optional

from botocore.exceptions import ClientError

from errors import ProfileNotFoundError, ValidationError
from processor.models import EmailPreferences, Event, UserProfile
from storage.event_store import EventStore
from storage.user_store import UserStore

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = ('first_name', 'last_name', 'school', 'program', 'year')
DIGEST_FREQUENCIES = ('daily', 'weekly', 'monthly', 'never')


class ProfileService:
    """Operations on the signed-in user's profile."""

    MAX_SAVED_EVENTS_SHOWN = 10

    def __init__(self, users: UserStore, events: EventStore):
        self.users = users
        self.events = events

    def get_profile(self, uid: str) -> UserProfile:
        profile = self.users.get_user(uid)
        if profile is None:
            raise ProfileNotFoundError(f"User profile not found: {uid}")
        return profile

    def update_profile(self, uid: str, data: dict) -> UserProfile:
        """
        Update profile details.

        Args:
            uid: User id
            data: first_name, last_name, school, program and year are
                required; interests and career_goals are optional lists

        Raises:
            ValidationError: If a required field is missing
        """
        values = {
            name: str(data.get(name) or '').strip()
            for name in REQUIRED_PROFILE_FIELDS
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValidationError(
                f"Please fill in all required fields: {', '.join(missing)}"
            )

        values['interests'] = self._string_list(data.get('interests'), 'interests')
        values['career_goals'] = self._string_list(data.get('career_goals'), 'career_goals')

        self.get_profile(uid)
        self.users.update_user(uid, **values)
        logger.info(f"Profile updated for {uid}")
        return self.get_profile(uid)

    def update_email_preferences(self, uid: str, data: dict) -> EmailPreferences:
        digest_frequency = data.get('digest_frequency', 'weekly')
        if digest_frequency not in DIGEST_FREQUENCIES:
            raise ValidationError(f"Invalid digest frequency: {digest_frequency}")

        try:
            reminder_before = int(data.get('reminder_before', 24))
        except (TypeError, ValueError, OverflowError):
            raise ValidationError("reminder_before must be a whole number of hours")

        preferences = EmailPreferences(
            digest_frequency=digest_frequency,
            event_alerts=bool(data.get('event_alerts', True)),
            reminder_before=reminder_before
        )

        self.get_profile(uid)
        self.users.update_user(uid, email_preferences=preferences)
        logger.info(f"Email preferences updated for {uid}")
        return preferences

    def save_event(self, uid: str, event_id: str) -> bool:
        """
        Add an event to the user's saved events.

        Returns:
            False if the event was already saved
        """
        self.get_profile(uid)
        return self.users.add_saved_event(uid, event_id)

    def unsave_event(self, uid: str, event_id: str) -> None:
        self.get_profile(uid)
        self.users.remove_saved_event(uid, event_id)

    def track_view(self, uid: str, event_id: str) -> None:
        """Record a view; failures are logged and never block the caller."""
        try:
            self.users.record_view(uid, event_id)
        except ClientError as e:
            logger.error(f"Error tracking event view: {e}")

    def saved_events(self, profile: UserProfile) -> List[Event]:
        """
        Load the first 10 saved events, in the order they were saved.

        Events that no longer exist or fail to load are skipped.
        """
        events = []
        for event_id in profile.saved_events[:self.MAX_SAVED_EVENTS_SHOWN]:
            try:
                event = self.events.get_event(event_id)
            except ClientError as e:
                logger.error(f"Error loading event {event_id}: {e}")
                continue
            if event is not None:
                events.append(event)
        return events

    def _string_list(self, value: Optional[list], name: str) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{name} must be a list of strings")
        return value

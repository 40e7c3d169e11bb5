"""Unit tests for UserStore."""
import pytest
from botocore.exceptions import ClientError

from conftest import USERS_TABLE
from processor.models import EmailPreferences, UserProfile
from storage.user_store import UserStore


@pytest.fixture
def user_store(dynamodb_tables):
    return UserStore(USERS_TABLE)


@pytest.fixture
def profile(user_store):
    return user_store.create_user(UserProfile(
        uid='user-1',
        email='student@umich.edu',
        first_name='Ada',
        last_name='Lovelace'
    ))


def test_create_and_get_user(user_store, profile):
    stored = user_store.get_user('user-1')

    assert stored.email == 'student@umich.edu'
    assert stored.first_name == 'Ada'
    assert stored.saved_events == []
    assert stored.viewed_events == []
    assert stored.email_preferences == EmailPreferences()
    assert stored.created_at is not None
    assert stored.last_login == stored.created_at


def test_get_missing_user(user_store):
    assert user_store.get_user('ghost') is None


def test_update_user_sets_fields_and_timestamp(user_store, profile):
    user_store.update_user(
        'user-1',
        school='Ross School of Business',
        interests=['career', 'tech'],
        email_preferences=EmailPreferences(digest_frequency='daily', reminder_before=2)
    )

    stored = user_store.get_user('user-1')
    assert stored.school == 'Ross School of Business'
    assert stored.interests == ['career', 'tech']
    assert stored.email_preferences.digest_frequency == 'daily'
    assert stored.email_preferences.reminder_before == 2
    assert stored.updated_at is not None


def test_update_user_rejects_unknown_fields(user_store, profile):
    with pytest.raises(ValueError):
        user_store.update_user('user-1', email='attacker@example.com')


def test_update_missing_user_fails(user_store):
    with pytest.raises(ClientError):
        user_store.update_user('ghost', school='LSA')


def test_saved_events_union_and_remove(user_store, profile):
    """Test array-union and array-remove semantics of saved events."""
    assert user_store.add_saved_event('user-1', 'event-a') is True
    assert user_store.add_saved_event('user-1', 'event-b') is True
    assert user_store.add_saved_event('user-1', 'event-a') is False

    assert user_store.get_user('user-1').saved_events == ['event-a', 'event-b']

    user_store.remove_saved_event('user-1', 'event-a')
    assert user_store.get_user('user-1').saved_events == ['event-b']

    user_store.remove_saved_event('user-1', 'event-b')
    user_store.remove_saved_event('user-1', 'event-b')
    assert user_store.get_user('user-1').saved_events == []


def test_saved_events_keep_save_order(user_store, profile):
    for event_id in ('z-event', 'y-event', 'x-event', 'a-event'):
        user_store.add_saved_event('user-1', event_id)

    user_store.remove_saved_event('user-1', 'y-event')

    assert user_store.get_user('user-1').saved_events == ['z-event', 'x-event', 'a-event']


def test_add_saved_event_unknown_user(user_store):
    with pytest.raises(ClientError):
        user_store.add_saved_event('ghost', 'event-a')


def test_record_view_most_recent_first(user_store, profile):
    user_store.record_view('user-1', 'event-a')
    user_store.record_view('user-1', 'event-b')
    viewed = user_store.record_view('user-1', 'event-a')

    assert viewed == ['event-a', 'event-b']
    assert user_store.get_user('user-1').viewed_events == ['event-a', 'event-b']


def test_record_view_capped_at_fifty(user_store, profile):
    for i in range(55):
        user_store.record_view('user-1', f'event-{i}')

    viewed = user_store.get_user('user-1').viewed_events
    assert len(viewed) == 50
    assert viewed[0] == 'event-54'


def test_record_view_unknown_user(user_store):
    assert user_store.record_view('ghost', 'event-a') == []


def test_touch_last_login(user_store, profile):
    before = user_store.get_user('user-1').last_login

    user_store.touch_last_login('user-1')

    assert user_store.get_user('user-1').last_login >= before

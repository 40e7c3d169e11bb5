"""Shared fixtures: fake AWS credentials and mock DynamoDB tables."""
from datetime import datetime, timedelta

import boto3
import pytest
from moto import mock_aws

from processor.models import Event

EVENTS_TABLE = 'test-umich-events'
USERS_TABLE = 'test-umich-users'


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Keep boto3 away from real credentials."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def dynamodb_tables():
    """Create mock events and users tables."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        events_table = dynamodb.create_table(
            TableName=EVENTS_TABLE,
            KeySchema=[
                {'AttributeName': 'event_id', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'event_id', 'AttributeType': 'S'},
                {'AttributeName': 'is_active', 'AttributeType': 'N'},
                {'AttributeName': 'event_date', 'AttributeType': 'S'}
            ],
            GlobalSecondaryIndexes=[
                {
                    'IndexName': 'active-date-index',
                    'KeySchema': [
                        {'AttributeName': 'is_active', 'KeyType': 'HASH'},
                        {'AttributeName': 'event_date', 'KeyType': 'RANGE'}
                    ],
                    'Projection': {'ProjectionType': 'ALL'}
                }
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        users_table = dynamodb.create_table(
            TableName=USERS_TABLE,
            KeySchema=[
                {'AttributeName': 'uid', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'uid', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield events_table, users_table


def make_event(event_id='event-1', name='Test Event', days_ahead=3, **overrides):
    """Build an Event dated days_ahead from now at 18:00 (None for undated)."""
    date = None
    if days_ahead is not None:
        date = (datetime.now() + timedelta(days=days_ahead)).replace(
            hour=18, minute=0, second=0, microsecond=0
        )
    fields = {
        'id': event_id,
        'name': name,
        'date': date,
        'time': '6:00 PM',
        'location': 'Michigan Union',
        'category': ['general'],
        'school': 'Ross School of Business',
        'description': 'An event for testing',
        'short_description': 'An event for testing',
        'source_id': 'example-source',
    }
    fields.update(overrides)
    return Event(**fields)

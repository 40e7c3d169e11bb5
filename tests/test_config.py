"""Unit tests for environment configuration."""
from config import load_config


def test_defaults():
    config = load_config({})

    assert config.events_table == 'umich-events'
    assert config.users_table == 'umich-users'
    assert config.required_email_domain == 'umich.edu'
    assert config.page_size == 20
    assert config.events_query_limit == 100
    assert config.timeout_seconds == 30
    assert config.region_name is None
    assert config.source.source_id == 'example-source'


def test_overrides():
    config = load_config({
        'EVENTS_TABLE': 'prod-events',
        'PAGE_SIZE': '10',
        'AWS_REGION': 'us-east-2',
        'SOURCE_ID': 'lsa',
        'SOURCE_URL': 'https://example.umich.edu/lsa/events',
    })

    assert config.events_table == 'prod-events'
    assert config.page_size == 10
    assert config.region_name == 'us-east-2'
    assert config.source.source_id == 'lsa'
    assert config.source.url == 'https://example.umich.edu/lsa/events'
    assert config.source.item_selector == '.event-item'

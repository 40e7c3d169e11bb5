"""Configuration read from Lambda environment variables."""
import os
from dataclasses import dataclass
from typing import Optional

from processor.models import SourceConfig


@dataclass
class AppConfig:
    events_table: str
    users_table: str
    log_level: str
    required_email_domain: str
    page_size: int
    events_query_limit: int
    timeout_seconds: int
    region_name: Optional[str]
    source: SourceConfig


def load_config(environ=None) -> AppConfig:
    """
    Build configuration from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        AppConfig with defaults for unset variables
    """
    env = os.environ if environ is None else environ

    return AppConfig(
        events_table=env.get('EVENTS_TABLE', 'umich-events'),
        users_table=env.get('USERS_TABLE', 'umich-users'),
        log_level=env.get('LOG_LEVEL', 'INFO'),
        required_email_domain=env.get('REQUIRED_EMAIL_DOMAIN', 'umich.edu'),
        page_size=int(env.get('PAGE_SIZE', '20')),
        events_query_limit=int(env.get('EVENTS_QUERY_LIMIT', '100')),
        timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
        region_name=env.get('AWS_REGION') or None,
        source=SourceConfig(
            source_id=env.get('SOURCE_ID', 'example-source'),
            name=env.get('SOURCE_NAME', 'Example Event Source'),
            url=env.get('SOURCE_URL', 'https://example.umich.edu/events'),
            school=env.get('SOURCE_SCHOOL', 'Example School')
        )
    )

"""AWS Lambda handler for scraping an event source into the events table."""
import json
import logging
import time
from typing import Dict, Any

from config import load_config
from logging_config import setup_logging
from scraper.event_source_scraper import EventSourceScraper
from storage.event_store import EventStore


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Scheduled handler: scrape the configured source and sync its events.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    config = load_config()

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    source = config.source
    logger.info(
        "Lambda execution started",
        extra={
            'events_table': config.events_table,
            'source_id': source.source_id,
            'timeout_seconds': config.timeout_seconds
        }
    )

    try:
        scraper = EventSourceScraper(source, timeout=config.timeout_seconds)
        store = EventStore(table_name=config.events_table, region_name=config.region_name)

        logger.info("Scraping events from source")
        result = scraper.scrape()
        if not result.success:
            logger.error(
                f"Failed to scrape {source.source_id}: {result.error}",
                extra={'source_id': source.source_id}
            )
            duration = time.time() - start_time
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to scrape event source',
                    'source_id': source.source_id,
                    'error': result.error,
                    'duration_seconds': round(duration, 2)
                })
            }
        logger.info(f"Scraped {result.valid} valid events out of {result.total}")

        # An empty listing never replaces stored events
        if result.total == 0:
            logger.warning(
                f"No events found at {source.url}; skipping sync",
                extra={'source_id': source.source_id}
            )
            duration = time.time() - start_time
            return {
                'statusCode': 200,
                'body': json.dumps({
                    'message': 'No events found at source; sync skipped',
                    'source_id': source.source_id,
                    'warning': 'Previous events remain in DynamoDB',
                    'duration_seconds': round(duration, 2)
                })
            }

        # Scraped events are the source's full current listing
        try:
            logger.info("Synchronizing events with DynamoDB")
            sync_result = store.sync_events(result.events, source.source_id)
            deactivated = store.deactivate_past_events()
        except Exception as e:
            logger.error(
                f"Error during DynamoDB sync operation: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return {
                'statusCode': 500,
                'body': json.dumps({
                    'message': 'Failed to sync events with DynamoDB',
                    'error': str(e),
                    'error_type': type(e).__name__,
                    'note': 'Previous events remain in DynamoDB',
                    'duration_seconds': round(duration, 2)
                })
            }

        duration = time.time() - start_time

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_added': sync_result.added,
                'events_updated': sync_result.updated,
                'events_deleted': sync_result.deleted,
                'events_deactivated': deactivated,
                'errors': sync_result.errors
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Sync completed successfully',
                'source_id': source.source_id,
                'statistics': {
                    'raw_events_fetched': result.total,
                    'valid_events_processed': result.valid,
                    'events_added': sync_result.added,
                    'events_updated': sync_result.updated,
                    'events_deleted': sync_result.deleted,
                    'events_deactivated': deactivated,
                    'duration_seconds': round(duration, 2)
                },
                'errors': sync_result.errors
            })
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Sync failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

"""AWS Lambda handler for the events HTTP API (API Gateway proxy events)."""
import json
import logging
import time
from dataclasses import asdict
from typing import Any, Callable, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from auth.identity import ClaimsIdentityProvider, DomainPolicy
from auth.session import SessionManager
from config import AppConfig, load_config
from errors import AuthenticationRequiredError, EventsAppError, ValidationError
from logging_config import setup_logging
from processor.calendar_export import generate_ics, ics_filename
from processor.formatting import event_card, event_details
from service.event_browser import EventBrowser
from service.profile_service import ProfileService
from storage.event_store import EventStore
from storage.user_store import UserStore

logger = logging.getLogger(__name__)


class ApiContext:
    """Per-request collaborators."""

    def __init__(self, request: Dict[str, Any], config: AppConfig):
        self.request = request
        self.config = config
        self.event_store = EventStore(config.events_table, region_name=config.region_name)
        self.user_store = UserStore(config.users_table, region_name=config.region_name)
        self.browser = EventBrowser(
            self.event_store,
            query_limit=config.events_query_limit,
            page_size=config.page_size
        )
        self.profiles = ProfileService(self.user_store, self.event_store)
        self.session = SessionManager(
            ClaimsIdentityProvider(request),
            DomainPolicy(config.required_email_domain),
            self.user_store
        )

    @property
    def path_id(self) -> str:
        return (self.request.get('pathParameters') or {}).get('id', '')

    @property
    def query(self) -> Dict[str, str]:
        return self.request.get('queryStringParameters') or {}

    def body(self) -> dict:
        raw = self.request.get('body') or '{}'
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            raise ValidationError('Request body must be JSON')
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object')
        return data

    def optional_user(self):
        """Signed-in profile, or None for anonymous requests."""
        return self.session.restore()

    def require_user(self):
        profile = self.session.restore()
        if profile is None:
            raise AuthenticationRequiredError('Please login to continue')
        return profile


def _json(status_code: int, body: dict) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body, default=str)
    }


def list_events(ctx: ApiContext) -> Dict[str, Any]:
    state = ctx.browser.state_from_params(ctx.query)
    events = ctx.browser.load_events()
    page = ctx.browser.page(events, state)
    return _json(200, page.to_dict())


def get_event(ctx: ApiContext) -> Dict[str, Any]:
    event = ctx.browser.get_event(ctx.path_id)
    profile = ctx.optional_user()
    if profile is not None:
        ctx.profiles.track_view(profile.uid, event.id)
    return _json(200, event_details(event))


def export_event(ctx: ApiContext) -> Dict[str, Any]:
    event = ctx.browser.get_event(ctx.path_id)
    return {
        'statusCode': 200,
        'headers': {
            'Content-Type': 'text/calendar; charset=utf-8',
            'Content-Disposition': f'attachment; filename="{ics_filename(event)}"'
        },
        'body': generate_ics(event)
    }


def get_profile(ctx: ApiContext) -> Dict[str, Any]:
    profile = ctx.require_user()
    saved = ctx.profiles.saved_events(profile)
    return _json(200, {
        'profile': asdict(profile),
        'is_new_user': ctx.session.is_new_user,
        'saved_events': [event_card(event) for event in saved]
    })


def update_profile(ctx: ApiContext) -> Dict[str, Any]:
    profile = ctx.require_user()
    updated = ctx.profiles.update_profile(profile.uid, ctx.body())
    return _json(200, {'profile': asdict(updated)})


def update_preferences(ctx: ApiContext) -> Dict[str, Any]:
    profile = ctx.require_user()
    preferences = ctx.profiles.update_email_preferences(profile.uid, ctx.body())
    return _json(200, {'email_preferences': asdict(preferences)})


def save_event(ctx: ApiContext) -> Dict[str, Any]:
    profile = ctx.require_user()
    event = ctx.browser.get_event(ctx.path_id)
    if not ctx.profiles.save_event(profile.uid, event.id):
        return _json(200, {'saved': False, 'message': 'Event already saved!'})
    return _json(201, {'saved': True, 'message': 'Event saved to your profile!'})


def unsave_event(ctx: ApiContext) -> Dict[str, Any]:
    profile = ctx.require_user()
    ctx.profiles.unsave_event(profile.uid, ctx.path_id)
    return _json(200, {'saved': False})


ROUTES: Dict[tuple, Callable[[ApiContext], Dict[str, Any]]] = {
    ('GET', '/events'): list_events,
    ('GET', '/events/{id}'): get_event,
    ('GET', '/events/{id}/ics'): export_event,
    ('GET', '/profile'): get_profile,
    ('PUT', '/profile'): update_profile,
    ('PUT', '/profile/preferences'): update_preferences,
    ('POST', '/profile/saved/{id}'): save_event,
    ('DELETE', '/profile/saved/{id}'): unsave_event,
}


def api_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Route an API Gateway proxy request.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    config = load_config()
    setup_logging(config.log_level)

    start_time = time.time()
    method = event.get('httpMethod', 'GET')
    resource = event.get('resource') or event.get('path', '')
    route: Optional[Callable] = ROUTES.get((method, resource))

    if route is None:
        return _json(404, {'message': f'No route for {method} {resource}'})

    try:
        response = route(ApiContext(event, config))

    except EventsAppError as e:
        logger.warning(
            f"{method} {resource} rejected: {e}",
            extra={'error_type': type(e).__name__}
        )
        return _json(e.status_code, {'message': str(e), 'error_type': type(e).__name__})

    except (ClientError, BotoCoreError) as e:
        logger.error(
            f"Storage error on {method} {resource}: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _json(503, {
            'message': 'Error loading data. Please try again.',
            'error_type': type(e).__name__
        })

    except Exception as e:
        logger.error(
            f"{method} {resource} failed: {str(e)}",
            extra={
                'duration_seconds': round(time.time() - start_time, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _json(500, {
            'message': 'Something went wrong. Please try again.',
            'error_type': type(e).__name__
        })

    logger.info(
        f"{method} {resource} completed",
        extra={
            'status_code': response['statusCode'],
            'duration_seconds': round(time.time() - start_time, 2)
        }
    )
    return response

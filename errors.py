"""Exception hierarchy for the events application.

Handlers map these to HTTP status codes; storage failures surface as
botocore exceptions and are handled separately.
"""


class EventsAppError(Exception):
    """Base exception for application errors."""

    status_code = 400


class AuthenticationRequiredError(EventsAppError):
    """The operation needs a signed-in user."""

    status_code = 401


class DomainRestrictionError(EventsAppError):
    """The identity's email is outside the allowed domain.

    Raised only after the identity has been signed out.
    """

    status_code = 403


class EventNotFoundError(EventsAppError):
    status_code = 404


class ProfileNotFoundError(EventsAppError):
    status_code = 404


class ValidationError(EventsAppError):
    """Submitted data is incomplete or malformed."""

    status_code = 400

"""Identity provider boundary and the email domain policy."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """A signed-in user as reported by the identity provider."""
    uid: str
    email: str
    display_name: str = ''
    photo_url: str = ''

    @property
    def first_name(self) -> str:
        return self.display_name.split(' ')[0] if self.display_name else ''

    @property
    def last_name(self) -> str:
        return ' '.join(self.display_name.split(' ')[1:]) if self.display_name else ''

    @property
    def greeting_name(self) -> str:
        return self.display_name or self.email.split('@')[0]


class DomainPolicy:
    """Allows only email addresses under one domain."""

    def __init__(self, required_domain: str):
        self.required_suffix = '@' + required_domain.lower().lstrip('@')

    def allows(self, identity: Optional[Identity]) -> bool:
        if identity is None or not identity.email:
            return False
        return identity.email.lower().endswith(self.required_suffix)

    @property
    def message(self) -> str:
        return (
            f"Only {self.required_suffix} email addresses are allowed. "
            f"Please sign in with your university account."
        )


class IdentityProvider(ABC):
    """Third-party authentication provider."""

    @abstractmethod
    def sign_in(self) -> Optional[Identity]:
        """Run the interactive sign-in flow."""

    @abstractmethod
    def redirect_result(self) -> Optional[Identity]:
        """Identity returned by a resumed redirect sign-in, if any."""

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """Identity restored from persisted provider state, if any."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the provider session."""

    def auth_state_changes(self) -> Iterator[Optional[Identity]]:
        """Stream of identity-or-None notifications; starts with the current state."""
        yield self.current_identity()


class ClaimsIdentityProvider(IdentityProvider):
    """Identity taken from API Gateway authorizer claims.

    The token has already been verified by the authorizer; signing out only
    drops the identity for the rest of the request.
    """

    def __init__(self, request: Dict[str, Any]):
        self._identity = identity_from_claims(_authorizer_claims(request))

    def sign_in(self) -> Optional[Identity]:
        return self._identity

    def redirect_result(self) -> Optional[Identity]:
        return None

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def sign_out(self) -> None:
        if self._identity is not None:
            logger.info(f"Signing out {self._identity.email}")
        self._identity = None


def _authorizer_claims(request: Dict[str, Any]) -> Dict[str, Any]:
    authorizer = (request.get('requestContext') or {}).get('authorizer') or {}
    # REST API (Cognito) puts claims directly; HTTP API nests them under jwt
    return authorizer.get('claims') or (authorizer.get('jwt') or {}).get('claims') or {}


def identity_from_claims(claims: Dict[str, Any]) -> Optional[Identity]:
    uid = claims.get('sub')
    email = claims.get('email')
    if not uid or not email:
        return None
    return Identity(
        uid=uid,
        email=email,
        display_name=claims.get('name', ''),
        photo_url=claims.get('picture', '')
    )

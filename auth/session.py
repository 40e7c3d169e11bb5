"""Sign-in handling with domain restriction and profile bootstrap."""
import logging
from typing import Optional

from auth.identity import DomainPolicy, Identity, IdentityProvider
from errors import DomainRestrictionError
from processor.models import UserProfile
from storage.user_store import UserStore

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Admits identities from every sign-in path through one routine.

    An identity outside the allowed domain is signed out before any
    profile data is read or written.
    """

    def __init__(self, provider: IdentityProvider, policy: DomainPolicy, users: UserStore):
        self.provider = provider
        self.policy = policy
        self.users = users
        self.current: Optional[Identity] = None
        self.profile: Optional[UserProfile] = None
        self.is_new_user = False

    def sign_in(self) -> Optional[UserProfile]:
        """Interactive sign-in."""
        return self._admit(self.provider.sign_in(), 'interactive')

    def resume_redirect(self) -> Optional[UserProfile]:
        """Finish a redirect sign-in after returning from the provider."""
        return self._admit(self.provider.redirect_result(), 'redirect')

    def restore(self) -> Optional[UserProfile]:
        """Restore the session persisted by the provider."""
        return self._admit(self.provider.current_identity(), 'restore')

    def watch(self) -> Optional[UserProfile]:
        """
        Consume the provider's auth state stream once.

        Domain violations are logged and the stream continues; the
        offending identity has already been signed out.

        Returns:
            Profile of the identity admitted last, or None
        """
        for identity in self.provider.auth_state_changes():
            try:
                self._admit(identity, 'state-change')
            except DomainRestrictionError as e:
                logger.warning(f"Rejected sign-in from auth state stream: {e}")
        return self.profile

    def sign_out(self) -> None:
        self.provider.sign_out()
        self._clear()

    def _admit(self, identity: Optional[Identity], path: str) -> Optional[UserProfile]:
        if identity is None:
            logger.info(f"No signed-in user ({path})")
            self._clear()
            return None

        if not self.policy.allows(identity):
            logger.warning(
                f"Rejected {identity.email} outside required domain ({path})"
            )
            self.sign_out()
            raise DomainRestrictionError(self.policy.message)

        if self.current is not None and self.current.uid == identity.uid:
            return self.profile

        logger.info(f"User logged in: {identity.email} ({path})")
        self.current = identity
        self.profile, self.is_new_user = self._load_or_create_profile(identity)
        return self.profile

    def _load_or_create_profile(self, identity: Identity):
        profile = self.users.get_user(identity.uid)
        if profile is None:
            profile = self.users.create_user(UserProfile(
                uid=identity.uid,
                email=identity.email,
                first_name=identity.first_name,
                last_name=identity.last_name,
                photo_url=identity.photo_url
            ))
            return profile, True

        self.users.touch_last_login(identity.uid)
        return profile, False

    def _clear(self) -> None:
        self.current = None
        self.profile = None
        self.is_new_user = False

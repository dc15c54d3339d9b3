"""Session ownership.

``AuthState`` is the only place that holds the current session. It listens
to the authentication provider, loads (or provisions) the profile, and
exposes an immutable ``SessionContext`` for workflow operations and access
decisions.
"""

import logging
from typing import Callable, Optional

from marketplace.core.errors import NotAuthenticatedError
from marketplace.core.session import AuthSession, SessionContext

from .auth_provider import AuthProvider, SessionEvent
from .profiles import ProfileService

logger = logging.getLogger(__name__)

ContextListener = Callable[[SessionContext], None]


class AuthState:
    """Tracks session, profile and loading state for one client."""

    def __init__(self, provider: AuthProvider, profiles: ProfileService):
        self.provider = provider
        self.profiles = profiles
        self._context = SessionContext.pending()
        self._listeners: list[ContextListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = provider.on_session_change(self._on_session_change)

    @property
    def context(self) -> SessionContext:
        return self._context

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """Get notified whenever the context changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def restore(self, access_token: Optional[str]) -> SessionContext:
        """Resolve the initial session from a stored access token."""
        self._apply(SessionEvent.INITIAL_SESSION, self.provider.get_session(access_token))
        return self._context

    def refresh(self) -> SessionContext:
        """Re-read the profile, e.g. after a role change by an admin."""
        if self._context.session is None:
            return self._context
        self._apply(SessionEvent.TOKEN_REFRESHED, self._context.session)
        return self._context

    def update_profile(self, full_name: Optional[str]) -> SessionContext:
        """Edit the caller's own display name."""
        if self._context.profile is None:
            raise NotAuthenticatedError()
        profile = self.profiles.update_profile(self._context.profile.id, full_name)
        self._set(SessionContext(session=self._context.session, profile=profile))
        return self._context

    def close(self) -> None:
        """Stop listening to the provider."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_change(self, event: SessionEvent, session: Optional[AuthSession]) -> None:
        self._apply(event, session)

    def _apply(self, event: SessionEvent, session: Optional[AuthSession]) -> None:
        if session is None:
            self._set(SessionContext.anonymous())
            return

        self._set(SessionContext(session=session, loading=True))
        try:
            profile = self.profiles.ensure_profile(session)
        except Exception:
            # Authenticated but no profile: access decisions stay pending
            self._set(SessionContext(session=session))
            raise
        logger.debug("Session %s for %s", event.value, session.account_id)
        self._set(SessionContext(session=session, profile=profile))

    def _set(self, context: SessionContext) -> None:
        self._context = context
        for listener in list(self._listeners):
            listener(context)

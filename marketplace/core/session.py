"""Session value objects shared by the workflow engine and the access policy.

``AuthSession`` is what the authentication provider issues.
``SessionContext`` is the explicit caller context threaded through every
workflow operation and access decision, owned by
``marketplace.services.auth_state.AuthState``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from marketplace.core.access.roles import Role

if TYPE_CHECKING:
    from marketplace.db.models import User


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session issued by the authentication provider."""

    account_id: UUID
    email: str
    access_token: str
    refresh_token: str
    expires_at: datetime
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SessionContext:
    """Caller context: the auth session, the loaded profile, and loading state."""

    session: Optional[AuthSession] = None
    profile: Optional["User"] = None
    loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def user_id(self) -> Optional[UUID]:
        if self.profile is not None:
            return self.profile.id
        if self.session is not None:
            return self.session.account_id
        return None

    @property
    def role(self) -> Optional[Role]:
        """Role of the loaded profile, or None while no profile is known."""
        if self.profile is None:
            return None
        return Role(self.profile.role)

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @classmethod
    def pending(cls) -> "SessionContext":
        return cls(loading=True)

from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from marketplace.core.access.checker import PermissionChecker
from marketplace.core.access.roles import Role
from marketplace.core.errors import NotAuthenticatedError, NotAuthorizedError
from marketplace.core.session import SessionContext
from marketplace.core.workflow import WorkflowService
from marketplace.db.session import SessionLocal
from marketplace.services import (
    AuthProvider,
    AuthState,
    CatalogService,
    DashboardService,
    LocalImageStorage,
    NotificationService,
    ProfileService,
    TicketService,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/sign-in", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_auth_provider(db: Session = Depends(get_db)) -> AuthProvider:
    return AuthProvider(db)


def get_auth_state(
    provider: AuthProvider = Depends(get_auth_provider),
    db: Session = Depends(get_db),
) -> Generator:
    """Per-request session owner, detached from the provider afterwards."""
    state = AuthState(provider, ProfileService(db))
    try:
        yield state
    finally:
        state.close()


def get_bearer_token(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    return token


def get_session_context(
    token: Optional[str] = Depends(get_bearer_token),
    state: AuthState = Depends(get_auth_state),
) -> SessionContext:
    """Caller context; anonymous when no valid bearer token is sent."""
    return state.restore(token)


def get_current_context(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    """Caller context for endpoints that need a signed-in user with a profile."""
    if not context.is_authenticated or context.profile is None:
        raise NotAuthenticatedError()
    return context


class RoleDependency:
    """Restrict an endpoint to a set of roles."""

    def __init__(self, *roles: Role):
        self.roles = frozenset(Role(r) for r in roles)

    def __call__(self, context: SessionContext = Depends(get_current_context)) -> SessionContext:
        if context.role not in self.roles:
            raise NotAuthorizedError()
        return context


def require_roles(*roles: Role) -> RoleDependency:
    return RoleDependency(*roles)


class PermissionDependency:
    """Restrict an endpoint to roles granting ``permission``."""

    def __init__(self, permission: str):
        self.permission = str(permission)

    def __call__(self, context: SessionContext = Depends(get_current_context)) -> SessionContext:
        if not PermissionChecker(context.role).has_permission(self.permission):
            raise NotAuthorizedError(self.permission)
        return context


def get_workflow(db: Session = Depends(get_db)) -> WorkflowService:
    return WorkflowService(db)


def get_catalog(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_tickets(db: Session = Depends(get_db)) -> TicketService:
    return TicketService(db)


def get_dashboard(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


def get_profiles(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_storage() -> LocalImageStorage:
    return LocalImageStorage()


def get_notifications() -> NotificationService:
    return NotificationService()


def client_ip(request: Request) -> Optional[str]:
    """Client address, honouring a reverse proxy's X-Forwarded-For."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None

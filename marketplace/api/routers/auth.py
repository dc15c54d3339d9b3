from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from marketplace.api.deps import (
    client_ip,
    get_auth_state,
    get_bearer_token,
    get_current_context,
    get_notifications,
)
from marketplace.api.schemas.auth import (
    ConfirmEmailRequest,
    PasswordResetComplete,
    PasswordResetRequest,
    ProfileResponse,
    ProfileUpdate,
    RefreshRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
)
from marketplace.api.schemas.common import SuccessResponse
from marketplace.core.config import get_settings
from marketplace.core.session import AuthSession, SessionContext
from marketplace.db.models import User
from marketplace.services import AuthState, NotificationService, PendingConfirmation

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a reset link has been sent"


def _session_response(session: AuthSession, profile: Optional[User]) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        user=ProfileResponse.model_validate(profile) if profile is not None else None,
    )


def _safe_redirect(redirect_to: Optional[str]) -> Optional[str]:
    """Only allow reset links that point back at our own site."""
    if redirect_to and redirect_to.startswith(settings.site_url.rstrip("/") + "/"):
        return redirect_to
    return None


@router.post("/sign-up", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    body: SignUpRequest,
    background_tasks: BackgroundTasks,
    state: AuthState = Depends(get_auth_state),
    notifications: NotificationService = Depends(get_notifications),
):
    """Register an account. Sends a confirmation email unless confirmation is disabled."""
    result = state.provider.sign_up(body.email, body.password, body.full_name)

    if isinstance(result, PendingConfirmation):
        link = f"{settings.site_url.rstrip('/')}/auth/confirm?token={result.confirmation_token}"
        background_tasks.add_task(notifications.send_confirmation, result.email, link, body.full_name)
        return SignUpResponse(status="confirmation_required", email=result.email)

    return SignUpResponse(
        status="signed_in",
        email=result.email,
        session=_session_response(result, state.context.profile),
    )


@router.post("/confirm", response_model=SessionResponse)
def confirm_email(body: ConfirmEmailRequest, state: AuthState = Depends(get_auth_state)):
    """Exchange an emailed confirmation token for a session."""
    session = state.provider.confirm_email(body.token)
    return _session_response(session, state.context.profile)


@router.post("/sign-in", response_model=SessionResponse)
def sign_in(body: SignInRequest, request: Request, state: AuthState = Depends(get_auth_state)):
    """Sign in with email and password."""
    session = state.provider.sign_in(
        body.email,
        body.password,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _session_response(session, state.context.profile)


@router.post("/refresh", response_model=SessionResponse)
def refresh(body: RefreshRequest, state: AuthState = Depends(get_auth_state)):
    """Rotate a refresh token into a new session."""
    session = state.provider.refresh_session(body.refresh_token)
    return _session_response(session, state.context.profile)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(
    token: Optional[str] = Depends(get_bearer_token),
    state: AuthState = Depends(get_auth_state),
):
    """Revoke the current session."""
    state.provider.sign_out(token)
    return None


@router.post("/password-reset", response_model=SuccessResponse, status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
    body: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    state: AuthState = Depends(get_auth_state),
    notifications: NotificationService = Depends(get_notifications),
):
    """Email a reset link. Responds the same whether or not the account exists."""
    link = state.provider.reset_password(body.email, _safe_redirect(body.redirect_to))
    if link:
        background_tasks.add_task(notifications.send_password_reset, body.email, link)
    return SuccessResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/password-reset/complete", response_model=SuccessResponse)
def complete_password_reset(body: PasswordResetComplete, state: AuthState = Depends(get_auth_state)):
    """Set a new password with a reset token. Signs out every session."""
    state.provider.complete_password_reset(body.token, body.password)
    return SuccessResponse(message="Password updated. Please sign in again.")


@router.get("/me", response_model=ProfileResponse)
def get_me(context: SessionContext = Depends(get_current_context)):
    """Get the caller's profile."""
    return context.profile


@router.patch("/me", response_model=ProfileResponse)
def update_me(
    body: ProfileUpdate,
    context: SessionContext = Depends(get_current_context),
    state: AuthState = Depends(get_auth_state),
):
    """Update the caller's display name."""
    return state.update_profile(body.full_name).profile

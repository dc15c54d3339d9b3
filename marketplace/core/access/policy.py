"""Access policy: decide whether a view renders or redirects.

Decision table, evaluated top to bottom:

    loading                                   -> PENDING
    authenticated, profile not loaded yet     -> PENDING
    require_auth and no session               -> REDIRECT_TO_SIGN_IN
    allowed_roles given and no session        -> REDIRECT_TO_SIGN_IN
    allowed_roles given and role not in it    -> REDIRECT_TO_DASHBOARD
    otherwise                                 -> RENDER

``evaluate`` is a pure function of its inputs.
"""

from enum import Enum
from typing import TYPE_CHECKING, Collection, Optional

from .roles import Role

if TYPE_CHECKING:
    from marketplace.core.session import SessionContext


class AccessDecision(str, Enum):
    """Outcome of an access evaluation."""

    RENDER = "render"
    REDIRECT_TO_SIGN_IN = "redirect_to_sign_in"
    REDIRECT_TO_DASHBOARD = "redirect_to_dashboard"
    PENDING = "pending"


SIGN_IN_PATH = "/sign-in"
DASHBOARD_PATH = "/dashboard"

REDIRECT_TARGETS: dict[AccessDecision, Optional[str]] = {
    AccessDecision.RENDER: None,
    AccessDecision.PENDING: None,
    AccessDecision.REDIRECT_TO_SIGN_IN: SIGN_IN_PATH,
    AccessDecision.REDIRECT_TO_DASHBOARD: DASHBOARD_PATH,
}


def evaluate(
    context: "SessionContext",
    require_auth: bool = True,
    allowed_roles: Optional[Collection[Role]] = None,
) -> AccessDecision:
    """
    Decide whether to render a view for the given caller.

    Args:
        context: Caller's session context (session, profile, loading flag)
        require_auth: Whether the view needs an authenticated user
        allowed_roles: Roles allowed to see the view; None means any role

    Returns:
        The access decision
    """
    if context.loading:
        return AccessDecision.PENDING

    # A known session without its profile must not be checked against an
    # implicit default role.
    if context.is_authenticated and context.profile is None:
        return AccessDecision.PENDING

    if require_auth and not context.is_authenticated:
        return AccessDecision.REDIRECT_TO_SIGN_IN

    if allowed_roles is not None:
        # An anonymous caller has no role, so it is never in the allowed set
        allowed = frozenset(Role(r) for r in allowed_roles)
        if context.role not in allowed:
            return AccessDecision.REDIRECT_TO_DASHBOARD

    return AccessDecision.RENDER


def redirect_target(decision: AccessDecision) -> Optional[str]:
    """Path the caller should be sent to for a decision, if any."""
    return REDIRECT_TARGETS[decision]

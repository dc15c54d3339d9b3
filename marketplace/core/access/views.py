"""Route table of the front end and its access requirements."""

import re
from typing import TYPE_CHECKING, NamedTuple, Optional

from .policy import AccessDecision, evaluate, redirect_target
from .roles import Role

if TYPE_CHECKING:
    from marketplace.core.session import SessionContext


class ViewRule(NamedTuple):
    """Access requirements of a single view."""
    pattern: str
    require_auth: bool
    allowed_roles: Optional[frozenset[Role]] = None


SELLER_ROLES = frozenset([Role.SELLER, Role.ADMIN])
ADMIN_ROLES = frozenset([Role.ADMIN])

VIEW_RULES: list[ViewRule] = [
    # Public
    ViewRule("/", require_auth=False),
    ViewRule("/events", require_auth=False),
    ViewRule("/events/{id}", require_auth=False),
    ViewRule("/sign-in", require_auth=False),
    ViewRule("/sign-up", require_auth=False),
    ViewRule("/forgot-password", require_auth=False),
    ViewRule("/reset-password", require_auth=False),
    ViewRule("/coming-soon", require_auth=False),

    # Any signed-in user
    ViewRule("/dashboard", require_auth=True),
    ViewRule("/tickets", require_auth=True),

    # Sellers and admins
    ViewRule("/seller/events", require_auth=True, allowed_roles=SELLER_ROLES),
    ViewRule("/seller/events/create", require_auth=True, allowed_roles=SELLER_ROLES),

    # Admins
    ViewRule("/admin-dashboard", require_auth=True, allowed_roles=ADMIN_ROLES),
    ViewRule("/admin/applications", require_auth=True, allowed_roles=ADMIN_ROLES),
    ViewRule("/admin/event-requests", require_auth=True, allowed_roles=ADMIN_ROLES),
]

# Unknown views are treated as private.
DEFAULT_RULE = ViewRule("*", require_auth=True)


def _compile(pattern: str) -> re.Pattern:
    regex = re.sub(r"\\\{[a-z_]+\\\}", "[^/]+", re.escape(pattern))
    return re.compile(f"^{regex}$")


_COMPILED = [(_compile(rule.pattern), rule) for rule in VIEW_RULES]


def match_view(path: str) -> ViewRule:
    """Find the rule for a view path (query string and trailing slash ignored)."""
    path = path.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    for regex, rule in _COMPILED:
        if regex.match(path):
            return rule
    return DEFAULT_RULE


def resolve_view(path: str, context: "SessionContext") -> tuple[AccessDecision, Optional[str]]:
    """
    Evaluate access to a view path.

    Returns:
        (decision, redirect path or None)
    """
    rule = match_view(path)
    decision = evaluate(context, require_auth=rule.require_auth, allowed_roles=rule.allowed_roles)
    return decision, redirect_target(decision)

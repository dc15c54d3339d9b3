"""Permission model for the marketplace.

Each resource accepts a fixed set of actions (``PERMISSION_MATRIX``); a
permission is one resource/action pair from that matrix.

Permission string format: "resource:action"
Examples:
  - events:create
  - seller_applications:approve
  - tickets:purchase
"""

from enum import Enum
from typing import NamedTuple, FrozenSet


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    EVENTS = "events"                             # Event requests and listings
    TICKETS = "tickets"                           # Ticket purchases
    SELLER_APPLICATIONS = "seller_applications"   # Applications to become a seller
    USERS = "users"                               # User profiles
    DASHBOARD = "dashboard"                       # Role dashboards and stats
    UPLOADS = "uploads"                           # Event image uploads


class Action(str, Enum):
    """Actions that can be performed on resources."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    LIST = "list"

    APPROVE = "approve"
    REJECT = "reject"
    PURCHASE = "purchase"


class Permission(NamedTuple):
    """A permission is a combination of resource and action."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"


# Maps each resource to its valid actions
PERMISSION_MATRIX: dict[Resource, FrozenSet[Action]] = {
    Resource.EVENTS: frozenset([
        Action.CREATE, Action.READ, Action.LIST, Action.APPROVE, Action.REJECT,
    ]),
    Resource.TICKETS: frozenset([
        Action.PURCHASE, Action.READ, Action.LIST,
    ]),
    Resource.SELLER_APPLICATIONS: frozenset([
        Action.CREATE, Action.READ, Action.LIST, Action.APPROVE, Action.REJECT,
    ]),
    Resource.USERS: frozenset([
        Action.READ, Action.UPDATE, Action.LIST,
    ]),
    Resource.DASHBOARD: frozenset([
        Action.READ,
    ]),
    Resource.UPLOADS: frozenset([
        Action.CREATE,
    ]),
}


def _generate_permission_definitions() -> dict[str, Permission]:
    """Generate all valid permission combinations from the matrix."""
    permissions = {}
    for resource, actions in PERMISSION_MATRIX.items():
        for action in actions:
            perm = Permission(resource, action)
            permissions[str(perm)] = perm
    return permissions


# All valid permissions: "resource:action" -> Permission
PERMISSION_DEFINITIONS = _generate_permission_definitions()


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string is valid."""
    return perm_str in PERMISSION_DEFINITIONS


"""Role definitions for the marketplace.

Three closed roles with their permission sets:
1. User   - browse events, buy tickets, apply to become a seller
2. Seller - everything a user can browse/buy, plus submit events
3. Admin  - review seller applications and event requests
"""

from enum import Enum
from typing import Dict, FrozenSet

from .permissions import Resource, Action, Permission, is_valid_permission


class Role(str, Enum):
    """Closed set of user roles. Promotion to SELLER happens only on approval."""

    USER = "user"
    SELLER = "seller"
    ADMIN = "admin"


class SellerStatus(str, Enum):
    """Denormalized outcome of the user's most recent seller application."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _build_permissions(*perms: tuple) -> FrozenSet[str]:
    """Build permission strings from (Resource, Action) tuples."""
    return frozenset(str(Permission(r, a)) for r, a in perms)


_BROWSE = (
    (Resource.EVENTS, Action.READ),
    (Resource.EVENTS, Action.LIST),
    (Resource.TICKETS, Action.PURCHASE),
    (Resource.TICKETS, Action.READ),
    (Resource.TICKETS, Action.LIST),
    (Resource.USERS, Action.READ),
    (Resource.USERS, Action.UPDATE),
    (Resource.DASHBOARD, Action.READ),
)

USER_PERMISSIONS = _build_permissions(
    *_BROWSE,
    (Resource.SELLER_APPLICATIONS, Action.CREATE),
    (Resource.SELLER_APPLICATIONS, Action.READ),
)

SELLER_PERMISSIONS = _build_permissions(
    *_BROWSE,
    (Resource.EVENTS, Action.CREATE),
    (Resource.UPLOADS, Action.CREATE),
    (Resource.SELLER_APPLICATIONS, Action.READ),
)

ADMIN_PERMISSIONS = _build_permissions(
    *_BROWSE,
    (Resource.EVENTS, Action.CREATE),
    (Resource.EVENTS, Action.APPROVE),
    (Resource.EVENTS, Action.REJECT),
    (Resource.UPLOADS, Action.CREATE),
    (Resource.SELLER_APPLICATIONS, Action.READ),
    (Resource.SELLER_APPLICATIONS, Action.LIST),
    (Resource.SELLER_APPLICATIONS, Action.APPROVE),
    (Resource.SELLER_APPLICATIONS, Action.REJECT),
    (Resource.USERS, Action.LIST),
)

ROLE_PERMISSIONS: Dict[Role, FrozenSet[str]] = {
    Role.USER: USER_PERMISSIONS,
    Role.SELLER: SELLER_PERMISSIONS,
    Role.ADMIN: ADMIN_PERMISSIONS,
}

_unmapped = set(Role) - set(ROLE_PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Roles without a permission set: {sorted(r.value for r in _unmapped)}")

_outside_matrix = {p for perms in ROLE_PERMISSIONS.values() for p in perms if not is_valid_permission(p)}
if _outside_matrix:
    raise RuntimeError(f"Role permissions outside the matrix: {sorted(_outside_matrix)}")


def get_role_permissions(role: Role) -> FrozenSet[str]:
    """Get the permission set for a role."""
    return ROLE_PERMISSIONS[Role(role)]

"""Access control for the marketplace.

Defines the closed role set, the permission model, and the access policy that
decides whether a view renders or redirects.
"""

from .permissions import Permission, Resource, Action, PERMISSION_DEFINITIONS
from .roles import Role, SellerStatus, ROLE_PERMISSIONS, get_role_permissions
from .checker import PermissionChecker, require_permission
from .policy import AccessDecision, evaluate, redirect_target
from .views import VIEW_RULES, ViewRule, match_view, resolve_view

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "PERMISSION_DEFINITIONS",
    "Role",
    "SellerStatus",
    "ROLE_PERMISSIONS",
    "get_role_permissions",
    "PermissionChecker",
    "require_permission",
    "AccessDecision",
    "evaluate",
    "redirect_target",
    "VIEW_RULES",
    "ViewRule",
    "match_view",
    "resolve_view",
]

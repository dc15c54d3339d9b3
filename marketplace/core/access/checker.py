"""Permission checking utilities.

Workflow operations call ``require_permission`` with the caller's
``SessionContext``; the API layer builds its role dependencies on
``PermissionChecker``.
"""

from typing import TYPE_CHECKING, Union

from marketplace.core.errors import NotAuthenticatedError, NotAuthorizedError
from .permissions import Permission
from .roles import Role, get_role_permissions

if TYPE_CHECKING:
    from marketplace.core.session import SessionContext


class PermissionChecker:
    """Checks if a role grants specific permissions."""

    def __init__(self, role: Role):
        self.role = Role(role)
        self.permissions = get_role_permissions(self.role)

    def has_permission(self, permission: Union[str, Permission]) -> bool:
        """Check if the role has a specific permission."""
        perm_str = str(permission) if isinstance(permission, Permission) else permission
        return perm_str in self.permissions


def require_permission(context: "SessionContext", permission: Union[str, Permission]) -> Role:
    """
    Ensure the caller is authenticated and its role grants ``permission``.

    Returns:
        The caller's role

    Raises:
        NotAuthenticatedError: No session or no loaded profile
        NotAuthorizedError: Role lacks the permission
    """
    if not context.is_authenticated or context.profile is None:
        raise NotAuthenticatedError()

    role = context.role
    if not PermissionChecker(role).has_permission(permission):
        raise NotAuthorizedError(str(permission))
    return role

"""Role checks over a principal's resolved role assignments (admin, franchisee, self)."""

from pizza_core.core.errors import ForbiddenError, UnauthorizedError
from pizza_core.core.roles import Role
from pizza_core.schemas import FranchiseeRole, UserRecord


def has_role(principal: UserRecord | None, role: Role) -> bool:
    if principal is None:
        return False
    return any(assignment.role == role for assignment in principal.roles)


def can_modify_user(principal: UserRecord | None, target_user_id: int) -> bool:
    """A user may modify itself; admins may modify anyone."""
    if principal is None:
        return False
    return principal.id == target_user_id or has_role(principal, Role.admin)


def can_manage_franchise(principal: UserRecord | None, franchise_id: int) -> bool:
    """Admins manage every franchise; a franchisee only the franchise its role points at."""
    if principal is None:
        return False
    if has_role(principal, Role.admin):
        return True
    return any(
        isinstance(assignment, FranchiseeRole) and assignment.franchise_id == franchise_id
        for assignment in principal.roles
    )


def require_principal(principal: UserRecord | None) -> UserRecord:
    """Raise UnauthorizedError when no authenticated principal is present."""
    if principal is None:
        raise UnauthorizedError("unauthorized")
    return principal


def require_admin(principal: UserRecord | None) -> UserRecord:
    principal = require_principal(principal)
    if not has_role(principal, Role.admin):
        raise ForbiddenError("admin role required")
    return principal


def require_user_modification(principal: UserRecord | None, target_user_id: int) -> UserRecord:
    principal = require_principal(principal)
    if not can_modify_user(principal, target_user_id):
        raise ForbiddenError("not allowed to modify this user")
    return principal


def require_franchise_management(principal: UserRecord | None, franchise_id: int) -> UserRecord:
    principal = require_principal(principal)
    if not can_manage_franchise(principal, franchise_id):
        raise ForbiddenError("not allowed to manage this franchise")
    return principal

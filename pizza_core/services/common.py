"""Helpers shared by the repository queries: name filters, paging and role rows."""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.engine import Connection

from pizza_core.core.errors import InternalError
from pizza_core.core.roles import Role
from pizza_core.models import UserRole
from pizza_core.schemas import AdminRole, DinerRole, FranchiseeRole, RoleAssignment

T = TypeVar("T")

DEFAULT_PAGE_LIMIT = 10


def glob_to_like(name_filter: str | None) -> str:
    """Translate a '*' glob into a SQL LIKE pattern. None or empty matches everything."""
    if not name_filter:
        return "%"
    return name_filter.replace("*", "%")


def split_page(rows: Sequence[T], limit: int) -> tuple[list[T], bool]:
    """Rows were fetched with limit + 1; trim to limit and report whether more exist."""
    return list(rows[:limit]), len(rows) > limit


def role_from_row(role: str, object_id: int | None) -> RoleAssignment:
    if role == Role.admin:
        return AdminRole()
    if role == Role.diner:
        return DinerRole()
    if role == Role.franchisee:
        if object_id is None:
            raise InternalError("franchisee role without a franchise")
        return FranchiseeRole(franchise_id=object_id)
    raise InternalError(f"unknown role {role!r}")


def load_roles(conn: Connection, user_ids: Iterable[int]) -> dict[int, list[RoleAssignment]]:
    """Resolve role assignments for many users in one query, keyed by user id."""
    ids = list(user_ids)
    roles: dict[int, list[RoleAssignment]] = {user_id: [] for user_id in ids}
    if not ids:
        return roles
    rows = conn.execute(
        select(UserRole.user_id, UserRole.role, UserRole.object_id)
        .where(UserRole.user_id.in_(ids))
        .order_by(UserRole.id)
    ).all()
    for row in rows:
        roles[row.user_id].append(role_from_row(row.role, row.object_id))
    return roles

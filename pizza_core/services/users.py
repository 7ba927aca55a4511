"""User accounts: registration, authentication, profile updates and cascading deletion."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from pizza_core.core.errors import ConflictError, NotFoundError
from pizza_core.core.roles import Role
from pizza_core.models import AuthSession, DinerOrder, Franchise, OrderItem, User, UserRole
from pizza_core.schemas import (
    DinerRole,
    FranchiseeGrant,
    FranchiseeRole,
    RoleGrant,
    UserRecord,
)
from pizza_core.services.common import (
    DEFAULT_PAGE_LIMIT,
    glob_to_like,
    load_roles,
    split_page,
)

if TYPE_CHECKING:
    from pizza_core.core.database import Database
    from pizza_core.core.security import CredentialHasher

logger = logging.getLogger(__name__)


def _resolve_grant(conn: Connection, grant: RoleGrant) -> tuple[Role, int | None]:
    """Return the (role, object_id) row values for a requested role."""
    if isinstance(grant, FranchiseeGrant):
        franchise_id = conn.execute(
            select(Franchise.id).where(Franchise.name == grant.franchise_name)
        ).scalar()
        if franchise_id is None:
            raise NotFoundError(f"unknown franchise {grant.franchise_name}")
        return Role.franchisee, franchise_id
    if isinstance(grant, FranchiseeRole):
        franchise_id = conn.execute(
            select(Franchise.id).where(Franchise.id == grant.franchise_id)
        ).scalar()
        if franchise_id is None:
            raise NotFoundError(f"unknown franchise {grant.franchise_id}")
        return Role.franchisee, franchise_id
    return Role(grant.role), None


def _email_registered(conn: Connection, email: str) -> bool:
    return conn.execute(select(User.id).where(User.email == email)).first() is not None


class UserQueries:
    """User operations of the entity repository."""

    _db: "Database"
    _hasher: "CredentialHasher"

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        roles: Sequence[RoleGrant] | None = None,
    ) -> UserRecord:
        """
        Register a user with its role assignments in one transaction.

        roles defaults to a single diner role. Raises ConflictError for a registered
        email and NotFoundError when a franchisee role names an unknown franchise.
        """
        grants = list(roles) if roles is not None else [DinerRole()]
        # Hash before acquiring a connection; bcrypt is deliberately slow.
        password_hash = self._hasher.hash(password)
        with self._db.transaction("create user") as conn:
            if _email_registered(conn, email):
                raise ConflictError(f"user {email} already exists")
            try:
                user_id = conn.execute(
                    insert(User).values(name=name, email=email, password_hash=password_hash)
                ).inserted_primary_key[0]
            except IntegrityError as exc:
                # A concurrent registration committed the same email after the check.
                raise ConflictError(f"user {email} already exists") from exc
            for grant in grants:
                role, object_id = _resolve_grant(conn, grant)
                conn.execute(
                    insert(UserRole).values(
                        user_id=user_id, role=role.value, object_id=object_id
                    )
                )
            assigned = load_roles(conn, [user_id])[user_id]
        logger.info("Created user id=%s with roles=%s", user_id, [r.role for r in assigned])
        return UserRecord(id=user_id, name=name, email=email, roles=assigned)

    def authenticate_user(self, email: str, password: str | None = None) -> UserRecord:
        """
        Look up a user by email; when password is given it must verify.
        Unknown email and wrong password both raise NotFoundError.
        """
        with self._db.connection() as conn:
            row = conn.execute(select(User).where(User.email == email)).first()
            roles = load_roles(conn, [row.id])[row.id] if row is not None else []
        if row is None:
            raise NotFoundError("unknown user")
        if password is not None and not self._hasher.verify(password, row.password_hash):
            raise NotFoundError("unknown user")
        return UserRecord(id=row.id, name=row.name, email=row.email, roles=roles)

    def get_user_by_id(self, user_id: int) -> UserRecord:
        with self._db.connection() as conn:
            row = conn.execute(
                select(User.id, User.name, User.email).where(User.id == user_id)
            ).first()
            if row is None:
                raise NotFoundError("unknown user")
            roles = load_roles(conn, [row.id])[row.id]
        return UserRecord(id=row.id, name=row.name, email=row.email, roles=roles)

    def update_user(
        self,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> UserRecord:
        """Update only the supplied fields, then return the reloaded user."""
        changes: dict[str, Any] = {}
        if password:
            changes["password_hash"] = self._hasher.hash(password)
        if email:
            changes["email"] = email
        if name:
            changes["name"] = name
        if changes:
            with self._db.connection() as conn:
                conn.execute(update(User).where(User.id == user_id).values(**changes))
        return self.get_user_by_id(user_id)

    def delete_user(self, email: str) -> None:
        """
        Delete a user and everything it owns: order items, orders, sessions, roles.

        Runs as one transaction; any failure rolls back and raises InternalError.
        An unknown email commits as a no-op.
        """
        with self._db.transaction("delete user") as conn:
            user_id = conn.execute(select(User.id).where(User.email == email)).scalar()
            if user_id is None:
                return
            order_ids = select(DinerOrder.id).where(DinerOrder.diner_id == user_id)
            conn.execute(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
            conn.execute(delete(DinerOrder).where(DinerOrder.diner_id == user_id))
            conn.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
            conn.execute(delete(UserRole).where(UserRole.user_id == user_id))
            conn.execute(delete(User).where(User.id == user_id))
        logger.info("Deleted user id=%s", user_id)

    def list_users(
        self,
        page: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
        name_filter: str | None = "*",
    ) -> tuple[list[UserRecord], bool]:
        """Page through users whose name matches the glob. Returns (users, more)."""
        with self._db.connection() as conn:
            rows = conn.execute(
                select(User.id, User.name, User.email)
                .where(User.name.like(glob_to_like(name_filter)))
                .order_by(User.id)
                .limit(limit + 1)
                .offset(max(page, 0) * limit)
            ).all()
            rows, more = split_page(rows, limit)
            roles = load_roles(conn, [row.id for row in rows])
        users = [
            UserRecord(id=row.id, name=row.name, email=row.email, roles=roles[row.id])
            for row in rows
        ]
        return users, more

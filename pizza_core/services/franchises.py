"""Franchises and stores, including per-store revenue for franchise owners and admins."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Connection

from pizza_core import models
from pizza_core.core.errors import NotFoundError
from pizza_core.core.roles import Role
from pizza_core.models.base import PRICE_TYPE
from pizza_core.schemas import Franchise, FranchiseAdmin, Store, StoreSummary, UserRecord
from pizza_core.services.authorization import has_role
from pizza_core.services.common import DEFAULT_PAGE_LIMIT, glob_to_like, split_page

if TYPE_CHECKING:
    from pizza_core.core.database import Database

logger = logging.getLogger(__name__)


def _load_admins(conn: Connection, franchise_id: int) -> list[FranchiseAdmin]:
    rows = conn.execute(
        select(models.User.id, models.User.name, models.User.email)
        .join(models.UserRole, models.UserRole.user_id == models.User.id)
        .where(
            models.UserRole.role == Role.franchisee.value,
            models.UserRole.object_id == franchise_id,
        )
        .order_by(models.User.id)
    ).all()
    return [FranchiseAdmin(id=row.id, name=row.name, email=row.email) for row in rows]


def _load_stores(conn: Connection, franchise_id: int) -> list[StoreSummary]:
    rows = conn.execute(
        select(models.Store.id, models.Store.name)
        .where(models.Store.franchise_id == franchise_id)
        .order_by(models.Store.id)
    ).all()
    return [StoreSummary(id=row.id, name=row.name) for row in rows]


def _load_stores_with_revenue(conn: Connection, franchise_id: int) -> list[StoreSummary]:
    """Stores of a franchise with the summed item prices of their orders (0 when none)."""
    revenue = func.coalesce(func.sum(models.OrderItem.price), 0, type_=PRICE_TYPE)
    rows = conn.execute(
        select(models.Store.id, models.Store.name, revenue.label("total_revenue"))
        .select_from(models.Store)
        .outerjoin(models.DinerOrder, models.DinerOrder.store_id == models.Store.id)
        .outerjoin(models.OrderItem, models.OrderItem.order_id == models.DinerOrder.id)
        .where(models.Store.franchise_id == franchise_id)
        .group_by(models.Store.id, models.Store.name)
        .order_by(models.Store.id)
    ).all()
    return [
        StoreSummary(id=row.id, name=row.name, total_revenue=row.total_revenue)
        for row in rows
    ]


def _hydrate(conn: Connection, franchise_id: int, name: str) -> Franchise:
    return Franchise(
        id=franchise_id,
        name=name,
        admins=_load_admins(conn, franchise_id),
        stores=_load_stores_with_revenue(conn, franchise_id),
    )


class FranchiseQueries:
    """Franchise and store operations of the entity repository."""

    _db: "Database"

    def create_franchise(self, name: str, admin_emails: Sequence[str]) -> Franchise:
        """
        Create a franchise and grant each admin the franchisee role on it.

        Every email must belong to an existing user; the first unknown one raises
        NotFoundError and nothing is written.
        """
        with self._db.transaction("create franchise") as conn:
            admins: list[FranchiseAdmin] = []
            for email in admin_emails:
                row = conn.execute(
                    select(models.User.id, models.User.name, models.User.email).where(
                        models.User.email == email
                    )
                ).first()
                if row is None:
                    raise NotFoundError(f"unknown user for franchise admin {email} provided")
                admins.append(FranchiseAdmin(id=row.id, name=row.name, email=row.email))

            franchise_id = conn.execute(
                insert(models.Franchise).values(name=name)
            ).inserted_primary_key[0]
            for admin in admins:
                conn.execute(
                    insert(models.UserRole).values(
                        user_id=admin.id,
                        role=Role.franchisee.value,
                        object_id=franchise_id,
                    )
                )
        logger.info("Created franchise id=%s with %s admin(s)", franchise_id, len(admins))
        return Franchise(id=franchise_id, name=name, admins=admins, stores=[])

    def delete_franchise(self, franchise_id: int) -> None:
        """Delete a franchise, its stores and the franchisee roles scoped to it, atomically."""
        with self._db.transaction("delete franchise") as conn:
            conn.execute(delete(models.Store).where(models.Store.franchise_id == franchise_id))
            conn.execute(
                delete(models.UserRole).where(
                    models.UserRole.role == Role.franchisee.value,
                    models.UserRole.object_id == franchise_id,
                )
            )
            conn.execute(delete(models.Franchise).where(models.Franchise.id == franchise_id))
        logger.info("Deleted franchise id=%s", franchise_id)

    def get_franchise(self, franchise_id: int) -> Franchise:
        with self._db.connection() as conn:
            row = conn.execute(
                select(models.Franchise.id, models.Franchise.name).where(
                    models.Franchise.id == franchise_id
                )
            ).first()
            if row is None:
                raise NotFoundError(f"unknown franchise {franchise_id}")
            return _hydrate(conn, row.id, row.name)

    def list_franchises(
        self,
        requester: UserRecord | None,
        page: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
        name_filter: str | None = "*",
    ) -> tuple[list[Franchise], bool]:
        """
        Page through franchises whose name matches the glob. Returns (franchises, more).

        Admin requesters get admins and per-store revenue; everyone else gets store names only.
        """
        hydrate = has_role(requester, Role.admin)
        with self._db.connection() as conn:
            rows = conn.execute(
                select(models.Franchise.id, models.Franchise.name)
                .where(models.Franchise.name.like(glob_to_like(name_filter)))
                .order_by(models.Franchise.id)
                .limit(limit + 1)
                .offset(max(page, 0) * limit)
            ).all()
            rows, more = split_page(rows, limit)
            if hydrate:
                franchises = [_hydrate(conn, row.id, row.name) for row in rows]
            else:
                franchises = [
                    Franchise(id=row.id, name=row.name, stores=_load_stores(conn, row.id))
                    for row in rows
                ]
        return franchises, more

    def get_franchises_for_user(self, user_id: int) -> list[Franchise]:
        """Franchises the user administers as franchisee, fully hydrated."""
        owned = select(models.UserRole.object_id).where(
            models.UserRole.user_id == user_id,
            models.UserRole.role == Role.franchisee.value,
        )
        with self._db.connection() as conn:
            rows = conn.execute(
                select(models.Franchise.id, models.Franchise.name)
                .where(models.Franchise.id.in_(owned))
                .order_by(models.Franchise.id)
            ).all()
            return [_hydrate(conn, row.id, row.name) for row in rows]

    def create_store(self, franchise_id: int, name: str) -> Store:
        with self._db.connection() as conn:
            store_id = conn.execute(
                insert(models.Store).values(franchise_id=franchise_id, name=name)
            ).inserted_primary_key[0]
        return Store(id=store_id, franchise_id=franchise_id, name=name)

    def delete_store(self, franchise_id: int, store_id: int) -> None:
        with self._db.connection() as conn:
            conn.execute(
                delete(models.Store).where(
                    models.Store.franchise_id == franchise_id,
                    models.Store.id == store_id,
                )
            )

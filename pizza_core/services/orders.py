"""Menu catalog and diner orders."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from pizza_core import models
from pizza_core.core.errors import NotFoundError
from pizza_core.schemas import MenuItem, NewOrderItem, Order, OrderLine, OrderPage

if TYPE_CHECKING:
    from pizza_core.core.config import Settings
    from pizza_core.core.database import Database

logger = logging.getLogger(__name__)


class OrderQueries:
    """Menu and order operations of the entity repository."""

    _db: "Database"
    _settings: "Settings"

    def list_menu(self) -> list[MenuItem]:
        with self._db.connection() as conn:
            rows = conn.execute(select(models.MenuItem).order_by(models.MenuItem.id)).all()
        return [
            MenuItem(
                id=row.id,
                title=row.title,
                description=row.description,
                image=row.image,
                price=row.price,
            )
            for row in rows
        ]

    def add_menu_item(self, item: MenuItem) -> MenuItem:
        with self._db.connection() as conn:
            menu_id = conn.execute(
                insert(models.MenuItem).values(
                    title=item.title,
                    description=item.description,
                    image=item.image,
                    price=item.price,
                )
            ).inserted_primary_key[0]
        return item.model_copy(update={"id": menu_id})

    def update_menu_item_price(self, menu_id: int, price: Decimal) -> MenuItem:
        """Catalog edit. Orders already placed keep the price they were placed at."""
        with self._db.connection() as conn:
            result = conn.execute(
                update(models.MenuItem).where(models.MenuItem.id == menu_id).values(price=price)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"unknown menu item {menu_id}")
            row = conn.execute(
                select(models.MenuItem).where(models.MenuItem.id == menu_id)
            ).one()
        return MenuItem(
            id=row.id,
            title=row.title,
            description=row.description,
            image=row.image,
            price=row.price,
        )

    def list_orders_for_user(self, user_id: int, page: int = 1) -> OrderPage:
        """One page (ORDERS_PER_PAGE orders, 1-based) of a diner's orders with their items."""
        per_page = self._settings.ORDERS_PER_PAGE
        with self._db.connection() as conn:
            rows = conn.execute(
                select(
                    models.DinerOrder.id,
                    models.DinerOrder.franchise_id,
                    models.DinerOrder.store_id,
                    models.DinerOrder.date,
                )
                .where(models.DinerOrder.diner_id == user_id)
                .order_by(models.DinerOrder.id)
                .limit(per_page)
                .offset(max(page - 1, 0) * per_page)
            ).all()
            lines: dict[int, list[OrderLine]] = {row.id: [] for row in rows}
            if lines:
                item_rows = conn.execute(
                    select(
                        models.OrderItem.id,
                        models.OrderItem.order_id,
                        models.OrderItem.menu_id,
                        models.OrderItem.description,
                        models.OrderItem.price,
                    )
                    .where(models.OrderItem.order_id.in_(list(lines)))
                    .order_by(models.OrderItem.id)
                ).all()
                for item in item_rows:
                    lines[item.order_id].append(
                        OrderLine(
                            id=item.id,
                            menu_id=item.menu_id,
                            description=item.description,
                            price=item.price,
                        )
                    )
        orders = [
            Order(
                id=row.id,
                franchise_id=row.franchise_id,
                store_id=row.store_id,
                date=row.date,
                items=lines[row.id],
            )
            for row in rows
        ]
        return OrderPage(diner_id=user_id, orders=orders, page=page)

    def create_order(
        self,
        user_id: int,
        franchise_id: int,
        store_id: int,
        items: Sequence[NewOrderItem],
    ) -> Order:
        """
        Place an order for a diner.

        Each item's menu_id must exist (NotFoundError otherwise, nothing is kept). The
        caller's price is stored as the item's snapshot; the menu price is not re-read.
        """
        placed_at = datetime.now(timezone.utc)
        with self._db.transaction("create order") as conn:
            order_id = conn.execute(
                insert(models.DinerOrder).values(
                    diner_id=user_id,
                    franchise_id=franchise_id,
                    store_id=store_id,
                    date=placed_at,
                )
            ).inserted_primary_key[0]
            lines: list[OrderLine] = []
            for item in items:
                menu_id = conn.execute(
                    select(models.MenuItem.id).where(models.MenuItem.id == item.menu_id)
                ).scalar()
                if menu_id is None:
                    raise NotFoundError(f"unknown menu item {item.menu_id}")
                line_id = conn.execute(
                    insert(models.OrderItem).values(
                        order_id=order_id,
                        menu_id=menu_id,
                        description=item.description,
                        price=item.price,
                    )
                ).inserted_primary_key[0]
                lines.append(
                    OrderLine(
                        id=line_id,
                        menu_id=menu_id,
                        description=item.description,
                        price=item.price,
                    )
                )
        logger.info(
            "Created order id=%s for diner=%s store=%s items=%s",
            order_id,
            user_id,
            store_id,
            len(lines),
        )
        return Order(
            id=order_id,
            franchise_id=franchise_id,
            store_id=store_id,
            date=placed_at,
            items=lines,
        )

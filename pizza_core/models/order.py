"""Tables for diner orders and their line items."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from pizza_core.models.base import PRICE_TYPE, Base


class DinerOrder(Base):
    """
    Order placed by a diner against a store.

    franchise_id and store_id are plain references: deleting a store keeps order history.
    """

    __tablename__ = "diner_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    diner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    franchise_id = Column(Integer, nullable=False, index=True)
    store_id = Column(Integer, nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)


class OrderItem(Base):
    """Line item. price is a snapshot taken when the order was placed."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("diner_orders.id"), nullable=False, index=True)
    menu_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    description = Column(String(255), nullable=False)
    price = Column(PRICE_TYPE, nullable=False)

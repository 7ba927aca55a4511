"""SQLAlchemy table models."""

from pizza_core.models.base import Base
from pizza_core.models.franchise import Franchise, Store
from pizza_core.models.menu import MenuItem
from pizza_core.models.order import DinerOrder, OrderItem
from pizza_core.models.session import AuthSession
from pizza_core.models.user import User, UserRole

__all__ = [
    "AuthSession",
    "Base",
    "DinerOrder",
    "Franchise",
    "MenuItem",
    "OrderItem",
    "Store",
    "User",
    "UserRole",
]

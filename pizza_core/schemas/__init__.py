"""Pydantic types exchanged with callers of the core."""

from pizza_core.schemas.franchise import (
    Franchise,
    FranchiseAdmin,
    Store,
    StoreSummary,
)
from pizza_core.schemas.order import MenuItem, NewOrderItem, Order, OrderLine, OrderPage
from pizza_core.schemas.user import (
    AdminRole,
    DinerRole,
    FranchiseeGrant,
    FranchiseeRole,
    RoleAssignment,
    RoleGrant,
    UserRecord,
)

__all__ = [
    "AdminRole",
    "DinerRole",
    "Franchise",
    "FranchiseAdmin",
    "FranchiseeGrant",
    "FranchiseeRole",
    "MenuItem",
    "NewOrderItem",
    "Order",
    "OrderLine",
    "OrderPage",
    "RoleAssignment",
    "RoleGrant",
    "Store",
    "StoreSummary",
    "UserRecord",
]

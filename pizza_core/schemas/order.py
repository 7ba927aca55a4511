"""Menu and order types."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class MenuItem(BaseModel):
    """Catalog entry; id is None until the item has been stored."""

    id: int | None = None
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    image: str = ""
    price: Decimal = Field(..., ge=0)


class NewOrderItem(BaseModel):
    """Line item as submitted by the diner. price is stored as given."""

    menu_id: int
    description: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)


class OrderLine(BaseModel):
    id: int
    menu_id: int
    description: str
    price: Decimal


class Order(BaseModel):
    id: int
    franchise_id: int
    store_id: int
    date: datetime
    items: list[OrderLine] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))


class OrderPage(BaseModel):
    """One page of a diner's order history."""

    diner_id: int
    orders: list[Order]
    page: int

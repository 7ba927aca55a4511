"""SQLAlchemy declarative Base and shared column types."""

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase

# Menu and order item prices; decimals all the way through, never floats.
PRICE_TYPE = Numeric(12, 8)


class Base(DeclarativeBase):
    """Declarative base for all tables."""

    pass

"""Table for the shared menu catalog."""

from sqlalchemy import Column, Integer, String, Text

from pizza_core.models.base import PRICE_TYPE, Base


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(String(1024), nullable=False, default="")
    price = Column(PRICE_TYPE, nullable=False)

"""Tables for users and their role assignments."""

from sqlalchemy import Column, ForeignKey, Integer, String

from pizza_core.models.base import Base


class User(Base):
    """Registered user. email is the external key; id is internal and stable."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)


class UserRole(Base):
    """
    One role assignment of a user.

    role: 'diner', 'admin' or 'franchisee'. object_id holds the franchise id for
    franchisee assignments and is NULL otherwise.
    """

    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(32), nullable=False)
    object_id = Column(Integer, nullable=True, index=True)

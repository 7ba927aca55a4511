"""Repository, session validation and authorization."""

from pizza_core.services.repository import EntityRepository
from pizza_core.services.sessions import SessionValidator, derive_fragment

__all__ = ["EntityRepository", "SessionValidator", "derive_fragment"]

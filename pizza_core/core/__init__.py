"""Core configuration, errors, hashing and database access."""

from pizza_core.core.config import Settings, get_settings, settings
from pizza_core.core.database import Database

__all__ = ["Database", "Settings", "get_settings", "settings"]

"""Schema creation and bootstrap admin seeding on startup."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import insert, select

from pizza_core.core.roles import Role
from pizza_core.models import Base, User, UserRole

if TYPE_CHECKING:
    from pizza_core.core.config import Settings
    from pizza_core.core.database import Database
    from pizza_core.core.security import CredentialHasher

logger = logging.getLogger(__name__)


def bootstrap_schema(
    database: "Database",
    hasher: "CredentialHasher",
    settings: "Settings",
) -> bool:
    """
    Create any missing tables and seed one admin user when no admin exists.

    Tables may already be present (created by `alembic upgrade head`, or left behind
    by an interrupted startup); seeding depends only on whether an admin role row
    exists. The admin's name, email and password come from BOOTSTRAP_ADMIN_* settings;
    the defaults are a documented, well-known credential that deployments must rotate.
    Returns True when the admin was seeded.
    """
    Base.metadata.create_all(database.engine, checkfirst=True)
    with database.transaction("seed bootstrap admin") as conn:
        has_admin = conn.execute(
            select(UserRole.id).where(UserRole.role == Role.admin.value).limit(1)
        ).first()
        if has_admin is not None:
            return False
        taken = conn.execute(
            select(User.id).where(User.email == settings.BOOTSTRAP_ADMIN_EMAIL)
        ).first()
        if taken is not None:
            logger.warning(
                "No admin exists and bootstrap email %s belongs to user id=%s; not seeding",
                settings.BOOTSTRAP_ADMIN_EMAIL,
                taken.id,
            )
            return False
        password_hash = hasher.hash(settings.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value())
        user_id = conn.execute(
            insert(User).values(
                name=settings.BOOTSTRAP_ADMIN_NAME,
                email=settings.BOOTSTRAP_ADMIN_EMAIL,
                password_hash=password_hash,
            )
        ).inserted_primary_key[0]
        conn.execute(
            insert(UserRole).values(user_id=user_id, role=Role.admin.value, object_id=None)
        )
    logger.info(
        "Seeded bootstrap admin %s; rotate its password",
        settings.BOOTSTRAP_ADMIN_EMAIL,
    )
    return True

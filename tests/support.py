"""Shared fixtures for integration tests: a throwaway SQLite database behind the real pool."""

import os
import shutil
import tempfile
import unittest
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import jwt
from sqlalchemy import func, select

from pizza_core.core.config import Settings
from pizza_core.schemas import MenuItem
from pizza_core.services.repository import EntityRepository

TOKEN_SECRET = "test-signing-secret"


def make_settings(db_path: str, **overrides: object) -> Settings:
    """Settings pointing at a SQLite file, with cheap bcrypt rounds for tests."""
    values: dict[str, object] = {
        "APP_ENV": "test",
        "DATABASE_URL": f"sqlite:///{db_path}",
        "BCRYPT_ROUNDS": 4,
        "DB_POOL_SIZE": 4,
        "DB_POOL_TIMEOUT_SEC": 5.0,
        "ORDERS_PER_PAGE": 10,
    }
    values.update(overrides)
    return Settings(**values)


def make_token(user_id: int) -> str:
    """Signed JWT as the routing layer would issue it after login."""
    payload = {
        "sub": str(user_id),
        "iat": datetime.now(timezone.utc),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, TOKEN_SECRET, algorithm="HS256")


class RepositoryTestCase(unittest.TestCase):
    """Opens a fresh repository (schema bootstrapped) per test and removes it afterwards."""

    settings_overrides: dict[str, object] = {}

    def setUp(self) -> None:
        self._tmpdir = tempfile.mkdtemp(prefix="pizza-core-")
        self.settings = make_settings(
            os.path.join(self._tmpdir, "pizza.db"), **self.settings_overrides
        )
        self.repo = EntityRepository.from_settings(self.settings)
        self.repo.open()
        self.db = self.repo.database

    def tearDown(self) -> None:
        self.repo.close()
        shutil.rmtree(self._tmpdir, ignore_errors=True)

    def count_rows(self, table: type, *criteria: object) -> int:
        stmt = select(func.count()).select_from(table)
        if criteria:
            stmt = stmt.where(*criteria)
        with self.db.connection() as conn:
            return conn.execute(stmt).scalar_one()

    def add_pizza(self, title: str = "Veggie", price: str = "0.0038") -> MenuItem:
        return self.repo.add_menu_item(
            MenuItem(
                title=title,
                description="A garden of delight",
                image="pizza1.png",
                price=Decimal(price),
            )
        )

    def bootstrap_admin(self):
        return self.repo.authenticate_user(
            self.settings.BOOTSTRAP_ADMIN_EMAIL,
            self.settings.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value(),
        )

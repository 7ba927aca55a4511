"""Entity repository: users, franchises, stores, menu and orders behind one pooled database."""

from types import TracebackType

from pizza_core.core.config import Settings
from pizza_core.core.database import Database
from pizza_core.core.security import CredentialHasher
from pizza_core.services.bootstrap import bootstrap_schema
from pizza_core.services.franchises import FranchiseQueries
from pizza_core.services.orders import OrderQueries
from pizza_core.services.users import UserQueries


class EntityRepository(UserQueries, FranchiseQueries, OrderQueries):
    """
    Explicitly constructed repository with an open/close lifecycle.

    open() connects the pool and bootstraps schema and admin; close() disposes the pool.
    Safe to share between threads: all state lives in the database.
    """

    def __init__(
        self,
        database: Database,
        hasher: CredentialHasher,
        settings: Settings,
    ) -> None:
        self._db = database
        self._hasher = hasher
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "EntityRepository":
        return cls(Database(settings), CredentialHasher(settings.BCRYPT_ROUNDS), settings)

    @property
    def database(self) -> Database:
        return self._db

    def open(self) -> None:
        self._db.open()
        try:
            bootstrap_schema(self._db, self._hasher, self._settings)
        except BaseException:
            self._db.close()
            raise

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> "EntityRepository":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

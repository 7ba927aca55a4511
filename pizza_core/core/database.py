"""Connection pool and transaction scoping over a SQLAlchemy engine."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from pizza_core.core.config import Settings
from pizza_core.core.errors import BusyError, InternalError, OrderingError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class Database:
    """
    Owns a bounded pool of connections.

    Every acquire() is paired with exactly one release(); every begin_transaction()
    with exactly one commit() or rollback(). Prefer the connection() and
    transaction() context managers, which enforce both on every exit path.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise InternalError("database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        if self._engine is not None:
            return
        url = self._settings.DATABASE_URL
        connect_args = {}
        if url.startswith("sqlite"):
            # Pooled sqlite connections are handed to whichever thread acquires them.
            connect_args["check_same_thread"] = False
        self._engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=self._settings.DB_POOL_SIZE,
            max_overflow=0,
            pool_timeout=self._settings.DB_POOL_TIMEOUT_SEC,
            pool_pre_ping=True,
            echo=self._settings.DEBUG,
            connect_args=connect_args,
        )
        if url.startswith("sqlite"):
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None

    def acquire(self) -> Connection:
        """Check a connection out of the pool; BusyError when the pool wait times out."""
        try:
            return self.engine.connect()
        except PoolTimeoutError as exc:
            logger.warning(
                "Connection pool exhausted (size=%s, timeout=%ss)",
                self._settings.DB_POOL_SIZE,
                self._settings.DB_POOL_TIMEOUT_SEC,
            )
            raise BusyError("no database connection available") from exc

    def begin_transaction(self, conn: Connection) -> None:
        if conn.in_transaction():
            raise InternalError("nested transactions are not supported")
        try:
            conn.begin()
        except InvalidRequestError as exc:
            raise InternalError("unable to begin transaction") from exc

    def commit(self, conn: Connection) -> None:
        conn.commit()

    def rollback(self, conn: Connection) -> None:
        conn.rollback()

    def release(self, conn: Connection) -> None:
        # Closing returns the connection to the pool and rolls back anything left open.
        conn.close()

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """
        Scope for single-statement work. Commits on success, rolls back on any error.
        Storage errors propagate unchanged.
        """
        conn = self.acquire()
        try:
            yield conn
            if conn.in_transaction():
                self.commit(conn)
        except BaseException:
            if conn.in_transaction():
                self.rollback(conn)
            raise
        finally:
            self.release(conn)

    @contextmanager
    def transaction(self, operation: str) -> Iterator[Connection]:
        """
        Scope for multi-statement writes held on one connection.

        OrderingError subclasses (e.g. NotFoundError) are re-raised after rollback;
        any other failure is rolled back and raised as InternalError with the cause attached.
        """
        conn = self.acquire()
        try:
            self.begin_transaction(conn)
            yield conn
            self.commit(conn)
        except OrderingError:
            self._rollback_quietly(conn, operation)
            raise
        except Exception as exc:
            logger.exception("Transaction %s failed; rolling back", operation)
            self._rollback_quietly(conn, operation)
            raise InternalError(f"unable to {operation}") from exc
        except BaseException:
            self._rollback_quietly(conn, operation)
            raise
        finally:
            self.release(conn)

    def _rollback_quietly(self, conn: Connection, operation: str) -> None:
        if not conn.in_transaction():
            return
        try:
            self.rollback(conn)
        except SQLAlchemyError:
            # release() still discards the connection state; keep the original error.
            logger.exception("Rollback of %s failed", operation)

    def check_connected(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            with self.connection() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OrderingError):
            return False

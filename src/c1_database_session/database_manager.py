"""Database manager and unit-of-work utilities for Flowboard."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event, make_url
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.c1_database_session.base import Base
from src.core.exceptions import ConcurrencyConflict

logger = logging.getLogger(__name__)

# Postgres SQLSTATEs for serialization failure, deadlock and lock-not-available
_RETRYABLE_PGCODES = {"40001", "40P01", "55P03"}


class DatabaseManager:
    """Manager for database operations."""

    def __init__(
        self,
        database_url: str = "sqlite:///flowboard.db",
        echo: bool = False,
        busy_timeout_seconds: float = 5.0,
    ):
        """Initialize database connection.

        Args:
            database_url: SQLAlchemy URL of the backing store
            echo: Log SQL statements
            busy_timeout_seconds: SQLite wait for the write lock before failing
        """
        self.database_url = database_url
        self.busy_timeout_seconds = busy_timeout_seconds

        engine_kwargs = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            database_path = make_url(database_url).database
            if not database_path or database_path == ":memory:":
                engine_kwargs["poolclass"] = StaticPool
            else:
                Path(database_path).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(database_url, **engine_kwargs)
        if self.is_sqlite:
            self._configure_sqlite()

        # Writers get their own engine view so SQLite can take the write lock up front
        self.write_engine = self.engine.execution_options(flowboard_begin="IMMEDIATE")
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)
        self.WriteSessionLocal = sessionmaker(autoflush=False, bind=self.write_engine)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _configure_sqlite(self):
        """Take over transaction control from pysqlite.

        pysqlite defers BEGIN until the first DML statement, which lets two
        writers read the same positions before either holds the lock. Emitting
        BEGIN ourselves makes write transactions acquire the lock first.
        """
        busy_timeout_ms = int(self.busy_timeout_seconds * 1000)

        @event.listens_for(self.engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
            cursor.close()

        @event.listens_for(self.engine, "begin")
        def _on_begin(conn):
            mode = conn.get_execution_options().get("flowboard_begin", "DEFERRED")
            conn.exec_driver_sql(f"BEGIN {mode}")

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Created board tables on {self.engine.url.render_as_string(hide_password=True)}")

    def get_session(self) -> Session:
        """Get a read session."""
        return self.SessionLocal()

    def drop_tables(self):
        """Drop all database tables (for testing)."""
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Provide an all-or-nothing write scope.

        Commits when the block exits normally, rolls back on any exception.
        Lock timeouts and serialization failures from the store surface as
        ConcurrencyConflict so callers can re-fetch and resubmit.
        """
        db = self.WriteSessionLocal()
        try:
            yield db
            db.commit()
        except DBAPIError as e:
            db.rollback()
            if self._is_lock_error(e):
                logger.warning(f"[TRANSACTION] Lock conflict, rolled back: {e.orig}")
                raise ConcurrencyConflict(
                    "The board was changed by another request; re-fetch and retry"
                ) from e
            raise
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """Provide a read-only session that is always closed."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    @staticmethod
    def _is_lock_error(error: DBAPIError) -> bool:
        if getattr(error.orig, "pgcode", None) in _RETRYABLE_PGCODES:
            return True
        message = str(error.orig).lower()
        return "database is locked" in message or "database table is locked" in message

"""The SQLAlchemy plumbing of the store.

Models are declared against `Base` here to avoid circular imports between the
models and the store. The store itself is opened explicitly with `Store.open()`
and owned by whoever composes the application.
"""

import logging
import os
from pathlib import Path

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from timekeeper.core.errors import StorageUnavailable
from timekeeper.core.timezone import format_timestamp, parse_timestamp

log = logging.getLogger(__name__)

MEMORY_URL = 'sqlite://'


class Base(DeclarativeBase):
    """Declarative base of every model."""


class LocalDateTime(TypeDecorator):
    """Aware datetime stored as ISO-8601 text with its local offset.

    Compare columns of this type through `sa.func.julianday()` so that values
    written under different offsets still order correctly.
    """
    impl = sa.Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return format_timestamp(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return parse_timestamp(value)


def _make_ddl_transactional(engine: sa.engine.Engine):
    """Let SQLAlchemy, not the sqlite3 driver, decide where transactions begin.

    Without this the driver commits implicitly before DDL, and a failed
    migration step could leave half of its changes behind.
    """
    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys = ON')
        cursor.close()

    @event.listens_for(engine, 'begin')
    def _on_begin(connection):
        connection.exec_driver_sql('BEGIN')


def create_engine(url: str) -> sa.engine.Engine:
    """Create an engine for a SQLite URL with transactional DDL."""
    if url == MEMORY_URL:
        # A single shared connection, otherwise every checkout gets an empty database
        engine = sa.create_engine(url,
                                  connect_args={'check_same_thread': False},
                                  poolclass=StaticPool)
    else:
        engine = sa.create_engine(url)
    _make_ddl_transactional(engine)
    return engine


class Store:
    """An open time-tracking store: an engine plus a session factory.

    Use `Store.open(path)` for a file on disk, `Store.in_memory()` for a
    throwaway store, and `Store.open_or_fallback(path)` to degrade to memory
    when the disk is unavailable.
    """

    def __init__(self, engine: sa.engine.Engine, path=None):
        self.engine = engine
        self.path = path
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def open(cls, path) -> 'Store':
        """Open (creating if needed) the store at `path`.

        Raises StorageUnavailable if the directory or the file cannot be used.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise StorageUnavailable(f'Failed to create app path at {path.parent}: {err}',
                                     operation='open', record=str(path)) from err

        if path.exists() and not os.access(path, os.R_OK | os.W_OK):
            raise StorageUnavailable(f'Failed to open {path}: permission denied',
                                     operation='open', record=str(path))

        engine = create_engine(f'sqlite:///{path}')
        try:
            with engine.connect() as connection:
                connection.exec_driver_sql('SELECT 1')
        except SQLAlchemyError as err:
            engine.dispose()
            raise StorageUnavailable(f'Failed to open {path}: {err}',
                                     operation='open', record=str(path)) from err

        log.info(f'Opened the store at {path}')
        return cls(engine, path)

    @classmethod
    def in_memory(cls) -> 'Store':
        """Open a fresh store that lives only as long as this object."""
        return cls(create_engine(MEMORY_URL))

    @classmethod
    def open_or_fallback(cls, path) -> 'Store':
        """Open the store at `path`, or an in-memory one if that fails.

        Nothing recorded in the fallback store survives a restart.
        """
        if path is None:
            return cls.in_memory()
        try:
            return cls.open(path)
        except StorageUnavailable as err:
            log.warning(f'Saving disabled, falling back to an in-memory store: {err}')
            return cls.in_memory()

    @property
    def is_memory(self) -> bool:
        return self.path is None

    def session(self) -> Session:
        """Create a new ORM session bound to this store."""
        return self._session_factory()

    def close(self):
        self.engine.dispose()

    def migrate(self) -> int:
        """Bring the schema up to date. Raises MigrationError on failure."""
        from timekeeper.migrations import migrate

        with self.engine.connect() as connection:
            return migrate(connection)

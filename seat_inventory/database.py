"""Database helpers: engine setup and the transactional store handle."""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, TypeVar, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.expression import Executable

from .errors import StoreError
from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite+pysqlite:///seat_inventory.db"

_BUSY_TIMEOUT_SECONDS = float(os.environ.get("SEAT_INVENTORY_BUSY_TIMEOUT", 30))

T = TypeVar("T")
Statement = Union[str, Executable]


def resolve_db_url(db_url: Optional[str] = None) -> str:
    """Return ``db_url`` or the one configured through ``SEAT_INVENTORY_DB_URL``."""

    return db_url or os.environ.get("SEAT_INVENTORY_DB_URL", DEFAULT_DB_URL)


def _echo_from_env() -> bool:
    return os.environ.get("SEAT_INVENTORY_ECHO_SQL", "") in ("1", "true", "yes")


def _configure_sqlite(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write, which lets two transactions
    # read the same free seat. Take the write lock when the transaction opens.
    # SQLite locks the whole file, so this serializes every transaction,
    # including ones touching different flights; per-flight concurrency needs
    # a backend with row locks.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # pragma: no cover - driver hook
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(
    db_url: Optional[str] = None,
    *,
    echo: Optional[bool] = None,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair configured for SQLite by default."""

    db_url = resolve_db_url(db_url)
    if echo is None:
        echo = _echo_from_env()

    if db_url.startswith("sqlite"):
        final_connect_args: Dict[str, object] = {
            "check_same_thread": False,
            "timeout": _BUSY_TIMEOUT_SECONDS,
        }
        if connect_args:
            final_connect_args.update(connect_args)
    else:
        final_connect_args = dict(connect_args or {})

    if db_url.endswith(":memory:") or db_url.endswith("://"):
        engine = create_engine(
            db_url,
            echo=echo,
            future=True,
            connect_args=final_connect_args,
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            db_url,
            echo=echo,
            future=True,
            connect_args=final_connect_args,
        )
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    return engine, session_factory


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.warning("Transaction rolled back: %s", exc)
        raise StoreError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _as_statement(statement: Statement) -> Executable:
    if isinstance(statement, str):
        return text(statement)
    return statement


class Store:
    """Single handle over the relational store.

    Opened once per process and passed to the repository, the reservation
    engine and the query helpers. Every unit of work runs inside
    :meth:`transaction`, which commits on normal completion and rolls back on
    any error.
    """

    def __init__(self, session_factory: sessionmaker[Session], engine: Optional[Engine] = None):
        self.session_factory = session_factory
        self.engine = engine if engine is not None else session_factory.kw.get("bind")

    @classmethod
    def open(cls, db_url: Optional[str] = None, *, echo: Optional[bool] = None) -> "Store":
        engine, session_factory = create_session_factory(db_url, echo=echo)
        return cls(session_factory, engine)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"could not create schema: {exc}") from exc

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def transaction(self):
        """Context manager yielding a session bound to one transaction."""

        return session_scope(self.session_factory)

    def with_transaction(self, body: Callable[[Session], T]) -> T:
        """Run ``body(session)`` atomically and return its result."""

        with self.transaction() as session:
            return body(session)

    def execute(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> int:
        """Run a single parameterized statement and return the affected row count."""

        with self.transaction() as session:
            result = session.execute(_as_statement(statement), dict(params or {}))
            return result.rowcount

    def query(self, statement: Statement, params: Optional[Mapping[str, Any]] = None) -> List[Row]:
        """Run a parameterized query and return all rows."""

        with self.transaction() as session:
            return list(session.execute(_as_statement(statement), dict(params or {})).all())


def init_db(db_url: Optional[str] = None, *, echo: Optional[bool] = None) -> Store:
    """Create all tables and return a store handle."""

    store = Store.open(db_url, echo=echo)
    store.create_schema()
    logger.info("Initialized schema at %s", store.engine.url)
    return store


__all__ = [
    "DEFAULT_DB_URL",
    "Store",
    "create_session_factory",
    "init_db",
    "resolve_db_url",
    "session_scope",
]

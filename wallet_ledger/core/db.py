from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlmodel import Session, SQLModel, create_engine

from ..models import db as _db_models  # noqa: F401 - ensure models register with metadata
from .config import get_settings
from .errors import LockTimeoutError, StoreUnavailableError


logger = logging.getLogger(__name__)

# lock_not_available, deadlock_detected, serialization_failure
_LOCK_FAILURE_SQLSTATES = frozenset({"55P03", "40P01", "40001"})
_LOCK_FAILURE_MESSAGES = ("database is locked", "deadlock", "lock wait timeout", "lock timeout")


def _enable_sqlite_write_locks(engine: Engine) -> None:
    # SQLite has no row locks; BEGIN IMMEDIATE takes the writer lock up front
    # so every atomic unit is exclusive and waits at most the busy timeout.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for_url(database_url: str, lock_timeout_seconds: float | None = None):
    if lock_timeout_seconds is None:
        lock_timeout_seconds = get_settings().lock_timeout_seconds

    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": lock_timeout_seconds}
    elif database_url.startswith("postgresql"):
        connect_args = {"options": f"-c lock_timeout={int(lock_timeout_seconds * 1000)}"}

    new_engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if database_url.startswith("sqlite"):
        _enable_sqlite_write_locks(new_engine)
    return new_engine


settings = get_settings()
engine = create_engine_for_url(settings.database_url, settings.lock_timeout_seconds)


def init_db() -> None:
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_engine():
    return engine


def set_engine(new_engine) -> None:
    global engine
    engine = new_engine


def _is_lock_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _LOCK_FAILURE_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _LOCK_FAILURE_MESSAGES)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Map driver-level failures onto the ledger's retryable error kinds."""
    try:
        yield
    except OperationalError as exc:
        if _is_lock_failure(exc):
            logger.warning("store.lock_timeout", extra={"error": str(exc.orig)})
            raise LockTimeoutError("Timed out waiting for an account lock") from exc
        logger.error("store.unavailable", extra={"error": str(exc.orig)})
        raise StoreUnavailableError("Ledger store is unavailable") from exc
    except DBAPIError as exc:
        if not exc.connection_invalidated:
            raise
        logger.error("store.unavailable", extra={"error": str(exc.orig)})
        raise StoreUnavailableError("Ledger store connection was lost") from exc

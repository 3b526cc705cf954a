import sqlite3

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlmodel import Session, SQLModel

from ..core.db import create_engine_for_url, translate_store_errors
from ..core.errors import LockTimeoutError, StoreUnavailableError
from ..models import TransactionType
from ..services import AccountService, TransactionService


class _PgError(Exception):
    def __init__(self, message: str, pgcode: str) -> None:
        super().__init__(message)
        self.pgcode = pgcode


def test_sqlite_busy_is_lock_timeout() -> None:
    with pytest.raises(LockTimeoutError) as excinfo:
        with translate_store_errors():
            raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
    assert excinfo.value.retryable is True


def test_postgres_deadlock_is_lock_timeout() -> None:
    with pytest.raises(LockTimeoutError):
        with translate_store_errors():
            raise OperationalError("SELECT", {}, _PgError("deadlock detected", "40P01"))


def test_unreachable_database_is_store_unavailable() -> None:
    with pytest.raises(StoreUnavailableError) as excinfo:
        with translate_store_errors():
            raise OperationalError("SELECT", {}, Exception("unable to open database file"))
    assert excinfo.value.code == "store_unavailable"


def test_invalidated_connection_is_store_unavailable() -> None:
    with pytest.raises(StoreUnavailableError):
        with translate_store_errors():
            raise DBAPIError("SELECT", {}, Exception("server closed"), connection_invalidated=True)


def test_other_driver_errors_propagate() -> None:
    with pytest.raises(DBAPIError):
        with translate_store_errors():
            raise DBAPIError("SELECT", {}, Exception("boom"))


def test_held_write_lock_times_out_then_same_key_succeeds(tmp_path) -> None:
    path = tmp_path / "locked.db"
    engine = create_engine_for_url(f"sqlite:///{path}", lock_timeout_seconds=0.2)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        account = AccountService(session).create_account("Held", 0)

    blocker = sqlite3.connect(path, isolation_level=None)
    try:
        blocker.execute("BEGIN IMMEDIATE")
        with Session(engine) as session:
            with pytest.raises(LockTimeoutError):
                TransactionService(session).mutate(
                    account.id, 100, TransactionType.CREDIT, "held-1"
                )

        blocker.execute("ROLLBACK")
        with Session(engine) as session:
            result = TransactionService(session).mutate(
                account.id, 100, TransactionType.CREDIT, "held-1"
            )
        assert result.new_balance == 100
    finally:
        blocker.close()
        engine.dispose()

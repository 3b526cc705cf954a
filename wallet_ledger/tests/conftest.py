from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from ..core.db import create_engine_for_url, get_engine, get_session, init_db, set_engine
from ..main import app
from ..services import AccountService, TransactionService


@pytest.fixture
def engine(tmp_path):
    test_db = tmp_path / "test.db"
    engine = create_engine_for_url(f"sqlite:///{test_db}", lock_timeout_seconds=30)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def accounts(session) -> AccountService:
    return AccountService(session)


@pytest.fixture
def transactions(session) -> TransactionService:
    return TransactionService(session)


@pytest.fixture
def run_in_session(engine) -> Callable:
    """Run ``fn(session)`` in a fresh session, as a separate request would."""

    def _run(fn):
        with Session(engine) as session:
            return fn(session)

    return _run


@pytest.fixture
def client(engine) -> Iterator[TestClient]:
    original_engine = get_engine()
    set_engine(engine)

    def _get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override
    init_db()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_engine(original_engine)

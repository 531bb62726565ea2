"""Shared pytest fixtures: in-memory database, API test client, fake clock."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Settings are read once on import; keep tests away from any developer .env or database file.
os.environ["SPLITBILLS_ENV_FILE"] = str(REPO_ROOT / "tests" / ".env.missing")
os.environ["SPLITBILLS_DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import splitbills.backend.models  # noqa: E402,F401  # Ensure models are registered with metadata
from splitbills.backend import database  # noqa: E402
from splitbills.backend.database import Base  # noqa: E402
from splitbills.backend.server import app  # noqa: E402


@pytest.fixture(autouse=True)
def _set_log_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SPLITBILLS_LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("SPLITBILLS_JSON_LOGS", raising=False)
    yield
    # handlers bound to pytest's captured streams must not outlive the test
    package_logger = logging.getLogger("splitbills")
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)


@pytest.fixture(scope="session")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    TestingSessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        autocommit=False,
        future=True,
        join_transaction_mode="create_savepoint",
    )
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[database.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()

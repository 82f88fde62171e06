"""
Pytest configuration and fixtures for business review tests.

Every test gets its own file-backed SQLite database under tmp_path.
Services commit their own transactions, and the concurrency tests need
independent sessions, so per-test databases replace rollback isolation.
"""
import os
import pathlib
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "test")

from business_review.db import Base, enable_sqlite_foreign_keys  # noqa: E402
import business_review.models  # noqa: E402,F401


@pytest.fixture(scope="function")
def engine(tmp_path):
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'business_review_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        echo=False  # Set to True for SQL debugging
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """Session factory bound to the per-test database; one session per thread."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """
    Provide a database session for each test.

    Usage:
        def test_something(db: Session):
            registration = RegistrationService.submit(db, payload)
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def override_get_db(factory):
    """Build a get_db override yielding a fresh session per request."""
    def _override():
        session = factory()
        try:
            yield session
        finally:
            session.close()
    return _override


@pytest.fixture(scope="function")
def client(session_factory):
    """
    FastAPI TestClient whose get_db dependency points at the test database.
    """
    from fastapi.testclient import TestClient
    from business_review.db import get_db
    from business_review.main import app

    app.dependency_overrides[get_db] = override_get_db(session_factory)
    try:
        # raise_server_exceptions=False so unhandled errors become 500 responses
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def actor_headers():
    """Forwarded principal of an admin reviewer."""
    from tests.helpers.factories import REVIEWER_ID
    return {"X-Actor-Id": REVIEWER_ID, "X-Actor-Name": "Dana Reviewer", "X-Actor-Role": "admin"}

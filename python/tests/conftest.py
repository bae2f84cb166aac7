"""Pytest configuration and fixtures for Zenvi tests.

Test isolation strategy:
- Every test gets its own in-memory SQLite database (foreign keys on)
  with the schema created from the ORM metadata
- The default session factory is pointed at that database, so the API's
  get_db dependency and the auth bootstrap callback use it too
- Auth tests use authenticated_client with HS256 test tokens
- Media bytes go to an in-memory FakeStorageClient
"""

import os

# Settings are read lazily; these must be in place before any get_settings()
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ["ZENVI_ENV"] = "test"
os.environ["JWT_SECRET"] = "zenvi-test-secret-0123456789abcdef0123456789"
os.environ["JWT_ISSUER"] = "zenvi-test-identity"
os.environ["JWT_AUDIENCES"] = "zenvi-test-api"
os.environ["LOG_JSON"] = "false"

from collections.abc import Generator  # noqa: E402
from uuid import UUID  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from tests.helpers import create_test_user_id  # noqa: E402
from zenvi.app import add_request_id_middleware, create_app  # noqa: E402
from zenvi.config import clear_settings_cache  # noqa: E402
from zenvi.db.engine import create_db_engine  # noqa: E402
from zenvi.db.models import Base  # noqa: E402
from zenvi.db.session import create_session_factory, set_session_factory  # noqa: E402
from zenvi.storage.client import FakeStorageClient  # noqa: E402

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create a fresh in-memory database with the full schema."""
    engine = create_db_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> Generator[sessionmaker[Session], None, None]:
    """Session factory bound to the test engine, installed as the default."""
    factory = create_session_factory(engine)
    set_session_factory(factory)
    yield factory
    set_session_factory(None)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session on the test database.

    Data written by factories is committed so API requests (which use their
    own sessions) can see it. Call db_session.expire_all() before re-reading
    rows that a request or another session changed.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage() -> FakeStorageClient:
    """Provide an in-memory storage client."""
    return FakeStorageClient()


@pytest.fixture
def client(session_factory, storage: FakeStorageClient) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client without authentication.

    Suitable for testing public endpoints and basic functionality.
    """
    app = create_app(skip_auth_middleware=True, storage=storage)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def authenticated_app(session_factory, storage: FakeStorageClient) -> FastAPI:
    """Provide a FastAPI app with auth and request-id middleware.

    The verifier is built from the JWT_* env vars above, and the bootstrap
    callback writes users into the test database.
    """
    app = create_app(storage=storage)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def authenticated_client(authenticated_app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client with auth middleware.

    Use auth_headers() to generate valid tokens for requests.
    """
    with TestClient(authenticated_app) as client:
        yield client


@pytest.fixture
def test_user_id() -> UUID:
    """Generate a random UUID for a test user."""
    return create_test_user_id()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()

"""
Shared fixtures: isolated in-memory SQLite stores, the auth service, and a TestClient.

Environment defaults are set before any app import so the module-level
settings/engine in app.core use SQLite and a low bcrypt cost.
"""

import os
from collections.abc import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789abcdefghij")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdefghij")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.core.database import create_db_engine, create_session_factory
from app.main import create_app
from app.models import Base
from app.services.auth import AuthService
from app.services.credentials import CredentialStore
from app.services.sessions import SessionRegistry
from app.services.tokens import TokenService

TEST_ACCESS_SECRET = "test-access-secret-0123456789abcdefghij"
TEST_REFRESH_SECRET = "test-refresh-secret-0123456789abcdefghij"


def make_settings(**overrides) -> Settings:
    """Settings for tests; keyword overrides win over the environment."""
    values = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "JWT_SECRET": TEST_ACCESS_SECRET,
        "JWT_REFRESH_SECRET": TEST_REFRESH_SECRET,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def session_factory(settings: Settings) -> Generator[sessionmaker[Session], None, None]:
    """Fresh in-memory database per test (StaticPool shares one connection across threads)."""
    engine = create_db_engine(settings)
    Base.metadata.create_all(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def token_service(settings: Settings) -> TokenService:
    return TokenService.from_settings(settings)


@pytest.fixture
def credential_store(session_factory, settings: Settings) -> CredentialStore:
    return CredentialStore(session_factory, bcrypt_rounds=settings.BCRYPT_ROUNDS)


@pytest.fixture
def session_registry(session_factory) -> SessionRegistry:
    return SessionRegistry(session_factory)


@pytest.fixture
def auth_service(credential_store, session_registry, token_service, settings) -> AuthService:
    return AuthService(credential_store, session_registry, token_service, settings)


@pytest.fixture
def client(settings: Settings, session_factory) -> Generator[TestClient, None, None]:
    """TestClient over the real app wired to the test database."""
    app = create_app(settings, session_factory)
    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client

"""
tests/conftest.py -- Shared test fixtures for EasyPass tests.

This module provides:
  - test_settings: a Settings instance with fixed keys and fast bcrypt
  - cipher / token_service: core components built from test_settings
  - user_store / secret_service: fresh in-memory stores per test
  - api_client: TestClient over the real app with a patched lifespan
  - login_as: register + login helper returning a Bearer header

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient fixture because route handlers run in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. Unit-test fixtures stay on one thread and use plain :memory:.

The DEBUG env var is set before any app import so get_settings() can
auto-generate keys if anything reaches it.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set DEBUG before any app import so get_settings() never raises.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from vault.crypto import SecretCipher
from vault.service import SecretService
from vault.store import SecretStore

# Rate limits would trip across the many logins in one test module.
limiter.enabled = False

TEST_SECRET_KEY = "test-signing-key-0123456789abcdef0123456789"
TEST_ENCRYPTION_KEY = "TestingEncryptionKeyForPasswordTests123"


def make_settings(**overrides) -> Settings:
    values = {
        "debug": True,
        "secret_key": TEST_SECRET_KEY,
        "encryption_key": TEST_ENCRYPTION_KEY,
        "token_issuer": "TestEasyPass",
        "token_audience": "TestEasyPass",
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def cipher(test_settings: Settings) -> SecretCipher:
    return SecretCipher(test_settings.encryption_key)


@pytest.fixture
def token_service(test_settings: Settings) -> TokenService:
    return TokenService(test_settings)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def secret_store() -> Generator[SecretStore, None, None]:
    store = SecretStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def secret_service(secret_store: SecretStore, cipher: SecretCipher) -> SecretService:
    return SecretService(secret_store, cipher)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, db_url: str):
    """Return an async context manager that replaces the real lifespan.

    Builds the same app.state objects as api.main.lifespan, but from the test
    settings and an isolated shared-memory database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        user_store = UserStore(db_url)
        secret_store = SecretStore(db_url)
        app.state.settings = settings
        app.state.user_store = user_store
        app.state.tokens = TokenService(settings)
        app.state.secrets = SecretService(secret_store, SecretCipher(settings.encryption_key))
        yield
        secret_store.close()
        user_store.close()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app, one isolated DB per test module."""
    db_name = f"test_easypass_{request.module.__name__.rsplit('.', 1)[-1]}"
    db_url = f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true"
    app.router.lifespan_context = _patch_lifespan(make_settings(), db_url)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


def auth_headers(client: TestClient, username: str, pin: str = "1234") -> dict[str, str]:
    """Register username (if new), log in, and return an Authorization header."""
    client.post("/api/v1/auth/register", json={"username": username, "pin": pin})
    resp = client.post("/api/v1/auth/login", json={"username": username, "pin": pin})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture(scope="module")
def login_as(api_client: TestClient):
    """Return a callable: login_as(username, pin="1234") -> Authorization header."""

    def _login(username: str, pin: str = "1234") -> dict[str, str]:
        return auth_headers(api_client, username, pin)

    return _login


@pytest.fixture(scope="session")
def settings_factory():
    """Return make_settings so tests can build variants: settings_factory(token_issuer="x")."""
    return make_settings

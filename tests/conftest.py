from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_app_settings,
    get_identity_providers,
    get_session_store,
    get_user_store,
)
from api.main import app
from config import Settings
from services.identity_providers import GoogleProvider, LinkedInProvider
from services.session_store import SessionStore
from tests.fakes import FakeSessionDatabase, InMemoryUserStore

TEST_SECRET = "test-session-secret"


class FakeIdentityBackend:
    """Plays both token and userinfo endpoints for every provider."""

    def __init__(self):
        self.profiles: dict[str, dict] = {
            "google": {"email": "ada@example.com", "name": "Ada Lovelace"},
            "linkedin": {"email": "ada@example.com", "name": "Ada L."},
        }
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        provider = "google" if "google" in host else "linkedin"
        if request.method == "POST":
            return httpx.Response(200, json={"access_token": f"{provider}-token"})
        return httpx.Response(200, json=self.profiles[provider])


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="postgresql://unused",
        session_secret=TEST_SECRET,
        frontend_url="https://landing.example",
        google_client_id="google-id",
        google_client_secret="google-secret",
        google_redirect_uri="https://api.example/auth/google/callback",
        linkedin_client_id="linkedin-id",
        linkedin_client_secret="linkedin-secret",
        linkedin_redirect_uri="https://api.example/auth/linkedin/callback",
    )


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def session_db() -> FakeSessionDatabase:
    return FakeSessionDatabase()


@pytest.fixture
def session_store(session_db, user_store) -> SessionStore:
    return SessionStore(session_db, user_store, secret=TEST_SECRET, max_age_seconds=24 * 60 * 60)


@pytest.fixture
def identity_backend() -> FakeIdentityBackend:
    return FakeIdentityBackend()


@pytest.fixture
def providers(identity_backend, settings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(identity_backend.handler))
    return {
        "google": GoogleProvider(
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_redirect_uri,
            http,
        ),
        "linkedin": LinkedInProvider(
            settings.linkedin_client_id,
            settings.linkedin_client_secret,
            settings.linkedin_redirect_uri,
            http,
        ),
    }


@pytest.fixture
def client(settings, user_store, session_store, providers):
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_identity_providers] = lambda: providers
    # Not entered as a context manager: the lifespan (and PostgreSQL) stays out of it.
    yield TestClient(app, base_url="https://testserver")
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(client):
    """Walk the redirect-out / callback pair and return the callback response."""

    def _sign_in(provider: str) -> httpx.Response:
        start = client.get(f"/auth/{provider}", follow_redirects=False)
        assert start.status_code == 302
        state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]
        return client.get(
            f"/auth/{provider}/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

    return _sign_in

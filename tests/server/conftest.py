"""Pytest fixtures for FastAPI server tests.

This module provides a test client wired to an AuthService with known
Upstox registrations, plus a stub Upstox token endpoint.
"""

import json
from typing import Generator
from unittest import mock

import pytest
import requests
from fastapi.testclient import TestClient

from src.server.config import Settings
from src.server.main import app
from src.server.services.auth_service import AuthService, get_auth_service
from src.upstox_oauth import CredentialResolver, OAuthClientConfig

IDENTITY = "8885615779"
CLIENT_ID = "tenant_client_id"
CLIENT_SECRET = "tenant_client_secret_value"
REDIRECT_URI = f"https://app.test/auth/{IDENTITY}/callback"
TOKEN_URL = "https://upstox.test/login/authorization/token"
STORE_URL = "http://backend.test/api/user/store-token"


class StubTokenEndpoint:
    """Stand-in for the Upstox token endpoint.

    Accepts each authorization code once, like the real server. Installed
    in place of ``requests.post``.

    Attributes:
        calls: Form bodies received, in order
        access_token: Token issued for an accepted code
        status_code: Forced status for every request (None = normal behavior)
        body: Forced body used with ``status_code``
    """

    def __init__(self, access_token: str = "tok_xyz"):
        self.calls: list[dict] = []
        self.access_token = access_token
        self.status_code = None
        self.body = ""
        self._used_codes: set[str] = set()

    def __call__(self, url, headers=None, data=None, timeout=None):
        assert url == TOKEN_URL
        self.calls.append(dict(data))

        response = mock.Mock(spec=requests.Response)
        if self.status_code is not None:
            response.status_code = self.status_code
            response.text = self.body
            return response

        code = data["code"]
        if code in self._used_codes:
            response.status_code = 400
            response.text = json.dumps({"error": "invalid_grant"})
            return response

        self._used_codes.add(code)
        response.status_code = 200
        response.text = json.dumps(
            {"access_token": self.access_token, "token_type": "Bearer"}
        )
        return response


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at test hosts."""
    return Settings(
        frontend_url="https://front.test",
        backend_url="http://backend.test",
        authorization_url="https://upstox.test/login/authorization/dialog",
        token_url=TOKEN_URL,
        http_timeout_seconds=5,
    )


@pytest.fixture
def resolver() -> CredentialResolver:
    """Resolver with one per-identity registration and a global fallback."""
    return CredentialResolver(
        {
            IDENTITY: OAuthClientConfig(
                client_id=CLIENT_ID,
                redirect_uri=REDIRECT_URI,
                client_secret=CLIENT_SECRET,
            )
        },
        default=OAuthClientConfig(
            client_id="global_client_id",
            redirect_uri="https://app.test/auth/callback",
            client_secret="global_client_secret_value",
        ),
        default_client_secret="global_client_secret_value",
    )


@pytest.fixture
def token_endpoint() -> Generator[StubTokenEndpoint, None, None]:
    """Stub Upstox token endpoint replacing requests.post."""
    stub = StubTokenEndpoint()
    with mock.patch("requests.post", side_effect=stub):
        yield stub


@pytest.fixture
def auth_service(test_settings: Settings, resolver: CredentialResolver):
    """AuthService built from test settings."""
    service = AuthService(test_settings, resolver=resolver)
    yield service
    service.close()


@pytest.fixture
def client(auth_service: AuthService) -> Generator[TestClient, None, None]:
    """Create a test client using the test AuthService.

    Redirects are not followed so tests can inspect Location headers.

    Example:
        >>> def test_login(client):
        >>>     response = client.get("/auth/login?phone=8885615779")
        >>>     assert response.status_code == 302
    """
    app.dependency_overrides[get_auth_service] = lambda: auth_service

    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()

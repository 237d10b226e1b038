"""Tests for server settings and auth service wiring."""

import os
from unittest import mock

from src.server.config import Settings
from src.server.services import auth_service as auth_service_module
from src.server.services.auth_service import AuthService, get_auth_service


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        config = Settings()

        assert config.state_ttl_seconds == 300
        assert config.http_timeout_seconds == 15.0
        assert config.state_cookie_name == "upstox_oauth_state"
        assert config.token_url == "https://api-v2.upstox.com/login/authorization/token"

    def test_landing_urls(self):
        config = Settings(frontend_url="https://front.test/")

        assert config.success_url == "https://front.test/auth/upstox-management"
        assert config.error_url == "https://front.test/auth"

    def test_token_store_url(self):
        config = Settings(backend_url="http://backend.test/")

        assert config.token_store_url == "http://backend.test/api/user/store-token"

    @mock.patch.dict(
        os.environ,
        {
            "CONNECT_FRONTEND_URL": "https://algo.test",
            "CONNECT_STATE_TTL_SECONDS": "120",
        },
    )
    def test_env_prefix(self):
        config = Settings()

        assert config.frontend_url == "https://algo.test"
        assert config.state_ttl_seconds == 120


class TestAuthService:
    """Tests for AuthService wiring."""

    @mock.patch.dict(
        os.environ,
        {
            "UPSTOX_CLIENT_ID_8885615779": "env_id",
            "UPSTOX_REDIRECT_URL_8885615779": "https://app.test/cb",
        },
        clear=True,
    )
    def test_builds_resolver_from_env(self):
        service = AuthService(Settings())
        try:
            assert service.resolver.resolve("8885615779").client_id == "env_id"
            assert service.redirector.cookie_max_age == 300
            assert service.exchange_client.timeout == 15.0
            assert service.store_client.url == "http://localhost:7070/api/user/store-token"
        finally:
            service.close()

    def test_settings_flow_into_components(self):
        config = Settings(
            frontend_url="https://front.test",
            state_cookie_name="check",
            state_ttl_seconds=60,
            http_timeout_seconds=3,
        )
        service = AuthService(config)
        try:
            assert service.cookie_name == "check"
            assert service.redirector.cookie_max_age == 60
            assert service.exchange_client.timeout == 3
            assert service.callback_handler.landing.error_url == "https://front.test/auth"
        finally:
            service.close()

    def test_get_auth_service_is_singleton(self):
        with mock.patch.object(auth_service_module, "_auth_service", None):
            first = get_auth_service()
            try:
                assert get_auth_service() is first
            finally:
                first.close()

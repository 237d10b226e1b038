"""Tests for the authorization code exchange client."""

from unittest import mock

import pytest
import requests

from src.upstox_oauth.config import OAuthClientConfig
from src.upstox_oauth.exceptions import (
    BadTokenResponseError,
    MissingAccessTokenError,
    TokenExchangeError,
)
from src.upstox_oauth.token_exchange import (
    ExchangeResult,
    TokenExchangeClient,
    mask,
    redact,
)


def _response(status_code: int, text: str) -> mock.Mock:
    response = mock.Mock()
    response.status_code = status_code
    response.text = text
    return response


class TestHelpers:
    """Tests for redact and mask."""

    def test_redact_replaces_all_secrets(self):
        assert redact("a secret and a code", ["secret", "code"]) == "a *** and a ***"

    def test_redact_form_encoded(self):
        assert redact("client_secret=s3cr%2Fet%2Bval", ["s3cr/et+val"]) == "client_secret=***"

    def test_redact_ignores_empty(self):
        assert redact("text", ["", ""]) == "text"

    def test_mask(self):
        assert mask("abcdefghij") == "abcdef***"
        assert mask("") == ""
        assert mask("abc123") == "***"


class TestTokenExchangeClient:
    """Tests for TokenExchangeClient."""

    @pytest.fixture
    def config(self):
        return OAuthClientConfig(
            client_id="test_client_id",
            redirect_uri="https://app.test/auth/8885615779/callback",
            client_secret="test_client_secret",
        )

    @pytest.fixture
    def client(self):
        return TokenExchangeClient(token_url="https://upstox.test/token", timeout=10)

    @mock.patch("requests.post")
    def test_exchange_success(self, mock_post, client, config):
        """exchange posts the form and returns the access token."""
        mock_post.return_value = _response(
            200, '{"access_token": "tok_xyz", "user_id": "AB1234"}'
        )

        result = client.exchange("abc123", config, "test_client_secret")

        assert result.access_token == "tok_xyz"
        assert result.raw["user_id"] == "AB1234"

        mock_post.assert_called_once()
        call_args = mock_post.call_args
        assert call_args[0][0] == "https://upstox.test/token"
        assert call_args[1]["data"] == {
            "code": "abc123",
            "client_id": "test_client_id",
            "client_secret": "test_client_secret",
            "redirect_uri": "https://app.test/auth/8885615779/callback",
            "grant_type": "authorization_code",
        }
        assert call_args[1]["headers"]["Api-Version"] == "2.0"
        assert call_args[1]["headers"]["Content-Type"] == (
            "application/x-www-form-urlencoded"
        )
        assert call_args[1]["timeout"] == 10

    @mock.patch("requests.post")
    def test_accepts_any_2xx(self, mock_post, client, config):
        mock_post.return_value = _response(201, '{"access_token": "tok"}')

        assert client.exchange("abc123", config, "s").access_token == "tok"

    @mock.patch("requests.post")
    def test_non_2xx_raises_with_status_and_preview(self, mock_post, client, config):
        mock_post.return_value = _response(400, '{"error":"invalid_grant"}')

        with pytest.raises(TokenExchangeError) as exc_info:
            client.exchange("abc123", config, "test_client_secret")

        assert exc_info.value.status_code == 400
        assert exc_info.value.body_preview == '{"error":"invalid_grant"}'
        assert exc_info.value.reason == "token_exchange_failed"

    @mock.patch("requests.post")
    def test_preview_is_truncated_and_scrubbed(self, mock_post, client, config):
        """Upstream bodies echoing the secret or code are scrubbed."""
        body = "bad secret test_client_secret for code abc123 " + "x" * 500
        mock_post.return_value = _response(401, body)

        with pytest.raises(TokenExchangeError) as exc_info:
            client.exchange("abc123", config, "test_client_secret")

        preview = exc_info.value.body_preview
        assert len(preview) == 120
        assert "test_client_secret" not in preview
        assert "abc123" not in preview

    @mock.patch("requests.post")
    def test_preview_scrubs_form_encoded_secret(self, mock_post, client, config):
        """The secret as it was sent in the form body is scrubbed."""
        mock_post.return_value = _response(
            401, "bad request body: client_secret=s3cr%2Fet%2Bval"
        )

        with pytest.raises(TokenExchangeError) as exc_info:
            client.exchange("abc123", config, "s3cr/et+val")

        preview = exc_info.value.body_preview
        assert preview == "bad request body: client_secret=***"
        assert "s3cr" not in str(exc_info.value.details)

    @mock.patch("requests.post")
    def test_timeout_raises_exchange_error(self, mock_post, client, config):
        """A timeout counts as a failed exchange."""
        mock_post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TokenExchangeError, match="timed out") as exc_info:
            client.exchange("abc123", config, "s")

        assert exc_info.value.status_code is None

    @mock.patch("requests.post")
    def test_network_error_raises_exchange_error(self, mock_post, client, config):
        mock_post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TokenExchangeError, match="Network error"):
            client.exchange("abc123", config, "s")

    @mock.patch("requests.post")
    def test_invalid_json_raises_bad_response(self, mock_post, client, config):
        mock_post.return_value = _response(200, "<html>oops</html>")

        with pytest.raises(BadTokenResponseError) as exc_info:
            client.exchange("abc123", config, "s")

        assert exc_info.value.reason == "bad_token_response"

    @mock.patch("requests.post")
    def test_non_object_json_raises_bad_response(self, mock_post, client, config):
        mock_post.return_value = _response(200, '["tok"]')

        with pytest.raises(BadTokenResponseError):
            client.exchange("abc123", config, "s")

    @mock.patch("requests.post")
    def test_missing_access_token(self, mock_post, client, config):
        mock_post.return_value = _response(200, '{"token_type": "Bearer"}')

        with pytest.raises(MissingAccessTokenError) as exc_info:
            client.exchange("abc123", config, "s")

        assert exc_info.value.details == {"keys": ["token_type"]}

    @mock.patch("requests.post")
    def test_empty_access_token(self, mock_post, client, config):
        mock_post.return_value = _response(200, '{"access_token": ""}')

        with pytest.raises(MissingAccessTokenError):
            client.exchange("abc123", config, "s")

    def test_result_repr_hides_token(self):
        result = ExchangeResult(access_token="tok_xyz", raw={"access_token": "tok_xyz"})

        assert "tok_xyz" not in repr(result)

"""
Authorization code exchange against the Upstox token endpoint.

The code is single-use at Upstox; this client makes exactly one attempt and
never retries. Timeouts and network errors count as a failed exchange.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import quote_plus

import requests

from .config import OAuthClientConfig
from .exceptions import (
    BadTokenResponseError,
    MissingAccessTokenError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URL = "https://api-v2.upstox.com/login/authorization/token"
BODY_PREVIEW_CHARS = 120


def redact(text: str, secrets: Iterable[str]) -> str:
    """
    Replace every non-empty secret in ``text`` with ``***``.

    The form-urlencoded spelling is replaced too, since that is how the
    secret and code leave in the token request body.
    """
    for secret in secrets:
        if not secret:
            continue
        for form in (secret, quote_plus(secret)):
            text = text.replace(form, "***")
    return text


def mask(value: str, visible: int = 6) -> str:
    """Short preview of a sensitive value for log lines."""
    if not value:
        return ""
    if len(value) <= visible:
        return "***"
    return f"{value[:visible]}***"


@dataclass
class ExchangeResult:
    """
    Successful token endpoint response.

    Attributes:
        access_token: Bearer token for the user's Upstox account
        raw: Parsed JSON body as returned by Upstox
    """

    access_token: str = field(repr=False)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


class TokenExchangeClient:
    """Exchanges authorization codes for access tokens."""

    def __init__(
        self,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = 15,
        api_version: str = "2.0",
    ):
        """
        Initialize exchange client.

        Args:
            token_url: Upstox token endpoint
            timeout: Seconds before the request is abandoned
            api_version: Value of the Api-Version header Upstox expects
        """
        self.token_url = token_url
        self.timeout = timeout
        self.api_version = api_version

    def exchange(
        self, code: str, config: OAuthClientConfig, client_secret: str
    ) -> ExchangeResult:
        """
        Exchange an authorization code for an access token.

        The redirect_uri sent here is the one from ``config`` so it matches
        the authorization redirect byte for byte.

        Args:
            code: Authorization code from the callback
            config: Registration resolved for the user
            client_secret: Secret to authenticate with

        Returns:
            ExchangeResult with the access token

        Raises:
            TokenExchangeError: Non-2xx status, timeout or network failure
            BadTokenResponseError: Body is not a JSON object
            MissingAccessTokenError: JSON has no access_token
        """
        logger.info(
            f"Exchanging authorization code {mask(code)} for token "
            f"(client_id={config.client_id}, has_secret={bool(client_secret)})"
        )
        sensitive = (client_secret, code)

        try:
            response = requests.post(
                self.token_url,
                headers={
                    "Accept": "application/json",
                    "Api-Version": self.api_version,
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={
                    "code": code,
                    "client_id": config.client_id,
                    "client_secret": client_secret,
                    "redirect_uri": config.redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error(f"Token exchange timed out after {self.timeout}s")
            raise TokenExchangeError(
                f"Token endpoint timed out after {self.timeout}s"
            ) from e
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {type(e).__name__}")
            raise TokenExchangeError(
                f"Network error during token exchange: {type(e).__name__}"
            ) from e

        text = response.text or ""
        if not 200 <= response.status_code < 300:
            preview = redact(text, sensitive)[:BODY_PREVIEW_CHARS]
            logger.error(
                f"Token exchange failed: {response.status_code} - {preview}"
            )
            raise TokenExchangeError(
                f"Token exchange failed with status {response.status_code}",
                status_code=response.status_code,
                body_preview=preview,
            )

        logger.debug(f"Token exchange response length: {len(text)}")

        try:
            data = json.loads(text)
        except ValueError as e:
            logger.error("Token endpoint returned a body that is not JSON")
            raise BadTokenResponseError(
                "Token endpoint returned invalid JSON",
                {"body_length": len(text)},
            ) from e

        if not isinstance(data, dict):
            logger.error(f"Token endpoint returned JSON {type(data).__name__}")
            raise BadTokenResponseError(
                "Token endpoint returned unexpected JSON",
                {"json_type": type(data).__name__},
            )

        access_token = data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            keys = sorted(data)
            logger.error(f"No access token in token response, keys: {keys}")
            raise MissingAccessTokenError(
                "Token endpoint response had no access_token", {"keys": keys}
            )

        logger.info(f"Access token received (length {len(access_token)})")
        return ExchangeResult(access_token=access_token, raw=data)

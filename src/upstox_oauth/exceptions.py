"""
OAuth exception classes for the Upstox account connect flow.

Every exception carries a machine-readable ``reason`` code. The callback
handler turns these into error redirects; nothing here should reach the
browser as a raw exception.
"""

from typing import Any, Optional


class UpstoxOAuthError(Exception):
    """Base exception for all Upstox OAuth errors."""

    reason = "oauth_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(UpstoxOAuthError):
    """No resolvable OAuth client configuration (operator action needed)."""

    reason = "config_missing"


class StateValidationError(UpstoxOAuthError):
    """State prefix or verification cookie mismatch."""

    reason = "invalid_state"


class TokenExchangeError(UpstoxOAuthError):
    """Token endpoint returned non-2xx, timed out, or was unreachable."""

    reason = "token_exchange_failed"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body_preview: str = "",
    ):
        details: dict[str, Any] = {"upstream_status": status_code}
        if body_preview:
            details["body_preview"] = body_preview
        super().__init__(message, details)
        self.status_code = status_code
        self.body_preview = body_preview


class BadTokenResponseError(UpstoxOAuthError):
    """Token endpoint body could not be parsed as a JSON object."""

    reason = "bad_token_response"


class MissingAccessTokenError(UpstoxOAuthError):
    """Token endpoint JSON had no access_token."""

    reason = "no_access_token"


class TokenStoreError(UpstoxOAuthError):
    """Backend token store rejected or never received the token."""

    reason = "token_store_failed"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"store_status": status_code})
        self.status_code = status_code

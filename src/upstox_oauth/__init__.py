"""
OAuth 2.0 module for connecting Upstox brokerage accounts.

This module implements the Authorization Code flow used to link a user's
Upstox account to the platform:

- A random state token, hashed into an HTTP-only cookie, binds the
  callback to the browser that started the flow
- Each user or group can use its own Upstox app registration, with a
  global fallback registration
- The issued access token is handed to the backend token store, keyed by
  the user's identity (phone number)

Public API:
    OAuthClientConfig: One Upstox app registration
    CredentialResolver: Per-identity registration lookup
    StateTokenCodec: State token creation and verification
    AuthorizationRedirector: Authorization dialog redirect builder
    TokenExchangeClient: Authorization code exchange
    TokenStoreClient: Backend token store client
    CallbackHandler: Callback state machine

Exceptions:
    UpstoxOAuthError: Base exception
    ConfigurationError: No registration for the identity
    StateValidationError: State or cookie mismatch
    TokenExchangeError: Token endpoint failure
    BadTokenResponseError: Token endpoint body not JSON
    MissingAccessTokenError: Token endpoint JSON without access_token
    TokenStoreError: Backend token store failure
"""

from .callback import CallbackHandler, CallbackOutcome, CallbackStage, LandingPages
from .config import CredentialResolver, OAuthClientConfig, sanitize_key
from .exceptions import (
    BadTokenResponseError,
    ConfigurationError,
    MissingAccessTokenError,
    StateValidationError,
    TokenExchangeError,
    TokenStoreError,
    UpstoxOAuthError,
)
from .redirector import AuthorizationRedirect, AuthorizationRedirector, StateCookie
from .state import EncodedState, StateTokenCodec, encode_identity
from .token_exchange import ExchangeResult, TokenExchangeClient
from .token_store import TokenStoreClient

__all__ = [
    # Configuration
    "OAuthClientConfig",
    "CredentialResolver",
    "sanitize_key",
    # State
    "EncodedState",
    "StateTokenCodec",
    "encode_identity",
    # Authorization redirect
    "AuthorizationRedirect",
    "AuthorizationRedirector",
    "StateCookie",
    # Token exchange and storage
    "ExchangeResult",
    "TokenExchangeClient",
    "TokenStoreClient",
    # Callback
    "CallbackHandler",
    "CallbackOutcome",
    "CallbackStage",
    "LandingPages",
    # Exceptions
    "UpstoxOAuthError",
    "ConfigurationError",
    "StateValidationError",
    "TokenExchangeError",
    "BadTokenResponseError",
    "MissingAccessTokenError",
    "TokenStoreError",
]

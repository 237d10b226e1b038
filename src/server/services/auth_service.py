"""Service wiring for the Upstox account connect flow.

Builds the resolver, state codec, redirector, outbound clients and callback
handler once from settings, and exposes them to the API layer.
"""

import logging
from typing import Optional

from src.server.config import Settings, settings
from src.upstox_oauth import (
    AuthorizationRedirect,
    AuthorizationRedirector,
    CallbackHandler,
    CallbackOutcome,
    CredentialResolver,
    LandingPages,
    StateTokenCodec,
    TokenExchangeClient,
    TokenStoreClient,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Entry point for the login redirect and the callback.

    Holds no per-request state: all correlation between redirect and
    callback travels in the state parameter and the verification cookie.
    """

    def __init__(
        self,
        config: Settings,
        resolver: Optional[CredentialResolver] = None,
        codec: Optional[StateTokenCodec] = None,
        exchange_client: Optional[TokenExchangeClient] = None,
        store_client: Optional[TokenStoreClient] = None,
    ):
        """Initialize auth service.

        Args:
            config: Service settings
            resolver: Credential resolver (loads from environment if not provided)
            codec: State token codec
            exchange_client: Token endpoint client
            store_client: Backend token store client
        """
        self.settings = config
        self.resolver = resolver or CredentialResolver.from_env(
            prefix=config.credential_env_prefix
        )
        self.codec = codec or StateTokenCodec()
        self.exchange_client = exchange_client or TokenExchangeClient(
            token_url=config.token_url,
            timeout=config.http_timeout_seconds,
            api_version=config.api_version,
        )
        self.store_client = store_client or TokenStoreClient(
            base_url=config.backend_url,
            path=config.token_store_path,
            timeout=config.http_timeout_seconds,
        )
        self.redirector = AuthorizationRedirector(
            self.resolver,
            self.codec,
            authorization_url=config.authorization_url,
            cookie_name=config.state_cookie_name,
            cookie_max_age=config.state_ttl_seconds,
            cookie_secure=config.cookie_secure,
        )
        self.callback_handler = CallbackHandler(
            self.resolver,
            self.codec,
            self.exchange_client,
            self.store_client,
            LandingPages(success_url=config.success_url, error_url=config.error_url),
        )

    @property
    def cookie_name(self) -> str:
        return self.settings.state_cookie_name

    def start_authorization(self, identity: str) -> AuthorizationRedirect:
        """Build the Upstox authorization redirect for a user.

        Raises:
            ConfigurationError: If no registration resolves for the identity
        """
        return self.redirector.build_redirect(identity)

    def complete_authorization(
        self,
        identity: Optional[str],
        code: Optional[str],
        state: Optional[str],
        cookie_hash: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackOutcome:
        """Handle the Upstox callback.

        Args:
            identity: Identity from the callback path, or None for the
                identity-less callback (identity read from the state)
            code: Authorization code
            state: State parameter
            cookie_hash: Verification cookie value
            provider_error: Error reported by Upstox, if any

        Returns:
            CallbackOutcome with the redirect target
        """
        if identity is None:
            return self.callback_handler.handle_without_identity(
                code, state, cookie_hash, provider_error
            )
        return self.callback_handler.handle(
            identity, code, state, cookie_hash, provider_error
        )

    def close(self) -> None:
        self.store_client.close()


_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the global auth service instance.

    Returns:
        AuthService instance
    """
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(settings)
        logger.info(
            f"Auth service initialized with {len(_auth_service.resolver.tenant_keys())} "
            f"tenant registration(s)"
        )
    return _auth_service


def reset_auth_service() -> None:
    """Drop the global instance (used on shutdown)."""
    global _auth_service
    if _auth_service is not None:
        _auth_service.close()
    _auth_service = None

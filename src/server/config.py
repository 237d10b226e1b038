"""Configuration management for the account connect server.

This module handles service settings loaded from environment variables,
providing sensible defaults for local development. Upstox app
registrations themselves are read by ``CredentialResolver.from_env``.
"""

import logging

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration settings.

    Attributes:
        app_name: Application name
        version: Application version
        debug: Debug mode flag
        frontend_url: Base URL of the frontend (landing pages)
        backend_url: Base URL of the backend (token store)
        token_store_path: Token store endpoint path on the backend
        authorization_url: Upstox authorization dialog endpoint
        token_url: Upstox token endpoint
        api_version: Upstox Api-Version header value
        http_timeout_seconds: Timeout for outbound calls
        state_cookie_name: Name of the verification cookie
        state_ttl_seconds: Lifetime of the verification cookie
        cookie_secure: Mark the verification cookie Secure (HTTPS only)
        success_path: Frontend path after a connected account
        error_path: Frontend path showing connect errors
        credential_env_prefix: Prefix of the Upstox registration variables
        cors_origins: List of allowed CORS origins
        host: Server host address
        port: Server port number
    """

    app_name: str = "Upstox Connect API"
    version: str = "1.0.0"
    debug: bool = False

    frontend_url: str = "http://localhost:3000"
    backend_url: str = "http://localhost:7070"
    token_store_path: str = "/api/user/store-token"

    # Upstox OAuth endpoints
    authorization_url: str = "https://api-v2.upstox.com/login/authorization/dialog"
    token_url: str = "https://api-v2.upstox.com/login/authorization/token"
    api_version: str = "2.0"

    http_timeout_seconds: float = 15.0

    # Verification cookie
    state_cookie_name: str = "upstox_oauth_state"
    state_ttl_seconds: int = 300
    cookie_secure: bool = False

    # Landing pages
    success_path: str = "/auth/upstox-management"
    error_path: str = "/auth"

    credential_env_prefix: str = "UPSTOX"

    # CORS configuration - allow local development origins
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        """Pydantic configuration."""
        env_prefix = "CONNECT_"
        case_sensitive = False

    @property
    def success_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}{self.success_path}"

    @property
    def error_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}{self.error_path}"

    @property
    def token_store_url(self) -> str:
        """Get full token store URL.

        Returns:
            Backend URL joined with the token store path
        """
        return f"{self.backend_url.rstrip('/')}{self.token_store_path}"


# Global settings instance
settings = Settings()

"""
Authorization redirect for the Upstox account connect flow.

Builds the Upstox authorization dialog URL for a user and the verification
cookie that binds the later callback to this browser.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from .config import CredentialResolver
from .exceptions import ConfigurationError
from .state import StateTokenCodec

logger = logging.getLogger(__name__)

DEFAULT_AUTHORIZATION_URL = "https://api-v2.upstox.com/login/authorization/dialog"
DEFAULT_COOKIE_NAME = "upstox_oauth_state"
DEFAULT_COOKIE_MAX_AGE = 300


@dataclass(frozen=True)
class StateCookie:
    """
    Verification cookie written alongside the redirect.

    Attributes:
        name: Cookie name
        value: SHA-256 hash of the state token
        max_age: Lifetime in seconds
        path: Cookie path
        http_only: Hide from client-side scripts
        secure: Only send over HTTPS
        samesite: SameSite policy ("lax" survives the top-level redirect back)
    """

    name: str
    value: str
    max_age: int
    path: str = "/"
    http_only: bool = True
    secure: bool = False
    samesite: str = "lax"


@dataclass(frozen=True)
class AuthorizationRedirect:
    """Where to send the browser and which cookie to set."""

    location: str
    cookie: StateCookie


class AuthorizationRedirector:
    """
    Builds authorization redirects.

    The redirect is only produced when a registration resolves; a missing
    registration is reported via ConfigurationError and never retried.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        codec: StateTokenCodec,
        authorization_url: str = DEFAULT_AUTHORIZATION_URL,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        cookie_max_age: int = DEFAULT_COOKIE_MAX_AGE,
        cookie_secure: bool = False,
    ):
        if cookie_max_age <= 0:
            raise ConfigurationError("cookie_max_age must be positive")
        self.resolver = resolver
        self.codec = codec
        self.authorization_url = authorization_url
        self.cookie_name = cookie_name
        self.cookie_max_age = cookie_max_age
        self.cookie_secure = cookie_secure

    def build_redirect(self, identity: str) -> AuthorizationRedirect:
        """
        Build the authorization redirect for a user.

        Args:
            identity: User identity (phone number)

        Returns:
            AuthorizationRedirect with the dialog URL and verification cookie

        Raises:
            ConfigurationError: If no registration resolves for the identity
        """
        # Resolver keys are stripped; the state prefix must match the callback path
        identity = identity.strip()
        config = self.resolver.resolve(identity)
        if config is None:
            raise ConfigurationError(
                f"No Upstox registration configured for identity {identity!r}",
                {"identity": identity},
            )

        encoded = self.codec.encode(identity)
        params = {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "response_type": "code",
            "state": encoded.state,
        }
        location = f"{self.authorization_url}?{urlencode(params)}"

        logger.info(
            f"Redirecting identity {identity!r} to Upstox authorization "
            f"(client_id={config.client_id}, redirect_uri={config.redirect_uri})"
        )

        cookie = StateCookie(
            name=self.cookie_name,
            value=encoded.verification_hash,
            max_age=self.cookie_max_age,
            secure=self.cookie_secure,
        )
        return AuthorizationRedirect(location=location, cookie=cookie)

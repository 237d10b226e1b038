"""
OAuth client configuration for Upstox account connect.

Each user (or group of users) can have its own Upstox app registration.
Registrations are read from environment variables once at start-up:

    UPSTOX_CLIENT_ID_<KEY>, UPSTOX_REDIRECT_URL_<KEY>, UPSTOX_CLIENT_SECRET_<KEY>

where <KEY> is the sanitized user identity (see ``sanitize_key``). The
unsuffixed variables form a global fallback registration.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")


def sanitize_key(raw: str) -> str:
    """
    Derive the environment lookup key for a user identity.

    Uppercases the identity and collapses every run of non-alphanumeric
    characters into a single underscore.

    Args:
        raw: User identity (e.g. "888-561 5779" or "team.alpha")

    Returns:
        Lookup key (e.g. "888_561_5779" or "TEAM_ALPHA")
    """
    return _NON_ALNUM.sub("_", raw.strip().upper())


@dataclass(frozen=True)
class OAuthClientConfig:
    """
    One Upstox app registration.

    Attributes:
        client_id: Upstox API key
        redirect_uri: Redirect URI registered with the app (must match exactly)
        client_secret: Upstox API secret; server-only, never part of repr()
    """

    client_id: str
    redirect_uri: str
    client_secret: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")
        if not self.redirect_uri:
            raise ConfigurationError("redirect_uri cannot be empty")

    @property
    def has_secret(self) -> bool:
        return bool(self.client_secret)


class CredentialResolver:
    """
    Resolves the Upstox app registration to use for a user identity.

    Per-identity registrations take precedence over the global default.
    The lookup table is built once and never re-read per request.

    Example:
        resolver = CredentialResolver.from_env()
        config = resolver.resolve("8885615779")
        if config is None:
            ...  # config_missing
    """

    def __init__(
        self,
        tenants: Optional[Mapping[str, OAuthClientConfig]] = None,
        default: Optional[OAuthClientConfig] = None,
        default_client_secret: Optional[str] = None,
    ):
        """
        Initialize resolver.

        Args:
            tenants: Registrations keyed by sanitized identity
            default: Global fallback registration
            default_client_secret: Shared secret used when a registration has none
        """
        self._tenants = MappingProxyType(
            {sanitize_key(key): cfg for key, cfg in (tenants or {}).items()}
        )
        self._default = default
        self._default_client_secret = default_client_secret or None

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, prefix: str = "UPSTOX"
    ) -> "CredentialResolver":
        """
        Build the resolver from environment variables.

        Recognized variables:
            <PREFIX>_CLIENT_ID_<KEY>, <PREFIX>_REDIRECT_URL_<KEY>,
            <PREFIX>_CLIENT_SECRET_<KEY> (optional)
            <PREFIX>_CLIENT_ID, <PREFIX>_REDIRECT_URL,
            <PREFIX>_CLIENT_SECRET (global fallback)

        A tenant entry is only registered when both client id and redirect
        URL are present; incomplete entries are skipped with a warning.

        Args:
            environ: Mapping to read from (default: os.environ)
            prefix: Variable name prefix

        Returns:
            CredentialResolver instance
        """
        env = os.environ if environ is None else environ

        id_prefix = f"{prefix}_CLIENT_ID_"
        redirect_prefix = f"{prefix}_REDIRECT_URL_"
        secret_prefix = f"{prefix}_CLIENT_SECRET_"

        client_ids: dict[str, str] = {}
        redirects: dict[str, str] = {}
        secrets: dict[str, str] = {}
        for name, value in env.items():
            if not value:
                continue
            if name.startswith(id_prefix):
                client_ids[name[len(id_prefix):]] = value
            elif name.startswith(redirect_prefix):
                redirects[name[len(redirect_prefix):]] = value
            elif name.startswith(secret_prefix):
                secrets[name[len(secret_prefix):]] = value

        tenants: dict[str, OAuthClientConfig] = {}
        for key in sorted(set(client_ids) | set(redirects)):
            if key in client_ids and key in redirects:
                tenants[key] = OAuthClientConfig(
                    client_id=client_ids[key],
                    redirect_uri=redirects[key],
                    client_secret=secrets.get(key),
                )
            else:
                logger.warning(
                    f"Skipping incomplete Upstox registration for key {key} "
                    f"(client id: {key in client_ids}, redirect: {key in redirects})"
                )

        global_id = env.get(f"{prefix}_CLIENT_ID")
        global_redirect = env.get(f"{prefix}_REDIRECT_URL")
        global_secret = env.get(f"{prefix}_CLIENT_SECRET") or None

        default = None
        if global_id and global_redirect:
            default = OAuthClientConfig(
                client_id=global_id,
                redirect_uri=global_redirect,
                client_secret=global_secret,
            )

        logger.info(
            f"Loaded {len(tenants)} Upstox registration(s), "
            f"global default: {default is not None}"
        )
        return cls(tenants, default=default, default_client_secret=global_secret)

    def resolve(self, identity: Optional[str]) -> Optional[OAuthClientConfig]:
        """
        Resolve the registration for a user identity.

        Args:
            identity: User identity (phone number)

        Returns:
            Per-identity registration, else the global default, else None
        """
        if identity and identity.strip():
            key = sanitize_key(identity)
            config = self._tenants.get(key)
            if config is not None:
                logger.debug(f"Resolved Upstox registration for key {key}")
                return config

        if self._default is not None:
            logger.debug("Using global Upstox registration")
            return self._default

        logger.warning(f"No Upstox registration found for identity {identity!r}")
        return None

    def effective_secret(self, config: OAuthClientConfig) -> str:
        """
        Secret to send to the token endpoint for a registration.

        Falls back to the global UPSTOX_CLIENT_SECRET when the registration
        carries none (deployments sharing a single secret).
        """
        return config.client_secret or self._default_client_secret or ""

    def tenant_keys(self) -> list[str]:
        return sorted(self._tenants)

    @property
    def has_default(self) -> bool:
        return self._default is not None

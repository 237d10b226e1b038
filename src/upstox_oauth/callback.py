"""
OAuth callback handling for the Upstox account connect flow.

One callback request walks a fixed sequence of stages:

    RECEIVED_CODE -> STATE_VALIDATED -> CONFIG_RESOLVED
        -> TOKEN_EXCHANGED -> TOKEN_STORED -> DONE

Any guard failure ends in ERROR with a reason code. The outcome is always a
browser redirect, either to the success landing page or to the error page
with a bounded diagnostic payload. Client secrets, authorization codes and
access tokens never appear in that payload.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional
from urllib.parse import urlencode

from .config import CredentialResolver
from .exceptions import ConfigurationError, StateValidationError, UpstoxOAuthError
from .state import StateTokenCodec
from .token_exchange import TokenExchangeClient, redact
from .token_store import TokenStoreClient

logger = logging.getLogger(__name__)

DETAILS_MAX_CHARS = 300

ERROR_MESSAGES = {
    "missing_code": "No authorization code received",
    "invalid_state": "Invalid state",
    "config_missing": "Config not found for user",
    "token_exchange_failed": "Token exchange failed",
    "bad_token_response": "Bad token JSON",
    "no_access_token": "No access token",
    "token_store_failed": "Failed to store token",
    "callback_error": "Callback error",
}


class CallbackStage(str, Enum):
    """Stages of a single callback request."""

    RECEIVED_CODE = "received_code"
    STATE_VALIDATED = "state_validated"
    CONFIG_RESOLVED = "config_resolved"
    TOKEN_EXCHANGED = "token_exchanged"
    TOKEN_STORED = "token_stored"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class LandingPages:
    """Frontend pages the browser lands on after the callback."""

    success_url: str
    error_url: str


@dataclass
class CallbackOutcome:
    """
    Result of handling one callback.

    Attributes:
        stage: DONE on success, ERROR otherwise
        location: Redirect target for the browser
        reason: Error reason code (None on success)
        details: Scrubbed, bounded JSON diagnostics (None on success)
        failed_stage: Last stage reached before the failure
    """

    stage: CallbackStage
    location: str
    reason: Optional[str] = None
    details: Optional[str] = None
    failed_stage: Optional[CallbackStage] = None

    @property
    def success(self) -> bool:
        return self.stage is CallbackStage.DONE


def bound_details(details: dict[str, Any], secrets: Iterable[str]) -> str:
    """
    Serialize diagnostics for the error redirect.

    Secrets are replaced by ``***`` before truncation so a cut can never
    leave a partial secret behind.
    """
    secrets = [s for s in secrets if s]
    # JSON escaping can change how a secret is spelled in the text
    escaped = [json.dumps(s)[1:-1] for s in secrets]
    text = json.dumps(details, sort_keys=True, default=str)
    text = redact(text, secrets + escaped)
    if len(text) > DETAILS_MAX_CHARS:
        text = text[: DETAILS_MAX_CHARS - 3] + "..."
    return text


class CallbackHandler:
    """
    Runs the callback stages for one request.

    Instances hold only collaborators and no per-request state, so one
    handler serves concurrent callbacks.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        codec: StateTokenCodec,
        exchange_client: TokenExchangeClient,
        store_client: TokenStoreClient,
        landing: LandingPages,
    ):
        self.resolver = resolver
        self.codec = codec
        self.exchange_client = exchange_client
        self.store_client = store_client
        self.landing = landing

    def handle(
        self,
        identity: str,
        code: Optional[str],
        state: Optional[str],
        cookie_hash: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackOutcome:
        """
        Handle a callback for an identity.

        Args:
            identity: Identity from the callback path
            code: ``code`` query parameter
            state: ``state`` query parameter
            cookie_hash: Verification cookie value
            provider_error: ``error`` query parameter sent by Upstox, if any

        Returns:
            CallbackOutcome with the redirect target
        """
        logger.info(
            f"Upstox callback for identity {identity!r} "
            f"(has_code={bool(code)}, has_state={bool(state)}, "
            f"has_cookie={bool(cookie_hash)})"
        )
        stage = CallbackStage.RECEIVED_CODE
        sensitive: list[str] = [code or ""]

        try:
            if not code:
                details = {"provider_error": provider_error} if provider_error else {}
                return self._fail(stage, "missing_code", details, sensitive)

            if not self.codec.verify(state, identity, cookie_hash):
                raise StateValidationError(
                    "State validation failed",
                    {
                        "prefix_ok": self.codec.validate(state, identity),
                        "cookie_present": bool(cookie_hash),
                    },
                )
            stage = CallbackStage.STATE_VALIDATED

            config = self.resolver.resolve(identity)
            if config is None:
                raise ConfigurationError(
                    "No Upstox registration for identity", {"identity": identity}
                )
            client_secret = self.resolver.effective_secret(config)
            sensitive.append(client_secret)
            stage = CallbackStage.CONFIG_RESOLVED

            result = self.exchange_client.exchange(code, config, client_secret)
            sensitive.append(result.access_token)
            stage = CallbackStage.TOKEN_EXCHANGED

            self.store_client.store_token(identity, result.access_token)
            stage = CallbackStage.TOKEN_STORED

        except UpstoxOAuthError as e:
            return self._fail(stage, e.reason, e.details, sensitive)
        except Exception as e:
            # No traceback: exception messages may quote the secret or token
            logger.error(
                f"Unexpected error in Upstox callback at stage {stage.value}: "
                f"{type(e).__name__}: {redact(str(e), sensitive)}"
            )
            return self._fail(
                stage, "callback_error", {"error_type": type(e).__name__}, sensitive
            )

        logger.info(f"Upstox account connected for identity {identity!r}")
        return CallbackOutcome(stage=CallbackStage.DONE, location=self.landing.success_url)

    def handle_without_identity(
        self,
        code: Optional[str],
        state: Optional[str],
        cookie_hash: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackOutcome:
        """
        Handle a callback whose URL carries no identity.

        The identity is read back from the state token, after which the
        same checks as ``handle`` apply (prefix and cookie hash).
        """
        if not code:
            details = {"provider_error": provider_error} if provider_error else {}
            return self._fail(CallbackStage.RECEIVED_CODE, "missing_code", details, [])

        identity = self.codec.identity_from_state(state)
        if not identity:
            return self._fail(
                CallbackStage.RECEIVED_CODE,
                "invalid_state",
                {"state_present": bool(state)},
                [code],
            )
        return self.handle(identity, code, state, cookie_hash, provider_error)

    def _fail(
        self,
        stage: CallbackStage,
        reason: str,
        details: dict[str, Any],
        sensitive: Iterable[str],
    ) -> CallbackOutcome:
        sensitive = list(sensitive)
        payload = bound_details(details, sensitive) if details else ""
        logger.warning(
            f"Upstox callback failed at stage {stage.value}: {reason} {payload}".rstrip()
        )

        params = {"reason": reason, "error": ERROR_MESSAGES.get(reason, reason)}
        if payload:
            params["details"] = payload
        separator = "&" if "?" in self.landing.error_url else "?"
        location = f"{self.landing.error_url}{separator}{urlencode(params)}"

        return CallbackOutcome(
            stage=CallbackStage.ERROR,
            location=location,
            reason=reason,
            details=payload or None,
            failed_stage=stage,
        )

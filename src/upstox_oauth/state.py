"""
Anti-forgery state tokens for the authorization redirect.

A state token has the form ``<encoded identity>:<random hex nonce>``. It is
not stored server-side: the callback re-derives the expected prefix from the
identity and compares a SHA-256 hash of the state with the value held in an
HTTP-only verification cookie set at redirect time.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote

from .exceptions import ConfigurationError

# Characters left alone by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"

MIN_NONCE_BYTES = 16


def encode_identity(identity: str) -> str:
    """Percent-encode an identity the way encodeURIComponent does."""
    return quote(identity, safe=_URI_COMPONENT_SAFE)


@dataclass(frozen=True)
class EncodedState:
    """
    A freshly minted state token.

    Attributes:
        state: Value sent as the ``state`` query parameter
        verification_hash: SHA-256 hex digest of ``state`` for the cookie
    """

    state: str
    verification_hash: str


class StateTokenCodec:
    """Creates and checks state tokens."""

    def __init__(self, nonce_bytes: int = 32):
        """
        Initialize codec.

        Args:
            nonce_bytes: Random bytes per nonce (hex-encoded, so 32 -> 64 chars)

        Raises:
            ConfigurationError: If nonce_bytes is below 16
        """
        if nonce_bytes < MIN_NONCE_BYTES:
            raise ConfigurationError(
                f"nonce_bytes must be at least {MIN_NONCE_BYTES}, got {nonce_bytes}"
            )
        self.nonce_bytes = nonce_bytes

    def encode(self, identity: str) -> EncodedState:
        """
        Mint a state token for an identity.

        Args:
            identity: User identity the flow is started for

        Returns:
            EncodedState with the token and its verification hash
        """
        state = f"{encode_identity(identity)}:{secrets.token_hex(self.nonce_bytes)}"
        return EncodedState(state=state, verification_hash=self.hash_state(state))

    @staticmethod
    def hash_state(state: str) -> str:
        return hashlib.sha256(state.encode("utf-8")).hexdigest()

    @staticmethod
    def validate(state: Optional[str], identity: str) -> bool:
        """
        Prefix check only: does ``state`` belong to ``identity``?

        This alone is not proof of integrity. Callers handling a callback
        must use ``verify``, which also checks the cookie hash.
        """
        if not state:
            return False
        return state.startswith(f"{encode_identity(identity)}:")

    def verify(
        self, state: Optional[str], identity: str, cookie_hash: Optional[str]
    ) -> bool:
        """
        Full callback check: prefix match and cookie hash match.

        Args:
            state: ``state`` query parameter from the callback
            identity: Identity the callback is for
            cookie_hash: Value of the verification cookie

        Returns:
            True only when both checks pass
        """
        if not state or not cookie_hash:
            return False
        if not self.validate(state, identity):
            return False
        return hmac.compare_digest(
            self.hash_state(state).encode("utf-8"), cookie_hash.encode("utf-8")
        )

    @staticmethod
    def identity_from_state(state: Optional[str]) -> Optional[str]:
        """
        Recover the identity embedded in a state token.

        Returns:
            Decoded identity, or None if the state is malformed
        """
        if not state or ":" not in state:
            return None
        encoded, _, nonce = state.rpartition(":")
        if not encoded or not nonce:
            return None
        return unquote(encoded)

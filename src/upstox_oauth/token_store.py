"""
Client for the backend token store.

The backend durably associates a user identity with its Upstox access
token. Any non-2xx answer is a hard failure for the connect flow.
"""

import logging
from typing import Optional

import httpx

from .exceptions import TokenStoreError

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "/api/user/store-token"


class TokenStoreClient:
    """HTTP client for ``POST <backend>/api/user/store-token``.

    Attributes:
        base_url: Backend base URL
        path: Store endpoint path
        timeout: Request timeout in seconds
        _client: Underlying httpx Client
    """

    def __init__(
        self,
        base_url: str = "http://localhost:7070",
        path: str = DEFAULT_STORE_PATH,
        timeout: float = 15,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize token store client.

        Args:
            base_url: Backend base URL (default: http://localhost:7070)
            path: Store endpoint path
            timeout: Request timeout in seconds (default: 15)
            client: Pre-built httpx Client (mainly for tests)
        """
        self.base_url = base_url.rstrip("/")
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout = timeout
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"

    def store_token(self, identity: str, access_token: str) -> None:
        """Persist the access token for a user.

        Args:
            identity: User identity (phone number)
            access_token: Upstox access token

        Raises:
            TokenStoreError: Non-2xx status, timeout or transport failure
        """
        logger.info(f"Storing Upstox token for identity {identity!r}")

        try:
            response = self._client.post(
                self.url,
                json={"phoneNumber": identity, "tokenId": access_token},
            )
        except httpx.TimeoutException as e:
            logger.error(f"Token store timed out after {self.timeout}s")
            raise TokenStoreError(
                f"Token store timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Token store unreachable: {type(e).__name__}")
            raise TokenStoreError(
                f"Token store unreachable: {type(e).__name__}"
            ) from e

        if not response.is_success:
            logger.error(f"Token store failed with status {response.status_code}")
            raise TokenStoreError(
                f"Token store failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"Token stored for identity {identity!r}")

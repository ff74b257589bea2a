"""
Credential refresher for the catalog API.

This module performs the OAuth 2.0 client credentials exchange and keeps
the resulting access token for the rest of the run. Tokens are fetched once
at start-up and renewed only when they expire or when a call reports an
expired credential.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import httpx

from playlist_harvest.ingestion.base import AuthenticationError
from playlist_harvest.ingestion.interfaces import BaseTokenProvider

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"


class ClientCredentialsRefresher(BaseTokenProvider):
    """
    Obtains and caches access tokens with the client credentials grant.

    The refresher owns an ``httpx.AsyncClient`` unless one is passed in,
    in which case the caller keeps ownership of it.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        token_url: str = DEFAULT_TOKEN_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        expiry_buffer_seconds: int = 60,
    ):
        """
        Initialize the refresher.

        Args:
            client_id: OAuth client id
            client_secret: OAuth client secret
            token_url: Token endpoint of the authorization server
            http_client: Optional shared HTTP client
            timeout: Request timeout in seconds
            expiry_buffer_seconds: Treat tokens as expired this long before expiry
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.timeout = timeout
        self.expiry_buffer = timedelta(seconds=expiry_buffer_seconds)

        self._client = http_client
        self._owns_client = http_client is None

        # Token cache
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._exchanges = 0

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def exchange_count(self) -> int:
        """Number of token exchanges performed so far."""
        return self._exchanges

    def is_token_expired(self) -> bool:
        """
        Check if the cached token is missing, expired or about to expire.

        Returns:
            True if a new token is needed
        """
        if not self._access_token:
            return True
        if not self._token_expires_at:
            return False
        return datetime.utcnow() >= (self._token_expires_at - self.expiry_buffer)

    async def ensure_token(self, force: bool = False) -> str:
        """
        Return a valid access token, exchanging credentials if needed.

        Args:
            force: Exchange credentials even if the cached token is valid

        Returns:
            Access token

        Raises:
            AuthenticationError: If the exchange fails
        """
        if force or self.is_token_expired():
            await self._exchange()
        return self._access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next call exchanges credentials."""
        self._access_token = None
        self._token_expires_at = None

    def get_auth_headers(self) -> Dict[str, str]:
        """
        Get authorization headers for catalog requests.

        Returns:
            Dictionary of headers to include in requests
        """
        if not self._access_token:
            return {}
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _exchange(self) -> None:
        """
        Perform the client credentials exchange.

        Raises:
            AuthenticationError: If credentials are missing or rejected
        """
        if not self.client_id or not self.client_secret:
            raise AuthenticationError("Missing client credentials")

        client = await self._get_client()
        try:
            response = await client.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            response.raise_for_status()
            token_data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Client credentials exchange failed: {e}", exc_info=True)
            raise AuthenticationError(f"Client credentials exchange failed: {e}") from e

        access_token = token_data.get("access_token")
        if not access_token:
            raise AuthenticationError("Token endpoint returned no access_token")

        self._access_token = access_token
        expires_in = token_data.get("expires_in", 3600)
        self._token_expires_at = datetime.utcnow() + timedelta(seconds=expires_in)
        self._exchanges += 1

        logger.info(f"Access token obtained (expires in {expires_in}s)")

    async def close(self):
        """Close the HTTP client if owned by the refresher."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

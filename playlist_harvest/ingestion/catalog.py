"""
Catalog API client.

Wraps the four catalog endpoints the harvester consumes: the curator's
playlist listing, the per-playlist follower lookup, the per-playlist track
listing and the per-track audio features lookup. Non-success responses are
mapped to ``CatalogError`` subclasses so that the orchestrator can record
them per item.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from playlist_harvest.ingestion.base import (
    EndpointError,
    NotFoundError,
    TokenExpiredError,
)
from playlist_harvest.ingestion.interfaces import (
    BaseCatalogClient,
    RateLimiter,
    TokenProvider,
)
from playlist_harvest.observability.metrics import (
    api_request_counter,
    api_request_duration,
)
from playlist_harvest.types import Page

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.spotify.com/v1"


class SpotifyCatalogClient(BaseCatalogClient):
    """
    Client for the Spotify Web API catalog endpoints.

    Every request carries a bearer token from the token provider. When a
    request is rejected with 401, the token is renewed once and that single
    request is replayed after the rate limiter's delay; a second rejection
    is reported as ``TokenExpiredError``. The caller throttles the first
    attempt.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = DEFAULT_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the catalog client.

        Args:
            token_provider: Source of access tokens
            base_url: Base URL of the Web API
            http_client: Optional shared HTTP client
            timeout: Request timeout in seconds
            rate_limiter: Limiter applied before a replayed request
        """
        self.token_provider = token_provider
        self.rate_limiter = rate_limiter
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _send(
        self, path: str, params: Optional[Dict[str, Any]], force_token: bool
    ) -> httpx.Response:
        token = await self.token_provider.ensure_token(force=force_token)
        client = await self._get_client()
        return await client.get(
            f"{self.base_url}{path}",
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )

    async def _get_json(
        self,
        endpoint: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a GET request and decode the JSON body.

        Args:
            endpoint: Endpoint name used for metrics
            path: Path relative to the base URL
            params: Query parameters

        Returns:
            Decoded JSON object

        Raises:
            TokenExpiredError: If the call is still rejected after renewal
            NotFoundError: If the resource does not exist
            EndpointError: For any other failure
        """
        start_time = time.perf_counter()
        try:
            response = await self._send(path, params, force_token=False)
            if response.status_code == 401:
                logger.info(f"Access token rejected by {endpoint}, renewing")
                if self.rate_limiter is not None:
                    await self.rate_limiter.throttle()
                response = await self._send(path, params, force_token=True)
        except httpx.HTTPError as e:
            api_request_counter.labels(endpoint=endpoint, status="error").inc()
            raise EndpointError(f"{endpoint} request failed: {e}") from e
        finally:
            api_request_duration.labels(endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )

        status = response.status_code
        api_request_counter.labels(endpoint=endpoint, status=str(status)).inc()

        if status == 401:
            raise TokenExpiredError(f"{endpoint} rejected the access token", status)
        if status == 404:
            raise NotFoundError(f"{endpoint} resource not found: {path}", status)
        if status >= 400:
            raise EndpointError(f"{endpoint} returned HTTP {status}", status)

        try:
            return response.json()
        except ValueError as e:
            raise EndpointError(f"{endpoint} returned invalid JSON: {e}", status) from e

    @staticmethod
    def _to_page(data: Dict[str, Any], offset: int, limit: int) -> Page:
        return Page(
            items=data.get("items") or [],
            total=int(data.get("total") or 0),
            offset=offset,
            limit=limit,
        )

    async def list_playlists(self, user_id: str, offset: int, limit: int) -> Page:
        data = await self._get_json(
            "list_playlists",
            f"/users/{user_id}/playlists",
            {"offset": offset, "limit": limit},
        )
        return self._to_page(data, offset, limit)

    async def get_playlist_followers(self, playlist_id: str) -> int:
        data = await self._get_json(
            "get_playlist",
            f"/playlists/{playlist_id}",
            {"fields": "followers.total"},
        )
        followers = (data.get("followers") or {}).get("total")
        if followers is None:
            raise EndpointError(f"Playlist {playlist_id} has no follower count")
        return int(followers)

    async def list_playlist_tracks(
        self, playlist_id: str, offset: int, limit: int
    ) -> Page:
        data = await self._get_json(
            "list_playlist_tracks",
            f"/playlists/{playlist_id}/tracks",
            {"offset": offset, "limit": limit},
        )
        return self._to_page(data, offset, limit)

    async def get_audio_features(self, track_id: str) -> Dict[str, Any]:
        data = await self._get_json("get_audio_features", f"/audio-features/{track_id}")
        if not data:
            raise NotFoundError(f"No audio features for track {track_id}")
        return data

    async def close(self):
        """Close the HTTP client if owned by the catalog client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

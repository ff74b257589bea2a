"""
Ingestion layer interface contracts.

This module defines Protocol classes for the catalog client, the rate
limiter and the credential refresher, together with abstract base classes
for concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Protocol

from playlist_harvest.types import Page


class CatalogClient(Protocol):
    """Interface for the external catalog API."""

    async def list_playlists(self, user_id: str, offset: int, limit: int) -> Page:
        """
        Fetch one page of playlists owned by a user.

        Args:
            user_id: Catalog identity owning the playlists
            offset: Index of the first playlist in the page
            limit: Maximum number of playlists in the page

        Returns:
            The page with the advertised total

        Raises:
            CatalogError: If the lookup fails
        """
        ...

    async def get_playlist_followers(self, playlist_id: str) -> int:
        """
        Look up the follower count of a single playlist.

        Args:
            playlist_id: Identifier of the playlist

        Returns:
            Follower count

        Raises:
            CatalogError: If the lookup fails
        """
        ...

    async def list_playlist_tracks(
        self, playlist_id: str, offset: int, limit: int
    ) -> Page:
        """
        Fetch one page of track entries of a playlist.

        Args:
            playlist_id: Identifier of the playlist
            offset: Index of the first entry in the page
            limit: Maximum number of entries in the page

        Returns:
            The page with the advertised total

        Raises:
            CatalogError: If the lookup fails
        """
        ...

    async def get_audio_features(self, track_id: str) -> Dict[str, Any]:
        """
        Look up the audio feature vector of a single track.

        Args:
            track_id: Identifier of the track

        Returns:
            Raw feature payload

        Raises:
            CatalogError: If the lookup fails
        """
        ...


class RateLimiter(Protocol):
    """Interface for pacing outbound calls."""

    @property
    def delay_seconds(self) -> float:
        """Delay applied before every call."""
        ...

    async def throttle(self) -> None:
        """Wait out the delay before the next outbound call."""
        ...


class TokenProvider(Protocol):
    """Interface for obtaining access tokens."""

    async def ensure_token(self, force: bool = False) -> str:
        """
        Return a valid access token, exchanging credentials if needed.

        Args:
            force: Exchange credentials even if a cached token is valid

        Returns:
            Access token

        Raises:
            AuthenticationError: If the exchange fails
        """
        ...

    def invalidate(self) -> None:
        """Drop the cached token."""
        ...


# ============================================================================
# Abstract Base Classes
# ============================================================================


class BaseCatalogClient(ABC):
    """Abstract base class for catalog client implementations."""

    @abstractmethod
    async def list_playlists(self, user_id: str, offset: int, limit: int) -> Page:
        pass

    @abstractmethod
    async def get_playlist_followers(self, playlist_id: str) -> int:
        pass

    @abstractmethod
    async def list_playlist_tracks(
        self, playlist_id: str, offset: int, limit: int
    ) -> Page:
        pass

    @abstractmethod
    async def get_audio_features(self, track_id: str) -> Dict[str, Any]:
        pass


class BaseRateLimiter(ABC):
    """Abstract base class for rate limiter implementations."""

    @property
    @abstractmethod
    def delay_seconds(self) -> float:
        pass

    @abstractmethod
    async def throttle(self) -> None:
        pass


class BaseTokenProvider(ABC):
    """Abstract base class for token provider implementations."""

    @abstractmethod
    async def ensure_token(self, force: bool = False) -> str:
        pass

    @abstractmethod
    def invalidate(self) -> None:
        pass

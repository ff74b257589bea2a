"""
Storage layer interface contracts.

This module defines the Protocol for the harvest repository together with an
abstract base class for implementations and the storage exception hierarchy.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Protocol

from playlist_harvest.types import AudioFeatures, Playlist, Track


# ============================================================================
# Repository Interfaces (Protocol-based for type checking)
# ============================================================================


class HarvestRepository(Protocol):
    """Interface for persisting harvested catalog data."""

    async def insert_playlist(self, playlist: Playlist) -> None:
        """
        Insert a playlist, or refresh its metadata if it already exists.

        The stored follower count is cleared; only a successful lookup in
        the same run sets it again.

        Args:
            playlist: The playlist to insert

        Raises:
            StorageError: If the insert fails
        """
        ...

    async def update_playlist_followers(self, playlist_id: str, followers: int) -> bool:
        """
        Set the follower count of a stored playlist.

        Args:
            playlist_id: Id of the playlist
            followers: Follower count

        Returns:
            True if a playlist row was updated

        Raises:
            StorageError: If the update fails
        """
        ...

    async def insert_track(self, track: Track, playlist_id: str) -> bool:
        """
        Insert a track and its membership in a playlist.

        A track that is already stored is left untouched; the membership
        row is inserted either way.

        Args:
            track: The track to insert
            playlist_id: Playlist the track was listed in

        Returns:
            True if the track row was new

        Raises:
            StorageError: If the insert fails
        """
        ...

    async def insert_audio_features(self, features: AudioFeatures) -> bool:
        """
        Insert the audio features of a stored track.

        Args:
            features: Feature vector of the track

        Returns:
            True if a row was inserted

        Raises:
            IntegrityError: If the track is not stored
            StorageError: If the insert fails
        """
        ...

    async def list_track_ids(self) -> List[str]:
        """
        List the distinct ids of every stored track.

        Returns:
            Track ids in ascending order
        """
        ...

    async def count_rows(self) -> Dict[str, int]:
        """
        Count the stored rows of every relation.

        Returns:
            Mapping of relation name to row count
        """
        ...

    async def create_schema(self) -> None:
        """Create the relations if they do not exist."""
        ...

    async def reset(self) -> None:
        """
        Remove every stored row so that a run starts from empty relations.

        Raises:
            StorageError: If the relations cannot be cleared
        """
        ...


# ============================================================================
# Abstract Base Classes (for implementations)
# ============================================================================


class BaseHarvestRepository(ABC):
    """Abstract base class for harvest repository implementations."""

    @abstractmethod
    async def insert_playlist(self, playlist: Playlist) -> None:
        pass

    @abstractmethod
    async def update_playlist_followers(self, playlist_id: str, followers: int) -> bool:
        pass

    @abstractmethod
    async def insert_track(self, track: Track, playlist_id: str) -> bool:
        pass

    @abstractmethod
    async def insert_audio_features(self, features: AudioFeatures) -> bool:
        pass

    @abstractmethod
    async def list_track_ids(self) -> List[str]:
        pass

    @abstractmethod
    async def count_rows(self) -> Dict[str, int]:
        pass

    @abstractmethod
    async def create_schema(self) -> None:
        pass

    @abstractmethod
    async def reset(self) -> None:
        pass


# ============================================================================
# Exceptions
# ============================================================================


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class ConnectionError(StorageError):
    """Exception for connection failures."""

    pass


class IntegrityError(StorageError):
    """Exception for data integrity violations."""

    pass

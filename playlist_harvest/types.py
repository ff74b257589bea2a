"""
Shared type definitions for the playlist harvester.

This module contains the records that flow between the catalog client,
the orchestrator and the storage layer. They mirror the four persisted
relations plus the bookkeeping types used to describe a run.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================


class HarvestPhase(str, Enum):
    """Sequential stage of a harvest run."""

    FETCH_PLAYLISTS = "FetchPlaylists"
    PERSIST_PLAYLISTS = "PersistPlaylists"
    FETCH_FOLLOWER_COUNTS = "FetchFollowerCounts"
    FETCH_TRACKS_PER_PLAYLIST = "FetchTracksPerPlaylist"
    FETCH_AUDIO_FEATURES = "FetchAudioFeatures"


class Relation(str, Enum):
    """Persisted relations exposed to the analysis layer."""

    PLAYLISTS = "playlists"
    TRACKS = "tracks"
    PLAYLIST_TRACKS = "playlist_tracks"
    AUDIO_FEATURES = "track_audio_features"


# ============================================================================
# Catalog Records
# ============================================================================


class Playlist(BaseModel):
    """A playlist owned by the curator account."""

    id: str
    href: Optional[str] = None
    name: Optional[str] = None
    owner_id: Optional[str] = None
    followers: Optional[int] = None  # None means unknown, not zero
    collaborative: bool = False


class Track(BaseModel):
    """A track referenced by at least one playlist."""

    id: str
    name: Optional[str] = None
    popularity: Optional[int] = None
    album: Optional[str] = None
    artist: Optional[str] = None  # Primary artist name
    duration_ms: Optional[int] = None
    explicit: bool = False

    class Config:
        frozen = True


class PlaylistTrackMembership(BaseModel):
    """One occurrence of a track inside a playlist."""

    id: Optional[int] = None  # Assigned by the store
    playlist_id: str
    track_id: str

    class Config:
        frozen = True


class AudioFeatures(BaseModel):
    """The eleven numeric audio descriptors of one track."""

    track_id: str
    danceability: Optional[float] = None
    energy: Optional[float] = None
    musical_key: Optional[float] = None
    loudness: Optional[float] = None
    mode: Optional[float] = None
    speechiness: Optional[float] = None
    acousticness: Optional[float] = None
    instrumentalness: Optional[float] = None
    liveness: Optional[float] = None
    valence: Optional[float] = None
    tempo: Optional[float] = None

    class Config:
        frozen = True


AUDIO_FEATURE_FIELDS = (
    "danceability",
    "energy",
    "musical_key",
    "loudness",
    "mode",
    "speechiness",
    "acousticness",
    "instrumentalness",
    "liveness",
    "valence",
    "tempo",
)


# ============================================================================
# Pagination and Run Bookkeeping
# ============================================================================


class Page(BaseModel):
    """One page of an offset-paged catalog resource."""

    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0

    class Config:
        frozen = True


class FailureRecord(BaseModel):
    """A single entry in the failure ledger."""

    phase: HarvestPhase
    item_id: str
    cause: str
    recorded_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        frozen = True


class HarvestReport(BaseModel):
    """Summary of a completed harvest run."""

    curator: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    playlists_seen: int = 0
    row_counts: Dict[str, int] = Field(default_factory=dict)
    failures_by_phase: Dict[str, int] = Field(default_factory=dict)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

"""
Test fixtures and sample catalog payloads.

This module provides payloads shaped like the catalog API responses, and
the records converted from them, for tests across all layers.
"""

from typing import Any, Dict, List, Optional

from playlist_harvest.types import AudioFeatures, Page, Playlist, Track


# ============================================================================
# Sample Playlists
# ============================================================================


def create_sample_raw_playlist(
    playlist_id: str = "pl0001",
    name: str = "Today's Top Hits",
    owner_id: str = "spotify",
) -> Dict[str, Any]:
    """Create a playlist object as returned by the playlist listing."""
    return {
        "id": playlist_id,
        "href": f"https://api.spotify.com/v1/playlists/{playlist_id}",
        "name": name,
        "owner": {"id": owner_id, "display_name": owner_id.title()},
        "collaborative": False,
        "public": True,
        "tracks": {"total": 50},
    }


def create_sample_raw_playlists(count: int = 3) -> List[Dict[str, Any]]:
    """Create several playlist objects with distinct ids."""
    return [
        create_sample_raw_playlist(playlist_id=f"pl{i:04d}", name=f"Playlist {i}")
        for i in range(1, count + 1)
    ]


def create_sample_playlist(playlist_id: str = "pl0001") -> Playlist:
    return Playlist(
        id=playlist_id,
        href=f"https://api.spotify.com/v1/playlists/{playlist_id}",
        name="Today's Top Hits",
        owner_id="spotify",
    )


# ============================================================================
# Sample Tracks
# ============================================================================


def create_sample_raw_track(
    track_id: Optional[str] = "tr0001",
    name: str = "Blinding Lights",
    artist: Optional[str] = "The Weeknd",
    album_artist: str = "The Weeknd",
) -> Dict[str, Any]:
    """Create a track object as nested in a playlist track entry."""
    return {
        "id": track_id,
        "name": name,
        "popularity": 87,
        "duration_ms": 200040,
        "explicit": False,
        "artists": [{"id": "ar01", "name": artist}] if artist else [],
        "album": {
            "id": "al01",
            "name": "After Hours",
            "artists": [{"id": "ar01", "name": album_artist}],
        },
    }


def create_sample_track_entry(track_id: Optional[str] = "tr0001", **kwargs) -> Dict[str, Any]:
    """Create a playlist track entry wrapping a track object."""
    return {
        "added_at": "2024-01-01T00:00:00Z",
        "is_local": False,
        "track": create_sample_raw_track(track_id=track_id, **kwargs),
    }


def create_sample_track_entries(track_ids: List[str]) -> List[Dict[str, Any]]:
    return [create_sample_track_entry(track_id) for track_id in track_ids]


def create_sample_track(track_id: str = "tr0001") -> Track:
    return Track(
        id=track_id,
        name="Blinding Lights",
        popularity=87,
        album="After Hours",
        artist="The Weeknd",
        duration_ms=200040,
        explicit=False,
    )


# ============================================================================
# Sample Audio Features
# ============================================================================


def create_sample_raw_audio_features(track_id: str = "tr0001") -> Dict[str, Any]:
    """Create an audio features object as returned by the catalog."""
    return {
        "id": track_id,
        "type": "audio_features",
        "danceability": 0.514,
        "energy": 0.73,
        "key": 1,
        "loudness": -5.934,
        "mode": 1,
        "speechiness": 0.0598,
        "acousticness": 0.00146,
        "instrumentalness": 0.0000954,
        "liveness": 0.0897,
        "valence": 0.334,
        "tempo": 171.005,
        "duration_ms": 200040,
    }


def create_sample_audio_features(track_id: str = "tr0001") -> AudioFeatures:
    return AudioFeatures(
        track_id=track_id,
        danceability=0.514,
        energy=0.73,
        musical_key=1,
        loudness=-5.934,
        mode=1,
        speechiness=0.0598,
        acousticness=0.00146,
        instrumentalness=0.0000954,
        liveness=0.0897,
        valence=0.334,
        tempo=171.005,
    )


# ============================================================================
# Pages
# ============================================================================


def paginate(items: List[Dict[str, Any]], offset: int, limit: int) -> Page:
    """Slice items into the page a catalog listing would return."""
    return Page(
        items=items[offset : offset + limit],
        total=len(items),
        offset=offset,
        limit=limit,
    )


def create_listing_payload(
    items: List[Dict[str, Any]], offset: int = 0, limit: int = 50
) -> Dict[str, Any]:
    """Create a paging object body as returned by a listing endpoint."""
    return {
        "href": "https://api.spotify.com/v1/listing",
        "items": items[offset : offset + limit],
        "limit": limit,
        "offset": offset,
        "total": len(items),
        "next": None,
        "previous": None,
    }


class Fixtures:
    """Collection of all fixtures for easy access."""

    @staticmethod
    def get_raw_playlists(count: int = 3) -> List[Dict[str, Any]]:
        """Get sample playlist objects."""
        return create_sample_raw_playlists(count)

    @staticmethod
    def get_track_entries(track_ids: List[str]) -> List[Dict[str, Any]]:
        """Get sample playlist track entries."""
        return create_sample_track_entries(track_ids)

    @staticmethod
    def get_raw_audio_features(track_id: str) -> Dict[str, Any]:
        """Get a sample audio features object."""
        return create_sample_raw_audio_features(track_id)

    @staticmethod
    def get_playlist(playlist_id: str = "pl0001") -> Playlist:
        return create_sample_playlist(playlist_id)

    @staticmethod
    def get_track(track_id: str = "tr0001") -> Track:
        return create_sample_track(track_id)

    @staticmethod
    def get_audio_features(track_id: str = "tr0001") -> AudioFeatures:
        return create_sample_audio_features(track_id)

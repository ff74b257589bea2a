"""
Converters from raw catalog payloads to harvest records.

The catalog returns nested JSON objects; these helpers flatten them into
the records persisted by the storage layer.
"""

from typing import Any, Dict, List, Optional

from playlist_harvest.types import AudioFeatures, Playlist, Track

# Catalog field name -> AudioFeatures field name
AUDIO_FEATURE_KEYS = {
    "danceability": "danceability",
    "energy": "energy",
    "key": "musical_key",
    "loudness": "loudness",
    "mode": "mode",
    "speechiness": "speechiness",
    "acousticness": "acousticness",
    "instrumentalness": "instrumentalness",
    "liveness": "liveness",
    "valence": "valence",
    "tempo": "tempo",
}


def raw_to_playlist(raw: Dict[str, Any]) -> Playlist:
    """
    Convert a playlist object from a listing page to a Playlist.

    The follower count is left unset: it is only known once the dedicated
    per-playlist lookup succeeds.

    Args:
        raw: Playlist object as returned by the catalog

    Returns:
        Playlist with followers unknown

    Example:
        >>> raw = {"id": "37i9", "name": "Today's Top Hits", "owner": {"id": "spotify"}}
        >>> raw_to_playlist(raw).followers is None
        True
    """
    owner = raw.get("owner") or {}
    return Playlist(
        id=raw["id"],
        href=raw.get("href"),
        name=raw.get("name"),
        owner_id=owner.get("id"),
        followers=None,
        collaborative=bool(raw.get("collaborative", False)),
    )


def _primary_artist(track: Dict[str, Any]) -> Optional[str]:
    for artists in (track.get("artists"), (track.get("album") or {}).get("artists")):
        if artists:
            return artists[0].get("name")
    return None


def raw_to_track(entry: Dict[str, Any]) -> Optional[Track]:
    """
    Convert a playlist track entry to a Track.

    Args:
        entry: Entry of a playlist track listing (wraps a ``track`` object)

    Returns:
        Track, or None when the entry has no usable track (local or removed)
    """
    track = entry.get("track")
    if not track or not track.get("id"):
        return None

    album = track.get("album") or {}
    return Track(
        id=track["id"],
        name=track.get("name"),
        popularity=track.get("popularity"),
        album=album.get("name"),
        artist=_primary_artist(track),
        duration_ms=track.get("duration_ms"),
        explicit=bool(track.get("explicit", False)),
    )


def raw_to_audio_features(track_id: str, raw: Dict[str, Any]) -> AudioFeatures:
    """
    Convert an audio features payload to AudioFeatures.

    Args:
        track_id: Track the features belong to
        raw: Audio features object as returned by the catalog

    Returns:
        AudioFeatures for the track
    """
    values = {field: raw.get(key) for key, field in AUDIO_FEATURE_KEYS.items()}
    return AudioFeatures(track_id=track_id, **values)


def batch_raw_to_tracks(entries: List[Dict[str, Any]]) -> List[Track]:
    """
    Convert a batch of playlist entries, dropping entries without a track.

    Args:
        entries: Entries of a playlist track listing

    Returns:
        Tracks in listing order
    """
    tracks = []
    for entry in entries:
        track = raw_to_track(entry)
        if track is not None:
            tracks.append(track)
    return tracks

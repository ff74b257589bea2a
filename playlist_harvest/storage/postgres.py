"""
PostgreSQL repository implementation.

This module provides the asyncpg-based implementation of the harvest
repository together with the connection pool manager and the schema of the
four harvested relations.
"""

import logging
from typing import Dict, List, Optional

import asyncpg
from asyncpg import Pool

from playlist_harvest.observability.metrics import rows_written_counter
from playlist_harvest.storage.interfaces import (
    BaseHarvestRepository,
    ConnectionError,
    IntegrityError,
    StorageError,
)
from playlist_harvest.types import (
    AUDIO_FEATURE_FIELDS,
    AudioFeatures,
    Playlist,
    Relation,
    Track,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Connection Pool Management
# ============================================================================


class PostgreSQLConnectionPool:
    """
    Manages PostgreSQL connection pool lifecycle.

    This class handles the creation and cleanup of the asyncpg connection
    pool shared by the repository for the duration of a run.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "playlists",
        user: str = "harvest",
        password: str = "harvest",
        min_size: int = 1,
        max_size: int = 5,
    ):
        """
        Initialize connection pool configuration.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            min_size: Minimum pool size
            max_size: Maximum pool size
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[Pool] = None

    async def connect(self) -> Pool:
        """
        Create and return a connection pool.

        Returns:
            asyncpg connection pool

        Raises:
            ConnectionError: If connection fails
        """
        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=60,
            )
            logger.info(
                f"PostgreSQL connection pool created: {self.host}:{self.port}/{self.database}"
            )
            return self._pool
        except Exception as e:
            logger.error(f"Failed to create connection pool: {e}")
            raise ConnectionError(f"Database connection failed: {e}") from e

    async def close(self):
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL connection pool closed")

    @property
    def pool(self) -> Optional[Pool]:
        """Get the current pool instance."""
        return self._pool


# ============================================================================
# Schema
# ============================================================================

_FEATURE_COLUMNS = ",\n    ".join(f"{name} NUMERIC(21, 6)" for name in AUDIO_FEATURE_FIELDS)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS playlists (
        id TEXT PRIMARY KEY,
        href TEXT,
        name TEXT,
        owner_id TEXT,
        followers INTEGER,
        collaborative BOOLEAN
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tracks (
        id TEXT PRIMARY KEY,
        name TEXT,
        popularity INTEGER,
        album TEXT,
        artist TEXT,
        duration_ms INTEGER,
        explicit BOOLEAN
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS playlist_tracks (
        id SERIAL PRIMARY KEY,
        playlist_id TEXT NOT NULL,
        track_id TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS track_audio_features (
        track_id TEXT PRIMARY KEY REFERENCES tracks(id),
        {_FEATURE_COLUMNS}
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_playlist_tracks_playlist ON playlist_tracks (playlist_id)",
    "CREATE INDEX IF NOT EXISTS idx_playlist_tracks_track ON playlist_tracks (track_id)",
]


# ============================================================================
# Helper Functions
# ============================================================================


def _affected_rows(status: str) -> int:
    """Extract the row count from a command status such as 'INSERT 0 1'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


# ============================================================================
# Repository Implementation
# ============================================================================


class PostgreSQLHarvestRepository(BaseHarvestRepository):
    """PostgreSQL implementation of HarvestRepository."""

    def __init__(self, pool: Pool):
        """
        Initialize repository with a connection pool.

        Args:
            pool: asyncpg connection pool
        """
        self.pool = pool

    async def create_schema(self) -> None:
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    for statement in SCHEMA_STATEMENTS:
                        await conn.execute(statement)
            logger.info("Harvest schema ensured")
        except Exception as e:
            logger.error(f"Failed to create schema: {e}")
            raise StorageError(f"Failed to create schema: {e}") from e

    async def reset(self) -> None:
        """
        Empty the four relations before a run.

        Raises:
            StorageError: If the relations cannot be truncated
        """
        relations = ", ".join(relation.value for relation in Relation)
        try:
            await self.pool.execute(f"TRUNCATE {relations} RESTART IDENTITY")
            logger.info(f"Harvest relations cleared: {relations}")
        except Exception as e:
            logger.error(f"Failed to clear relations: {e}")
            raise StorageError(f"Failed to clear relations: {e}") from e

    async def insert_playlist(self, playlist: Playlist) -> None:
        """
        Insert a playlist, or refresh its metadata if it already exists.

        The follower count is cleared on conflict: it is only known once
        this run's lookup succeeds.

        Args:
            playlist: The playlist to insert

        Raises:
            StorageError: If the insert fails
        """
        try:
            query = """
                INSERT INTO playlists (id, href, name, owner_id, collaborative)
                VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (id) DO UPDATE SET
                    href = EXCLUDED.href,
                    name = EXCLUDED.name,
                    owner_id = EXCLUDED.owner_id,
                    collaborative = EXCLUDED.collaborative,
                    followers = NULL
            """
            await self.pool.execute(
                query,
                playlist.id,
                playlist.href,
                playlist.name,
                playlist.owner_id,
                playlist.collaborative,
            )
            rows_written_counter.labels(relation=Relation.PLAYLISTS.value).inc()
            logger.debug(f"Saved playlist {playlist.id}: {playlist.name}")

        except Exception as e:
            logger.error(f"Failed to save playlist {playlist.id}: {e}")
            raise StorageError(f"Failed to save playlist {playlist.id}: {e}") from e

    async def update_playlist_followers(self, playlist_id: str, followers: int) -> bool:
        try:
            status = await self.pool.execute(
                "UPDATE playlists SET followers = $2 WHERE id = $1",
                playlist_id,
                followers,
            )
            updated = _affected_rows(status) > 0
            if not updated:
                logger.warning(f"No stored playlist {playlist_id} to update followers")
            return updated

        except Exception as e:
            logger.error(f"Failed to update followers of {playlist_id}: {e}")
            raise StorageError(
                f"Failed to update followers of {playlist_id}: {e}"
            ) from e

    async def insert_track(self, track: Track, playlist_id: str) -> bool:
        """
        Insert a track and its membership in a playlist.

        Both rows are written in one transaction. A track that is already
        stored is absorbed by the conflict clause (or, should a conflict
        slip past it, by a savepoint around the insert) and the membership
        row is written regardless.

        Args:
            track: The track to insert
            playlist_id: Playlist the track was listed in

        Returns:
            True if the track row was new

        Raises:
            StorageError: If the insert fails
        """
        track_query = """
            INSERT INTO tracks (id, name, popularity, album, artist, duration_ms, explicit)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (id) DO NOTHING
        """
        membership_query = """
            INSERT INTO playlist_tracks (playlist_id, track_id)
            VALUES ($1, $2)
        """

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    try:
                        async with conn.transaction():
                            status = await conn.execute(
                                track_query,
                                track.id,
                                track.name,
                                track.popularity,
                                track.album,
                                track.artist,
                                track.duration_ms,
                                track.explicit,
                            )
                    except asyncpg.UniqueViolationError:
                        status = "INSERT 0 0"

                    await conn.execute(membership_query, playlist_id, track.id)

        except Exception as e:
            logger.error(f"Failed to save track {track.id}: {e}")
            raise StorageError(f"Failed to save track {track.id}: {e}") from e

        is_new = _affected_rows(status) > 0
        if is_new:
            rows_written_counter.labels(relation=Relation.TRACKS.value).inc()
        else:
            logger.debug(f"Track {track.id} already stored")
        rows_written_counter.labels(relation=Relation.PLAYLIST_TRACKS.value).inc()
        return is_new

    async def insert_audio_features(self, features: AudioFeatures) -> bool:
        columns = ", ".join(AUDIO_FEATURE_FIELDS)
        placeholders = ", ".join(f"${i}" for i in range(2, len(AUDIO_FEATURE_FIELDS) + 2))
        query = f"""
            INSERT INTO track_audio_features (track_id, {columns})
            VALUES ($1, {placeholders})
            ON CONFLICT (track_id) DO NOTHING
        """

        try:
            status = await self.pool.execute(
                query,
                features.track_id,
                *(getattr(features, name) for name in AUDIO_FEATURE_FIELDS),
            )
        except asyncpg.ForeignKeyViolationError as e:
            logger.error(f"Audio features for unknown track {features.track_id}")
            raise IntegrityError(
                f"Track {features.track_id} is not stored: {e}"
            ) from e
        except Exception as e:
            logger.error(f"Failed to save audio features of {features.track_id}: {e}")
            raise StorageError(
                f"Failed to save audio features of {features.track_id}: {e}"
            ) from e

        inserted = _affected_rows(status) > 0
        if inserted:
            rows_written_counter.labels(relation=Relation.AUDIO_FEATURES.value).inc()
        return inserted

    async def list_track_ids(self) -> List[str]:
        try:
            rows = await self.pool.fetch("SELECT DISTINCT id FROM tracks ORDER BY id")
            return [row["id"] for row in rows]

        except Exception as e:
            logger.error(f"Failed to list track ids: {e}")
            raise StorageError(f"Failed to list track ids: {e}") from e

    async def count_rows(self) -> Dict[str, int]:
        """
        Count the stored rows of every relation.

        Returns:
            Mapping of relation name to row count
        """
        counts = {}
        try:
            for relation in Relation:
                counts[relation.value] = await self.pool.fetchval(
                    f"SELECT COUNT(*) FROM {relation.value}"
                )
        except Exception as e:
            logger.error(f"Failed to count rows: {e}")
            raise StorageError(f"Failed to count rows: {e}") from e

        return counts

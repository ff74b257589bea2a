"""
Collection orchestrator for a harvest run.

This module drives the five sequential phases of a run:
playlists -> persisted playlists -> follower counts -> tracks per playlist ->
audio features. Each phase ends with a barrier on the write queue, so the
next phase only starts once every write of the previous one has run.

Per-item failures are recorded in the failure ledger and the loop moves on
to the next item. Only an authentication failure aborts the run.
"""

import logging
from datetime import datetime
from typing import List, Optional

from playlist_harvest.config import HarvestSettings
from playlist_harvest.ingestion.base import AuthenticationError, PaginationError
from playlist_harvest.ingestion.converters import (
    batch_raw_to_tracks,
    raw_to_audio_features,
    raw_to_playlist,
)
from playlist_harvest.ingestion.interfaces import (
    CatalogClient,
    RateLimiter,
    TokenProvider,
)
from playlist_harvest.ingestion.ledger import FailureLedger
from playlist_harvest.ingestion.pagination import PaginatedFetcher
from playlist_harvest.observability.logging import log_context
from playlist_harvest.storage.interfaces import HarvestRepository
from playlist_harvest.storage.writer import OrderedWriteQueue
from playlist_harvest.types import HarvestPhase, HarvestReport, Playlist

logger = logging.getLogger(__name__)


class HarvestOrchestrator:
    """
    Coordinates the catalog client, the store and the failure ledger.

    All catalog calls are issued one at a time and each is preceded by the
    rate limiter's throttle. Writes go through the ordered write queue so
    that they overlap with the next catalog call but keep their order.
    """

    def __init__(
        self,
        client: CatalogClient,
        repository: HarvestRepository,
        ledger: FailureLedger,
        rate_limiter: RateLimiter,
        settings: Optional[HarvestSettings] = None,
        token_provider: Optional[TokenProvider] = None,
        writer: Optional[OrderedWriteQueue] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Catalog API client
            repository: Store for the harvested relations
            ledger: Failure ledger for per-item failures
            rate_limiter: Limiter applied before every catalog call
            settings: Run settings (defaults if omitted)
            token_provider: Token source re-resolved before follower lookups
            writer: Write queue (one is created on the ledger if omitted)
        """
        self.client = client
        self.repository = repository
        self.ledger = ledger
        self.rate_limiter = rate_limiter
        self.settings = settings or HarvestSettings()
        self.token_provider = token_provider
        self.writer = writer or OrderedWriteQueue(ledger)
        self._owns_writer = writer is None

        self.playlist_fetcher = PaginatedFetcher(
            rate_limiter, self.settings.playlist_page_limit
        )
        self.track_fetcher = PaginatedFetcher(rate_limiter, self.settings.track_page_limit)

    async def run(self) -> HarvestReport:
        """
        Run every phase in order and report what was stored.

        Returns:
            Report with stored row counts and failures per phase

        Raises:
            AuthenticationError: If credentials cannot be obtained
            StorageError: If the store cannot be read back
        """
        curator = self.settings.curator
        report = HarvestReport(curator=curator, started_at=datetime.utcnow())

        logger.info("=" * 80)
        logger.info(f"HARVEST STARTED for curator '{curator}'")
        logger.info("=" * 80)

        first_failure = len(self.ledger)

        try:
            with log_context(curator=curator):
                # Every run is a full load into empty relations
                await self.repository.reset()

                playlists = await self.fetch_playlists()
                report.playlists_seen = len(playlists)

                await self.persist_playlists(playlists)
                await self.fetch_follower_counts(playlists)
                await self.fetch_tracks_per_playlist(playlists)
                await self.fetch_audio_features()

                await self.writer.drain()
                report.row_counts = await self.repository.count_rows()
        finally:
            if self._owns_writer:
                await self.writer.close()

        report.failures_by_phase = self.ledger.counts_by_phase(since=first_failure)
        report.finished_at = datetime.utcnow()

        logger.info("=" * 80)
        logger.info(f"HARVEST COMPLETE in {report.duration_seconds:.2f}s")
        logger.info(f"Rows stored: {report.row_counts}")
        logger.info(f"Failures by phase: {report.failures_by_phase}")
        logger.info("=" * 80)

        return report

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def fetch_playlists(self) -> List[Playlist]:
        """
        Phase 1: list every playlist of the curator.

        Pages that fail after the first are recorded and skipped. When the
        first page fails the run continues with no playlists.
        """
        phase = HarvestPhase.FETCH_PLAYLISTS
        curator = self.settings.curator

        with log_context(phase=phase.value):
            logger.info(f"Fetching playlists of {curator}")

            def on_page_error(offset: int, error: Exception) -> None:
                self.ledger.record(phase, f"{curator}@offset={offset}", error)

            try:
                raw_items = await self.playlist_fetcher.fetch_all(
                    lambda offset, limit: self.client.list_playlists(
                        curator, offset, limit
                    ),
                    resource=f"playlists of {curator}",
                    skip_failed_pages=True,
                    on_page_error=on_page_error,
                )
            except PaginationError as e:
                logger.error(f"Could not list playlists of {curator}: {e}")
                self.ledger.record(phase, f"{curator}@offset={e.offset}", e.cause)
                raw_items = e.items

            playlists = []
            for raw in raw_items:
                if not raw or not raw.get("id"):
                    logger.warning("Skipping playlist entry without id")
                    continue
                playlists.append(raw_to_playlist(raw))

            logger.info(f"Fetched {len(playlists)} playlists")
            return playlists

    async def persist_playlists(self, playlists: List[Playlist]) -> None:
        """Phase 2: store every playlist with its follower count unset."""
        phase = HarvestPhase.PERSIST_PLAYLISTS

        with log_context(phase=phase.value):
            for playlist in playlists:
                self.writer.submit(
                    phase,
                    playlist.id,
                    lambda playlist=playlist: self.repository.insert_playlist(playlist),
                )

            await self.writer.drain()
            logger.info(f"Persisted {len(playlists)} playlists")

    async def fetch_follower_counts(self, playlists: List[Playlist]) -> None:
        """
        Phase 3: look up and store the follower count of every playlist.

        A failed lookup leaves the stored count unset.
        """
        phase = HarvestPhase.FETCH_FOLLOWER_COUNTS
        total = len(playlists)

        with log_context(phase=phase.value):
            for i, playlist in enumerate(playlists, start=1):
                await self.rate_limiter.throttle()
                if self.token_provider is not None:
                    await self.token_provider.ensure_token()

                try:
                    followers = await self.client.get_playlist_followers(playlist.id)
                except AuthenticationError:
                    raise
                except Exception as e:
                    logger.warning(
                        f"[{i}/{total}] Follower lookup failed for {playlist.id}: {e}"
                    )
                    self.ledger.record(phase, playlist.id, e)
                    continue

                playlist.followers = followers
                self.writer.submit(
                    phase,
                    playlist.id,
                    lambda playlist_id=playlist.id, count=followers: (
                        self.repository.update_playlist_followers(playlist_id, count)
                    ),
                )
                logger.info(f"[{i}/{total}] {playlist.id} has {followers} followers")

            await self.writer.drain()

    async def fetch_tracks_per_playlist(self, playlists: List[Playlist]) -> None:
        """
        Phase 4: list the tracks of every playlist and store them.

        Every listed track produces a membership row; the track row itself
        is only written once across playlists. A playlist whose listing
        fails contributes no memberships.
        """
        phase = HarvestPhase.FETCH_TRACKS_PER_PLAYLIST
        total = len(playlists)

        with log_context(phase=phase.value):
            for i, playlist in enumerate(playlists, start=1):
                playlist_id = playlist.id

                try:
                    entries = await self.track_fetcher.fetch_all(
                        lambda offset, limit, playlist_id=playlist_id: (
                            self.client.list_playlist_tracks(playlist_id, offset, limit)
                        ),
                        resource=f"tracks of playlist {playlist_id}",
                    )
                except AuthenticationError:
                    raise
                except Exception as e:
                    logger.warning(
                        f"[{i}/{total}] Track listing failed for {playlist_id}: {e}"
                    )
                    self.ledger.record(phase, playlist_id, e)
                    continue

                tracks = batch_raw_to_tracks(entries)
                skipped = len(entries) - len(tracks)
                if skipped:
                    logger.info(f"Skipping {skipped} entries without track in {playlist_id}")

                for track in tracks:
                    self.writer.submit(
                        phase,
                        track.id,
                        lambda track=track, playlist_id=playlist_id: (
                            self.repository.insert_track(track, playlist_id)
                        ),
                    )

                logger.info(f"[{i}/{total}] Queued {len(tracks)} tracks of {playlist_id}")

            await self.writer.drain()

    async def fetch_audio_features(self) -> None:
        """Phase 5: look up and store the audio features of every stored track."""
        phase = HarvestPhase.FETCH_AUDIO_FEATURES

        with log_context(phase=phase.value):
            await self.writer.drain()
            track_ids = await self.repository.list_track_ids()
            total = len(track_ids)
            logger.info(f"Fetching audio features for {total} tracks")

            for i, track_id in enumerate(track_ids, start=1):
                await self.rate_limiter.throttle()

                try:
                    raw = await self.client.get_audio_features(track_id)
                    features = raw_to_audio_features(track_id, raw)
                except AuthenticationError:
                    raise
                except Exception as e:
                    logger.warning(
                        f"[{i}/{total}] Audio features lookup failed for {track_id}: {e}"
                    )
                    self.ledger.record(phase, track_id, e)
                    continue

                self.writer.submit(
                    phase,
                    track_id,
                    lambda features=features: self.repository.insert_audio_features(
                        features
                    ),
                )
                logger.debug(f"[{i}/{total}] Fetched audio features for {track_id}")

            await self.writer.drain()

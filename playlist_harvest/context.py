"""
Run context owning every resource of a harvest.

The context creates the database pool, the HTTP client, the credential
refresher, the rate limiter, the failure ledger and the write queue when a
run starts, and releases them in reverse order when it ends.
"""

import logging
from typing import Optional

import httpx

from playlist_harvest.config import HarvestSettings, load_settings
from playlist_harvest.ingestion.auth import ClientCredentialsRefresher
from playlist_harvest.ingestion.catalog import SpotifyCatalogClient
from playlist_harvest.ingestion.ledger import FailureLedger
from playlist_harvest.ingestion.rate_limiter import FixedDelayRateLimiter
from playlist_harvest.orchestrator import HarvestOrchestrator
from playlist_harvest.storage.postgres import (
    PostgreSQLConnectionPool,
    PostgreSQLHarvestRepository,
)
from playlist_harvest.storage.writer import OrderedWriteQueue
from playlist_harvest.types import HarvestReport

logger = logging.getLogger(__name__)


class HarvestContext:
    """
    Explicit lifecycle for the resources of one run.

    Usage:
        async with HarvestContext(settings) as ctx:
            report = await ctx.create_orchestrator().run()
    """

    def __init__(self, settings: Optional[HarvestSettings] = None):
        self.settings = settings or load_settings()

        # Initialized on connect
        self.db_pool: Optional[PostgreSQLConnectionPool] = None
        self.repository: Optional[PostgreSQLHarvestRepository] = None
        self.http_client: Optional[httpx.AsyncClient] = None
        self.token_provider: Optional[ClientCredentialsRefresher] = None
        self.client: Optional[SpotifyCatalogClient] = None
        self.rate_limiter: Optional[FixedDelayRateLimiter] = None
        self.ledger: Optional[FailureLedger] = None
        self.writer: Optional[OrderedWriteQueue] = None

    async def connect(self):
        """Create every resource of the run."""
        settings = self.settings
        logger.info("Connecting harvest resources...")

        self.db_pool = PostgreSQLConnectionPool(
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.postgres_db,
            user=settings.postgres_user,
            password=settings.postgres_password,
            min_size=settings.postgres_min_pool,
            max_size=settings.postgres_max_pool,
        )
        await self.db_pool.connect()
        self.repository = PostgreSQLHarvestRepository(self.db_pool.pool)
        logger.info("PostgreSQL connected")

        self.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self.token_provider = ClientCredentialsRefresher(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_url=settings.token_url,
            http_client=self.http_client,
        )
        self.rate_limiter = FixedDelayRateLimiter.from_milliseconds(settings.throttle_ms)
        self.client = SpotifyCatalogClient(
            self.token_provider,
            base_url=settings.api_url,
            http_client=self.http_client,
            rate_limiter=self.rate_limiter,
        )
        self.ledger = FailureLedger(settings.failure_ledger_path)
        self.writer = OrderedWriteQueue(self.ledger)
        self.writer.start()

        logger.info("All harvest resources connected")

    async def disconnect(self):
        """Release every resource of the run."""
        logger.info("Disconnecting harvest resources...")

        try:
            if self.writer:
                await self.writer.close()
        finally:
            if self.http_client:
                await self.http_client.aclose()
            if self.db_pool:
                await self.db_pool.close()

        logger.info("Disconnected harvest resources")

    async def __aenter__(self) -> "HarvestContext":
        try:
            await self.connect()
        except BaseException:
            await self.disconnect()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    def create_orchestrator(self) -> HarvestOrchestrator:
        """Build an orchestrator on the resources of this context."""
        return HarvestOrchestrator(
            client=self.client,
            repository=self.repository,
            ledger=self.ledger,
            rate_limiter=self.rate_limiter,
            settings=self.settings,
            token_provider=self.token_provider,
            writer=self.writer,
        )


async def run_harvest(
    settings: Optional[HarvestSettings] = None,
    create_schema: bool = False,
) -> HarvestReport:
    """
    Quick helper to run a complete harvest.

    Args:
        settings: Run settings (loaded from the environment if omitted)
        create_schema: Create the relations before harvesting

    Returns:
        Report of the run
    """
    async with HarvestContext(settings) as ctx:
        if create_schema:
            await ctx.repository.create_schema()
        return await ctx.create_orchestrator().run()

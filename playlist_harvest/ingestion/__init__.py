"""
Ingestion layer for the playlist harvester.

This package contains the catalog client, the credential refresher, the
rate limiter, the paginated fetcher and the failure ledger.
"""

from playlist_harvest.ingestion.auth import ClientCredentialsRefresher
from playlist_harvest.ingestion.base import (
    AuthenticationError,
    CatalogError,
    EndpointError,
    HarvestError,
    NotFoundError,
    PaginationError,
    TokenExpiredError,
)
from playlist_harvest.ingestion.catalog import SpotifyCatalogClient
from playlist_harvest.ingestion.ledger import FailureLedger
from playlist_harvest.ingestion.pagination import PaginatedFetcher
from playlist_harvest.ingestion.rate_limiter import FixedDelayRateLimiter

__all__ = [
    "AuthenticationError",
    "CatalogError",
    "ClientCredentialsRefresher",
    "EndpointError",
    "FailureLedger",
    "FixedDelayRateLimiter",
    "HarvestError",
    "NotFoundError",
    "PaginatedFetcher",
    "PaginationError",
    "SpotifyCatalogClient",
    "TokenExpiredError",
]

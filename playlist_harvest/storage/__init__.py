"""
Storage layer for the playlist harvester.

This package contains the repository interface, its PostgreSQL
implementation and the in-order write dispatcher.
"""

from playlist_harvest.storage.interfaces import (
    BaseHarvestRepository,
    ConnectionError,
    HarvestRepository,
    IntegrityError,
    StorageError,
)
from playlist_harvest.storage.postgres import (
    PostgreSQLConnectionPool,
    PostgreSQLHarvestRepository,
)
from playlist_harvest.storage.writer import OrderedWriteQueue

__all__ = [
    "BaseHarvestRepository",
    "ConnectionError",
    "HarvestRepository",
    "IntegrityError",
    "OrderedWriteQueue",
    "PostgreSQLConnectionPool",
    "PostgreSQLHarvestRepository",
    "StorageError",
]

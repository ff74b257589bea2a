"""
Mock implementations for testing.

These mocks stand in for the catalog API and the database so that the
orchestrator can be exercised end to end in memory.
"""

from tests.mocks.catalog import MockCatalogClient, MockTokenProvider
from tests.mocks.storage import MockHarvestRepository

__all__ = [
    "MockCatalogClient",
    "MockHarvestRepository",
    "MockTokenProvider",
]

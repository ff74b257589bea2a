"""
Exceptions raised by the ingestion layer.

Per-item catalog failures (``CatalogError`` and its subclasses) are expected
during a harvest and are recovered locally by the orchestrator. An
``AuthenticationError`` is fatal: no later call can succeed without a token.
"""

from typing import Any, Dict, List, Optional


class HarvestError(Exception):
    """Base exception for the harvester."""

    pass


class CatalogError(HarvestError):
    """Exception raised when a single catalog lookup fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(CatalogError):
    """Exception raised when the catalog reports a missing resource."""

    pass


class EndpointError(CatalogError):
    """Exception raised for any other non-success catalog response."""

    pass


class TokenExpiredError(CatalogError):
    """Exception raised when a call is rejected for an expired token."""

    pass


class AuthenticationError(HarvestError):
    """Exception raised when the token exchange fails."""

    pass


class PaginationError(HarvestError):
    """Exception raised when a page of a paged resource cannot be fetched."""

    def __init__(
        self,
        resource: str,
        offset: int,
        cause: Exception,
        items: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(f"Failed to fetch {resource} at offset {offset}: {cause}")
        self.resource = resource
        self.offset = offset
        self.cause = cause
        self.items = items or []

"""
Offset-based pagination over catalog resources.

The fetcher walks a paged resource with an explicit offset accumulator,
requesting offsets 0, L, 2L, ... until the next offset reaches the total
advertised by the most recent page. Every page request is preceded by the
rate limiter's throttle, including the first one.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from playlist_harvest.ingestion.base import AuthenticationError, PaginationError
from playlist_harvest.ingestion.interfaces import RateLimiter
from playlist_harvest.types import Page

logger = logging.getLogger(__name__)

PageFunction = Callable[[int, int], Awaitable[Page]]
PageErrorCallback = Callable[[int, Exception], None]


class PaginatedFetcher:
    """
    Repeated-request driver for offset-paged resources.

    By default a failing page raises ``PaginationError``. With
    ``skip_failed_pages`` the fetcher logs the failure, reports it through
    ``on_page_error`` and moves on to the next offset, provided a total is
    already known. A failure on the first page always raises, since the
    bound of the resource is unknown at that point.
    """

    def __init__(self, rate_limiter: RateLimiter, limit: int):
        """
        Initialize the fetcher.

        Args:
            rate_limiter: Limiter applied before every page request
            limit: Page size requested from the resource
        """
        if limit <= 0:
            raise ValueError("Page limit must be positive")

        self.rate_limiter = rate_limiter
        self.limit = limit

    async def fetch_all(
        self,
        page_fn: PageFunction,
        resource: str = "resource",
        skip_failed_pages: bool = False,
        on_page_error: Optional[PageErrorCallback] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every item of a paged resource.

        Args:
            page_fn: Coroutine function taking (offset, limit) and returning a Page
            resource: Name used in logs and errors
            skip_failed_pages: Skip pages that fail after the first one
            on_page_error: Called with (offset, error) for every skipped page

        Returns:
            Ordered concatenation of the items of every page

        Raises:
            PaginationError: If a page fails and is not skipped
            AuthenticationError: If credentials cannot be obtained
        """
        items: List[Dict[str, Any]] = []
        offset = 0
        total: Optional[int] = None

        while total is None or offset < total:
            await self.rate_limiter.throttle()
            logger.info(f"Pulling {resource} at offset {offset}")

            try:
                page = await page_fn(offset, self.limit)
            except AuthenticationError:
                raise
            except Exception as e:
                if not skip_failed_pages or total is None:
                    raise PaginationError(resource, offset, e, items) from e

                logger.warning(
                    f"Skipping page of {resource} at offset {offset}: {e}"
                )
                if on_page_error is not None:
                    on_page_error(offset, e)
                offset += self.limit
                continue

            if total is not None and page.total != total:
                logger.warning(
                    f"Total for {resource} changed from {total} to {page.total} "
                    f"at offset {offset}"
                )
            total = page.total
            items.extend(page.items)
            offset += self.limit

        logger.debug(f"Fetched {len(items)} items of {resource} (total={total})")
        return items

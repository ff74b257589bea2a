"""
Rate limiting for outbound catalog calls.

The catalog is paced with a blunt, fixed delay applied before every
outbound request, regardless of the outcome of the previous one. Calls are
serialized by the orchestrator, so no locking is needed here.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from playlist_harvest.ingestion.interfaces import BaseRateLimiter
from playlist_harvest.observability.metrics import throttle_wait_counter

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 1000


class FixedDelayRateLimiter(BaseRateLimiter):
    """
    Rate limiter that waits a fixed delay before every outbound call.

    This is a global pacing control, not an adaptive backoff: the delay is
    the same after a success, a failure or a rate-limit response.
    """

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DELAY_MS / 1000,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            delay_seconds: Delay applied before every call
            sleep: Coroutine used to wait (defaults to asyncio.sleep)
        """
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

        self._delay_seconds = delay_seconds
        self._sleep = sleep or asyncio.sleep
        self._requests = 0

        logger.info(f"Rate limiter initialized. Fixed delay: {delay_seconds:.3f}s")

    @classmethod
    def from_milliseconds(cls, delay_ms: int, **kwargs) -> "FixedDelayRateLimiter":
        return cls(delay_seconds=delay_ms / 1000, **kwargs)

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    @property
    def request_count(self) -> int:
        """Number of calls paced so far."""
        return self._requests

    async def throttle(self) -> None:
        """Wait out the fixed delay before the next outbound call."""
        self._requests += 1
        throttle_wait_counter.inc()
        if self._delay_seconds > 0:
            await self._sleep(self._delay_seconds)

"""
In-order write dispatcher.

Writes are handed off to a single consumer task so that the orchestrator can
issue its next catalog call while the previous write is still running. With
one consumer, writes execute strictly in submission order; a failed write is
recorded in the failure ledger under the phase that submitted it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple

from playlist_harvest.ingestion.ledger import FailureLedger
from playlist_harvest.observability.metrics import write_queue_depth
from playlist_harvest.types import HarvestPhase

logger = logging.getLogger(__name__)

WriteFactory = Callable[[], Awaitable[object]]
_WriteJob = Tuple[HarvestPhase, str, WriteFactory]


class OrderedWriteQueue:
    """
    FIFO queue of pending writes drained by one consumer task.

    Usage:
        writer = OrderedWriteQueue(ledger)
        writer.submit(phase, playlist.id, lambda: repo.insert_playlist(playlist))
        await writer.drain()   # barrier: every submitted write has run
        await writer.close()
    """

    def __init__(self, ledger: FailureLedger):
        self.ledger = ledger
        self._queue: "asyncio.Queue[Optional[_WriteJob]]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._completed = 0
        self._failed = 0

    @property
    def completed(self) -> int:
        """Number of writes that ran successfully."""
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        """Whether the consumer task is alive."""
        return self._consumer is not None and not self._consumer.done()

    def start(self) -> None:
        """Start the consumer task if it is not running."""
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.create_task(self._consume())
            logger.debug("Write consumer started")

    def submit(self, phase: HarvestPhase, item_id: str, write: WriteFactory) -> None:
        """
        Queue a write without waiting for it.

        Args:
            phase: Phase the write belongs to, used for ledger entries
            item_id: Id of the item being written
            write: Zero-argument callable returning the write coroutine
        """
        self.start()
        self._queue.put_nowait((phase, item_id, write))
        write_queue_depth.set(self._queue.qsize())

    async def drain(self) -> None:
        """Wait until every write submitted so far has run."""
        if self._consumer is None:
            return
        await self._queue.join()

    async def close(self) -> None:
        """Drain pending writes and stop the consumer."""
        if self._consumer is None:
            return

        await self.drain()
        self._queue.put_nowait(None)
        await self._consumer
        self._consumer = None
        logger.debug(
            f"Write consumer stopped ({self._completed} written, {self._failed} failed)"
        )

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                if job is None:
                    return

                phase, item_id, write = job
                try:
                    await write()
                    self._completed += 1
                except Exception as e:
                    self._failed += 1
                    logger.error(f"Write of {item_id} failed during {phase.value}: {e}")
                    self.ledger.record(phase, item_id, e)
            finally:
                self._queue.task_done()
                write_queue_depth.set(self._queue.qsize())

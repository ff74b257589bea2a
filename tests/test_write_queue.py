"""
Tests for the in-order write queue.

Run with: pytest tests/test_write_queue.py -v
"""

import asyncio

import pytest

from playlist_harvest.ingestion.ledger import FailureLedger
from playlist_harvest.storage.interfaces import StorageError
from playlist_harvest.storage.writer import OrderedWriteQueue
from playlist_harvest.types import HarvestPhase


@pytest.mark.asyncio
async def test_writes_run_in_submission_order():
    writer = OrderedWriteQueue(FailureLedger())
    executed = []

    async def write(name, delay):
        await asyncio.sleep(delay)
        executed.append(name)

    # A slow first write must still complete before the fast ones
    writer.submit(HarvestPhase.PERSIST_PLAYLISTS, "a", lambda: write("a", 0.02))
    writer.submit(HarvestPhase.PERSIST_PLAYLISTS, "b", lambda: write("b", 0))
    writer.submit(HarvestPhase.PERSIST_PLAYLISTS, "c", lambda: write("c", 0))
    await writer.drain()

    assert executed == ["a", "b", "c"]
    assert writer.completed == 3
    await writer.close()


@pytest.mark.asyncio
async def test_submit_does_not_wait_for_write():
    writer = OrderedWriteQueue(FailureLedger())
    executed = []

    async def write():
        executed.append("done")

    writer.submit(HarvestPhase.PERSIST_PLAYLISTS, "a", write)

    assert executed == []
    await writer.drain()
    assert executed == ["done"]
    await writer.close()


@pytest.mark.asyncio
async def test_failed_write_goes_to_ledger_and_queue_continues():
    ledger = FailureLedger()
    writer = OrderedWriteQueue(ledger)
    executed = []

    async def ok(name):
        executed.append(name)

    async def broken():
        raise StorageError("connection reset")

    writer.submit(HarvestPhase.FETCH_TRACKS_PER_PLAYLIST, "tr1", lambda: ok("tr1"))
    writer.submit(HarvestPhase.FETCH_TRACKS_PER_PLAYLIST, "tr2", broken)
    writer.submit(HarvestPhase.FETCH_TRACKS_PER_PLAYLIST, "tr3", lambda: ok("tr3"))
    await writer.close()

    assert executed == ["tr1", "tr3"]
    assert writer.failed == 1
    assert ledger.item_ids(HarvestPhase.FETCH_TRACKS_PER_PLAYLIST) == ["tr2"]
    assert "connection reset" in ledger.entries[0].cause


@pytest.mark.asyncio
async def test_drain_and_close_without_writes():
    writer = OrderedWriteQueue(FailureLedger())
    await writer.drain()
    await writer.close()
    assert writer.pending == 0


@pytest.mark.asyncio
async def test_close_runs_pending_writes():
    writer = OrderedWriteQueue(FailureLedger())
    executed = []

    async def write(name):
        executed.append(name)

    for name in ("a", "b"):
        writer.submit(HarvestPhase.PERSIST_PLAYLISTS, name, lambda name=name: write(name))
    assert writer.running
    await writer.close()

    assert executed == ["a", "b"]
    assert not writer.running

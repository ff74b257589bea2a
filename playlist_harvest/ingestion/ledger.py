"""
Failure ledger for per-item harvest failures.

Every lookup or write that fails during a run is recorded here with its
phase, the id of the item involved and the cause. The ledger is the run's
diagnostic record: failed items are not retried, they simply end up with
fewer rows in the store.
"""

import json
import logging
from collections import Counter, defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Union

from playlist_harvest.observability.metrics import harvest_failures_counter
from playlist_harvest.types import FailureRecord, HarvestPhase

logger = logging.getLogger(__name__)

failure_logger = logging.getLogger("playlist_harvest.failures")


class FailureLedger:
    """
    Append-only record of per-item failures.

    Records are kept in memory for the run report and, when a path is
    given, appended to a JSON Lines file as they happen so that a crashed
    run still leaves its failures behind.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._entries: List[FailureRecord] = []
        self._by_phase: Dict[HarvestPhase, List[FailureRecord]] = defaultdict(list)

        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Failure ledger writing to {self.path}")

    def record(
        self,
        phase: HarvestPhase,
        item_id: str,
        cause: Union[str, BaseException],
    ) -> FailureRecord:
        """
        Record a failed item.

        Args:
            phase: Phase in which the failure happened
            item_id: Id of the playlist, track or page that failed
            cause: Exception or description of the failure

        Returns:
            The appended record
        """
        if isinstance(cause, BaseException):
            cause = f"{type(cause).__name__}: {cause}"

        entry = FailureRecord(phase=phase, item_id=str(item_id), cause=cause)
        self._entries.append(entry)
        self._by_phase[entry.phase].append(entry)

        failure_logger.warning(f"[{entry.phase.value}] {entry.item_id}: {entry.cause}")
        harvest_failures_counter.labels(phase=entry.phase.value).inc()

        if self.path is not None:
            self._append(entry)

        return entry

    def _append(self, entry: FailureRecord) -> None:
        line = json.dumps(
            {
                "phase": entry.phase.value,
                "item_id": entry.item_id,
                "cause": entry.cause,
                "recorded_at": entry.recorded_at.isoformat(),
            }
        )
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.error(f"Failed to append to failure ledger {self.path}: {e}")

    @property
    def entries(self) -> List[FailureRecord]:
        return list(self._entries)

    def for_phase(self, phase: HarvestPhase) -> List[FailureRecord]:
        """Get the records of one phase, in recording order."""
        return list(self._by_phase.get(HarvestPhase(phase), []))

    def item_ids(self, phase: HarvestPhase) -> List[str]:
        return [entry.item_id for entry in self.for_phase(phase)]

    def counts_by_phase(self, since: int = 0) -> Dict[str, int]:
        """
        Count failures per phase.

        Args:
            since: Only count records from this position on

        Returns:
            Mapping of phase name to number of failures, phases without
            failures omitted
        """
        counts = Counter(entry.phase.value for entry in self._entries[since:])
        return dict(counts)

    def __len__(self) -> int:
        return len(self._entries)

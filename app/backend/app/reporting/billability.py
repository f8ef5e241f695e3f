"""Billability flag index and record-level billability evaluation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from types import MappingProxyType

from app.reporting.records import BillabilityFlag, Dimension, ExpenseRecord, RecordFamily, TaskRecord
from app.reporting.sources import FlagSource

logger = logging.getLogger(__name__)

FlagKey = tuple[Dimension, RecordFamily, str]

_EMPTY: Mapping[FlagKey, bool] = MappingProxyType({})


class BillabilityIndex:
    """Read-mostly lookup of non-billable flags.

    Readers always see one complete snapshot. Loads build a new mapping and
    publish it with a single reference assignment; concurrent loads are
    serialized by a writer lock. Until the first load completes the snapshot is
    empty and every lookup answers billable.
    """

    def __init__(self) -> None:
        self._snapshot: Mapping[FlagKey, bool] = _EMPTY
        self._write_lock = threading.Lock()
        self._loaded = threading.Event()
        self._loaded_at: datetime | None = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded.is_set()

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    @property
    def flag_count(self) -> int:
        return len(self._snapshot)

    def load(self, flags: Iterable[BillabilityFlag]) -> int:
        """Replace the snapshot with ``flags`` and return the number of keys."""

        entries: dict[FlagKey, bool] = {}
        for flag in flags:
            # first row for a key wins
            entries.setdefault((flag.category, flag.subcategory, flag.item_value), bool(flag.non_billable))
        snapshot = MappingProxyType(entries)
        with self._write_lock:
            self._snapshot = snapshot
            self._loaded_at = datetime.now(timezone.utc)
            self._loaded.set()
        return len(snapshot)

    def reload(self, flag_source: FlagSource) -> int:
        """Fetch every flag from ``flag_source`` and swap it in.

        Fetch failures propagate; the previous snapshot stays published.
        """

        count = self.load(flag_source.fetch_all_billability_flags())
        logger.info("Billability index loaded with %d flags", count)
        return count

    def load_in_background(self, flag_source: FlagSource) -> threading.Thread:
        """Start the first load on a daemon thread and return it."""

        def _run() -> None:
            try:
                self.reload(flag_source)
            except Exception:
                logger.exception("Failed to load billability flags; all records count as billable")

        thread = threading.Thread(target=_run, name="billability-index-loader", daemon=True)
        thread.start()
        return thread

    def wait_until_loaded(self, timeout: float | None = None) -> bool:
        return self._loaded.wait(timeout)

    def lookup(self, category: Dimension, subcategory: RecordFamily, item_value: str) -> bool:
        """Return whether the value is billable; unknown values are billable."""

        non_billable = self._snapshot.get((category, subcategory, item_value))
        if non_billable is None:
            return True
        return not non_billable


class BillabilityEvaluator:
    """Combines per-dimension flags into a record verdict.

    A record is billable only when every dimension it touches is billable.
    """

    def __init__(self, index: BillabilityIndex) -> None:
        self.index = index

    def is_task_billable(self, task: TaskRecord) -> bool:
        lookup = self.index.lookup
        return (
            lookup(Dimension.CLIENT, RecordFamily.TASK, task.client)
            and lookup(Dimension.PROJECT, RecordFamily.TASK, task.project)
            and lookup(Dimension.PHASE, RecordFamily.TASK, task.phase)
        )

    def is_expense_billable(self, expense: ExpenseRecord) -> bool:
        lookup = self.index.lookup
        return (
            lookup(Dimension.CLIENT, RecordFamily.EXPENSE, expense.client)
            and lookup(Dimension.PROJECT, RecordFamily.EXPENSE, expense.project or "")
            and lookup(Dimension.EXPENSE_TYPE, RecordFamily.EXPENSE, expense.expense_type)
        )

    def split_tasks(self, tasks: Iterable[TaskRecord]) -> tuple[list[TaskRecord], list[TaskRecord]]:
        billable: list[TaskRecord] = []
        non_billable: list[TaskRecord] = []
        for task in tasks:
            (billable if self.is_task_billable(task) else non_billable).append(task)
        return billable, non_billable

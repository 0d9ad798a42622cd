"""Cumulative engine statistics shared by all workers."""

from __future__ import annotations

import threading
from collections import Counter
from typing import TYPE_CHECKING

from archgate.engine.models import EngineStats

if TYPE_CHECKING:
    from collections.abc import Iterable

    from archgate.engine.models import Violation


class StatsAggregator:
    """Thread-safe accumulator behind :class:`EngineStats` snapshots.

    Counters grow across validation calls; :meth:`reset` is the only way to
    clear them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files_processed = 0
        self._rules_executed = 0
        self._total_violations = 0
        self._by_severity: Counter[str] = Counter()
        self._execution_time = 0.0

    def record_file(
        self,
        violations: Iterable[Violation],
        *,
        rules_executed: int,
        execution_time: float,
    ) -> None:
        """Add one file's outcome to the totals."""
        severities = [v.severity for v in violations]
        with self._lock:
            self._files_processed += 1
            self._rules_executed += rules_executed
            self._total_violations += len(severities)
            self._by_severity.update(severities)
            self._execution_time += execution_time

    def snapshot(self) -> EngineStats:
        with self._lock:
            files = self._files_processed
            return EngineStats(
                files_processed=files,
                rules_executed=self._rules_executed,
                total_violations=self._total_violations,
                violations_by_severity=dict(self._by_severity),
                execution_time=self._execution_time,
                average_file_time=self._execution_time / files if files else 0.0,
            )

    def reset(self) -> None:
        with self._lock:
            self._files_processed = 0
            self._rules_executed = 0
            self._total_violations = 0
            self._by_severity = Counter()
            self._execution_time = 0.0

"""
Per-API failure-rate metrics.

One :class:`FailureRate` per external API, created once at import time
and shared by every virtual user in the process.  Each iteration feeds
exactly one boolean per API; the fraction of ``True`` values is compared
against the API's threshold when the run ends.

Locust runs users as gevent greenlets, so a plain lock around two integer
increments is all the coordination the counters need.  In a distributed
run each worker drains its counters into the periodic report to the
master, which merges them (see :mod:`loadtest.hooks`).
"""

from __future__ import annotations

import csv
import threading
from dataclasses import dataclass
from pathlib import Path

QUIZ_FAILURES = "quiz_api_failures"
LOCATION_FAILURES = "location_api_failures"
TIME_FAILURES = "time_api_failures"
EXCHANGE_FAILURES = "exchange_api_failures"

API_METRICS = (QUIZ_FAILURES, LOCATION_FAILURES, TIME_FAILURES, EXCHANGE_FAILURES)

CSV_FIELDS = ("Name", "Samples", "Failures", "Rate")


@dataclass(frozen=True)
class RateSnapshot:
    name: str
    total: int
    failures: int

    @property
    def rate(self) -> float:
        return self.failures / self.total if self.total else 0.0


class FailureRate:
    """Accumulates booleans; ``rate`` is the fraction that were ``True``."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._total = 0
        self._failures = 0

    def add(self, failed: bool) -> None:
        with self._lock:
            self._total += 1
            if failed:
                self._failures += 1

    def snapshot(self) -> RateSnapshot:
        with self._lock:
            return RateSnapshot(self.name, self._total, self._failures)

    @property
    def total(self) -> int:
        return self.snapshot().total

    @property
    def failures(self) -> int:
        return self.snapshot().failures

    @property
    def rate(self) -> float:
        return self.snapshot().rate

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._failures = 0

    def drain(self) -> RateSnapshot:
        """Return the counts accumulated so far and start again from zero."""
        with self._lock:
            snap = RateSnapshot(self.name, self._total, self._failures)
            self._total = 0
            self._failures = 0
        return snap

    def merge(self, total: int, failures: int) -> None:
        """Fold in counts accumulated elsewhere (e.g. by a Locust worker)."""
        if total < 0 or failures < 0 or failures > total:
            raise ValueError(f"Invalid counts for {self.name}: {failures}/{total}")
        with self._lock:
            self._total += total
            self._failures += failures

    def __repr__(self) -> str:
        snap = self.snapshot()
        return f"FailureRate({self.name!r}, {snap.failures}/{snap.total})"


class MetricsRegistry:
    """The named failure rates, in the order the iteration calls the APIs."""

    def __init__(self, names: tuple[str, ...] = API_METRICS):
        self._rates = {name: FailureRate(name) for name in names}

    def __getitem__(self, name: str) -> FailureRate:
        return self._rates[name]

    def __iter__(self):
        return iter(self._rates.values())

    def names(self) -> tuple[str, ...]:
        return tuple(self._rates)

    def record(self, name: str, failed: bool) -> None:
        """
        Record one outcome for *name*.

        Raises:
            KeyError: If *name* is not a registered metric.
        """
        self._rates[name].add(failed)

    def snapshot(self) -> dict[str, RateSnapshot]:
        return {name: rate.snapshot() for name, rate in self._rates.items()}

    def reset(self) -> None:
        for rate in self._rates.values():
            rate.reset()

    def drain(self) -> dict[str, list[int]]:
        """Return ``{name: [total, failures]}`` and zero every counter."""
        drained = {}
        for name, rate in self._rates.items():
            snap = rate.drain()
            drained[name] = [snap.total, snap.failures]
        return drained

    def merge(self, counts: dict[str, list[int]]) -> None:
        """Fold in the output of another process's :meth:`drain`; unknown names are ignored."""
        for name, (total, failures) in counts.items():
            if name in self._rates:
                self._rates[name].merge(int(total), int(failures))

    def write_csv(self, path: str | Path) -> Path:
        """
        Write one ``Name,Samples,Failures,Rate`` row per metric.

        The file sits next to Locust's own ``--csv`` output so that
        :mod:`loadtest.check_thresholds` can gate a finished run offline.
        """
        target = Path(path)
        with target.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_FIELDS)
            for snap in self.snapshot().values():
                writer.writerow([snap.name, snap.total, snap.failures, f"{snap.rate:.6f}"])
        return target


# Process-wide registry shared by every virtual user.
METRICS = MetricsRegistry()

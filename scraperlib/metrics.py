import threading
import time
from dataclasses import dataclass, replace
from typing import Callable


@dataclass
class Totals:
    """Running counts over every HTTP attempt, retries included."""

    fetches: int = 0
    bytes: int = 0
    errors: int = 0
    rate_limited: int = 0
    fetch_ms_sum: float = 0.0

    @property
    def avg_fetch_ms(self) -> float:
        return self.fetch_ms_sum / self.fetches if self.fetches else 0.0

    @property
    def megabytes(self) -> float:
        return self.bytes / (1024 * 1024)

    def summary(self, elapsed: float) -> str:
        return (
            f"Perf: fetches={self.fetches}, errors={self.errors}, rate_limited={self.rate_limited}, "
            f"MB={self.megabytes:.2f}, avg_fetch_ms={self.avg_fetch_ms:.1f}, "
            f"fetches/sec={self.fetches / elapsed:.2f}"
        )


class Metrics:
    """Thread-safe fetch accounting shared by every page worker."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started = clock()
        self._totals = Totals()
        self._lock = threading.Lock()

    def record_fetch(self, ok: bool, bytes_read: int, fetch_ms: float, rate_limited: bool = False) -> None:
        with self._lock:
            t = self._totals
            t.fetches += 1
            t.bytes += max(0, bytes_read)
            t.errors += 0 if ok else 1
            t.rate_limited += 1 if rate_limited else 0
            t.fetch_ms_sum += fetch_ms

    def snapshot(self) -> tuple[Totals, float]:
        """Copy of the totals and the seconds elapsed since the Metrics was created."""
        with self._lock:
            totals = replace(self._totals)
        return totals, max(1e-6, self._clock() - self._started)


class StatsLogger(threading.Thread):
    """Calls log_fn with a one-line summary every interval_s seconds until stopped."""

    daemon = True

    def __init__(self, metrics: Metrics, interval_s: float, log_fn: Callable[[str], None]):
        super().__init__(name="stats-logger")
        self._metrics = metrics
        self._interval = max(0.5, interval_s)
        self._log = log_fn
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self._interval):
            totals, elapsed = self._metrics.snapshot()
            self._log(totals.summary(elapsed))

    def stop(self) -> None:
        self._stop_event.set()

import logging
import threading
from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics


logger = logging.getLogger(__name__)


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry | None = None) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry or CollectorRegistry()
        self._server_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.fetches_total = Counter(
            'scraper_fetches_total', 'Total number of HTTP fetch attempts', registry=self.registry
        )
        self.bytes_total = Counter('scraper_bytes_total', 'Total number of bytes downloaded', registry=self.registry)
        self.errors_total = Counter('scraper_errors_total', 'Total number of failed fetch attempts', registry=self.registry)
        self.rate_limited_total = Counter(
            'scraper_rate_limited_total', 'Total number of 429 responses', registry=self.registry
        )
        self.fetches_per_second = Gauge(
            'scraper_fetches_per_second', 'Current fetch rate in attempts per second', registry=self.registry
        )
        self.avg_fetch_duration_seconds = Gauge(
            'scraper_avg_fetch_duration_seconds', 'Average fetch duration in seconds', registry=self.registry
        )

        self._last_fetches = 0
        self._last_bytes = 0
        self._last_errors = 0
        self._last_rate_limited = 0

    def start(self) -> None:
        start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._server_thread = threading.Thread(
            target=self._update_metrics_loop,
            name="prometheus-updater",
            daemon=True
        )
        self._server_thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self.update()
            self._stop_event.wait(5.0)

    def update(self) -> None:
        totals, elapsed = self.metrics.snapshot()

        for counter, current, last in (
            (self.fetches_total, totals.fetches, self._last_fetches),
            (self.bytes_total, totals.bytes, self._last_bytes),
            (self.errors_total, totals.errors, self._last_errors),
            (self.rate_limited_total, totals.rate_limited, self._last_rate_limited),
        ):
            if current > last:
                counter.inc(current - last)

        self.fetches_per_second.set(totals.fetches / elapsed)
        if totals.fetches > 0:
            self.avg_fetch_duration_seconds.set(totals.avg_fetch_ms / 1000.0)

        self._last_fetches = totals.fetches
        self._last_bytes = totals.bytes
        self._last_errors = totals.errors
        self._last_rate_limited = totals.rate_limited

    def stop(self) -> None:
        self._stop_event.set()
        if self._server_thread:
            self._server_thread.join(timeout=2.0)

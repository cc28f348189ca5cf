from prometheus_client import CollectorRegistry

from scraperlib.metrics import Metrics, StatsLogger
from scraperlib.prometheus_exporter import PrometheusExporter


def test_metrics_records_fetches():
    m = Metrics()

    m.record_fetch(ok=True, bytes_read=1024, fetch_ms=50.0)
    totals, elapsed = m.snapshot()

    assert totals.fetches == 1
    assert totals.bytes == 1024
    assert totals.errors == 0
    assert totals.fetch_ms_sum == 50.0
    assert elapsed > 0

    m.record_fetch(ok=False, bytes_read=0, fetch_ms=100.0, rate_limited=True)
    totals, _ = m.snapshot()

    assert totals.fetches == 2
    assert totals.bytes == 1024
    assert totals.errors == 1
    assert totals.rate_limited == 1
    assert totals.fetch_ms_sum == 150.0


def test_stats_logger_logs_until_stopped():
    lines = []
    m = Metrics()
    m.record_fetch(ok=True, bytes_read=10, fetch_ms=5.0)
    logger = StatsLogger(m, 0.5, lines.append)
    logger.start()
    logger.join(timeout=0.8)
    logger.stop()
    logger.join(timeout=2)
    assert not logger.is_alive()
    assert lines and lines[0].startswith("Perf: fetches=1")


def test_prometheus_exporter_publishes_deltas():
    m = Metrics()
    registry = CollectorRegistry()
    exporter = PrometheusExporter(m, registry=registry)

    m.record_fetch(ok=True, bytes_read=100, fetch_ms=20.0)
    m.record_fetch(ok=False, bytes_read=0, fetch_ms=10.0, rate_limited=True)
    exporter.update()
    exporter.update()

    assert registry.get_sample_value("scraper_fetches_total") == 2
    assert registry.get_sample_value("scraper_bytes_total") == 100
    assert registry.get_sample_value("scraper_errors_total") == 1
    assert registry.get_sample_value("scraper_rate_limited_total") == 1
    assert registry.get_sample_value("scraper_avg_fetch_duration_seconds") == 0.015


def test_summary_uses_injected_clock():
    now = [100.0]
    m = Metrics(clock=lambda: now[0])
    m.record_fetch(ok=True, bytes_read=2 * 1024 * 1024, fetch_ms=30.0)
    m.record_fetch(ok=False, bytes_read=0, fetch_ms=10.0, rate_limited=True)
    now[0] = 104.0
    totals, elapsed = m.snapshot()
    assert elapsed == 4.0
    assert totals.avg_fetch_ms == 20.0
    assert totals.summary(elapsed) == (
        "Perf: fetches=2, errors=1, rate_limited=1, MB=2.00, avg_fetch_ms=20.0, fetches/sec=0.50"
    )


def test_snapshot_is_a_copy():
    m = Metrics()
    totals, _ = m.snapshot()
    m.record_fetch(ok=True, bytes_read=1, fetch_ms=1.0)
    assert totals.fetches == 0
    assert Metrics().snapshot()[0].avg_fetch_ms == 0.0

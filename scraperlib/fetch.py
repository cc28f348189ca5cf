import logging
import threading
import time
from typing import Optional

from .backoff import Backoff
from .errors import FetchError, HTTPStatusError, RetryExhaustedError, ScrapeCancelled
from .metrics import Metrics
from .types import HttpClientProtocol


RATE_LIMIT_STATUS = 429

logger = logging.getLogger(__name__)


class RetryingFetcher:
    """Fetches a page, retrying only while the server answers 429."""

    def __init__(
        self,
        http: HttpClientProtocol,
        max_retries: int,
        backoff: Backoff | None = None,
        metrics: Metrics | None = None,
    ):
        self.http = http
        self.max_retries = max(1, max_retries)
        self.backoff = backoff or Backoff()
        self.metrics = metrics

    def fetch(self, url: str, cancel: Optional[threading.Event] = None) -> str:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            if cancel is not None and cancel.is_set():
                raise ScrapeCancelled(f"cancelled before fetching {url}")

            t0 = time.perf_counter()
            result = self.http.fetch(url)
            dt_ms = (time.perf_counter() - t0) * 1000.0
            if self.metrics:
                self.metrics.record_fetch(
                    result.ok, result.size_bytes, dt_ms, rate_limited=result.status == RATE_LIMIT_STATUS
                )

            if result.ok:
                return result.text

            cause = result.error or HTTPStatusError(result.status)
            if result.status != RATE_LIMIT_STATUS:
                raise FetchError(f"failed to visit {url}: {cause}", url, result.status) from cause

            last_error = cause
            if attempt < self.max_retries - 1:
                delay = self.backoff.wait(attempt, cancel)
                logger.debug("Rate limited on %s (attempt %d/%d), waited %.2fs", url, attempt + 1, self.max_retries, delay)

        raise RetryExhaustedError(
            f"failed to scrape {url} after {self.max_retries} attempts: {last_error}",
            url,
            self.max_retries,
            RATE_LIMIT_STATUS,
        ) from last_error

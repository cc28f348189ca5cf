import logging
import threading
from typing import List, Optional

from .backoff import Backoff
from .config import PaginationConfig, ScraperOptions
from .fetch import RetryingFetcher
from .metrics import Metrics
from .net import HttpClient
from .pagination import Paginator
from .parsing import Extractor
from .stream import ResultStream
from .types import HttpClientProtocol


logger = logging.getLogger(__name__)


class Scraper:
    def __init__(
        self,
        options: ScraperOptions | None = None,
        http_client: HttpClientProtocol | None = None,
        backoff: Backoff | None = None,
    ):
        self.options = options or ScraperOptions()
        self.http = http_client or HttpClient(
            self.options.user_agent,
            self.options.request_timeout,
            allowed_domains=self.options.allowed_domains,
            max_depth=self.options.max_depth,
            max_connections=self.options.max_connections,
        )
        self.metrics = Metrics()
        self.fetcher = RetryingFetcher(self.http, self.options.max_retries, backoff, self.metrics)
        self.paginator = Paginator(self.fetcher, self.options)

    @classmethod
    def default(cls) -> "Scraper":
        return cls(ScraperOptions())

    def scrape_html(self, url: str, cancel: Optional[threading.Event] = None) -> str:
        """Fetch the full HTML of url, retrying on 429 with exponential backoff."""
        return self.fetcher.fetch(url, cancel=cancel)

    def scrape_outer_html(self, url: str, selector: str, cancel: Optional[threading.Event] = None) -> List[str]:
        html = self.scrape_html(url, cancel=cancel)
        return Extractor.outer_html(html, selector)

    def scrape_paginated(
        self,
        url: str,
        selector: str,
        config: PaginationConfig,
        cancel: Optional[threading.Event] = None,
    ) -> ResultStream:
        """Stream the outer HTML of every element matching selector across pages.

        Returns immediately; pages are fetched on a background thread and
        each match (or page-level error) arrives as one Result. An invalid
        config raises PaginationConfigError here, before anything is fetched;
        no stream is created for it, so there is nothing to drain or close.
        Drain the returned stream, or cancel it, to release the producer.
        """
        config.validate()
        stream = ResultStream(cancel)
        logger.info(
            "Starting %s pagination of %s",
            "counted" if config.counted else "sequential",
            url,
        )
        producer = threading.Thread(
            target=self.paginator.run,
            args=(url, selector, config, stream),
            name="paginator",
            daemon=True,
        )
        producer.start()
        return stream

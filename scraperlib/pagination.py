import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from .config import PaginationConfig, ScraperOptions
from .errors import ExtractionError, PageError, ScrapeCancelled, ScraperError
from .fetch import RetryingFetcher
from .parsing import Extractor, UrlTools
from .stream import ResultStream
from .types import Result


logger = logging.getLogger(__name__)


class Paginator:
    """Drives a paginated scrape and feeds every match into a ResultStream.

    Sequential mode follows the next-page link until a page has none.
    Counted mode reads the page count from page 1, then fetches the other
    pages on a bounded thread pool. Either way the stream is closed once,
    after every page has been handled.
    """

    def __init__(self, fetcher: RetryingFetcher, options: ScraperOptions):
        self.fetcher = fetcher
        self.options = options

    def run(self, url: str, selector: str, config: PaginationConfig, stream: ResultStream) -> None:
        try:
            if config.counted:
                self._run_counted(url, selector, config, stream)
            else:
                self._run_sequential(url, selector, config, stream)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Pagination of %s stopped unexpectedly", url)
            stream.send(Result(error=exc, url=url))
        finally:
            stream.close()

    def _run_sequential(self, url: str, selector: str, config: PaginationConfig, stream: ResultStream) -> None:
        current = url
        visited = {UrlTools.resolve(url, "")}
        pages = 0
        while True:
            html = self._push_page(current, selector, stream)
            if html is None:
                return
            pages += 1
            if not config.next_page_selector or stream.cancelled:
                break
            try:
                link = Extractor.link(html, config.next_page_selector)
            except ExtractionError as exc:
                logger.warning("Cannot evaluate next page selector on %s: %s", current, exc)
                break
            next_url = UrlTools.normalize_link(current, link)
            if next_url is None or next_url in visited:
                logger.debug("Next page link %r on %s leads nowhere new", link, current)
                break
            visited.add(next_url)
            current = next_url
            logger.debug("Following next page %s", current)
        logger.debug("Sequential pagination of %s done after %d pages", url, pages)

    def _run_counted(self, url: str, selector: str, config: PaginationConfig, stream: ResultStream) -> None:
        html = self._push_page(url, selector, stream)
        if html is None:
            return
        try:
            last_page = Extractor.int_value(html, config.last_page_selector)
        except ExtractionError as exc:
            logger.debug("No page count on %s: %s", url, exc)
            return
        if last_page < 2 or stream.cancelled:
            return

        workers = min(self.options.page_workers, last_page - 1)
        logger.debug("Fetching pages 2..%d of %s with %d workers", last_page, url, workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="page") as executor:
            futures = {}
            for page in range(2, last_page + 1):
                page_url = config.page_url(url, page)
                futures[executor.submit(self._push_page, page_url, selector, stream)] = page_url
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None:
                    stream.send(Result(error=exc, url=futures[future]))

    def _push_page(self, url: str, selector: str, stream: ResultStream) -> Optional[str]:
        """Fetch one page and send its matches; returns the page HTML, or None if the page failed."""
        if stream.cancelled:
            return None
        try:
            html = self.fetcher.fetch(url, cancel=stream.cancel_event)
        except ScrapeCancelled:
            return None
        except ScraperError as exc:
            stream.send(_page_error(f"failed to scrape page {url}: {exc}", url, exc))
            return None

        try:
            fragments = Extractor.outer_html(html, selector)
        except ExtractionError as exc:
            stream.send(_page_error(f"failed to extract elements from page {url}: {exc}", url, exc))
            return None

        if not stream.send_all(Result(data=fragment, url=url) for fragment in fragments):
            return None
        return html


def _page_error(message: str, url: str, cause: Exception) -> Result:
    error = PageError(message, url)
    error.__cause__ = cause
    return Result(error=error, url=url)

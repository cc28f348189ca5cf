from urllib.parse import urlparse

import urllib3
from urllib3 import exceptions as urllib3_exc
from urllib3.util.retry import Retry

from .errors import DomainNotAllowedError, HTTPStatusError, TransportError
from .parsing import UrlTools
from .types import FetchResult


class HttpClient:
    """urllib3-backed page fetcher.

    Only connection failures are retried here. Status codes, 429 included,
    are reported back untouched so RetryingFetcher can decide what to do.
    """

    def __init__(
        self,
        user_agent: str,
        request_timeout: float,
        allowed_domains=(),
        max_depth: int = 0,
        max_connections: int = 16,
    ):
        self.user_agent = user_agent
        self.allowed_domains = [d.lower().lstrip(".") for d in allowed_domains]
        self.max_depth = max_depth
        self.timeout = urllib3.Timeout(connect=5.0, read=request_timeout)
        self.http = urllib3.PoolManager(
            num_pools=8,
            maxsize=max_connections,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,*/*;q=0.8",
                "Accept-Encoding": "gzip, deflate",
            },
            retries=Retry(
                connect=2,
                read=0,
                status=0,
                redirect=10,
                backoff_factor=0.3,
                respect_retry_after_header=False,
                raise_on_status=False,
            ),
        )

    def fetch(self, url: str, depth: int = 1) -> FetchResult:
        if not UrlTools.is_allowed_domain(url, self.allowed_domains):
            host = urlparse(url).hostname or url
            return _failed(DomainNotAllowedError(f"domain {host} is not allowed"))
        if self.max_depth > 0 and depth > self.max_depth:
            return _failed(TransportError(f"max depth {self.max_depth} reached"))
        try:
            response = self.http.request(
                "GET",
                url,
                timeout=self.timeout,
                preload_content=True,
            )
        except urllib3_exc.HTTPError as exc:
            return _failed(TransportError(str(exc)))

        body = response.data or b""
        error = None
        if response.status >= 400:
            error = HTTPStatusError(response.status, response.reason or "")
        return FetchResult(
            status=response.status,
            content_type=response.headers.get("Content-Type", ""),
            text=body.decode("utf-8", errors="ignore"),
            size_bytes=len(body),
            error=error,
        )

    def close(self) -> None:
        self.http.clear()


def _failed(error: Exception) -> FetchResult:
    return FetchResult(status=0, content_type="", text="", size_bytes=0, error=error)

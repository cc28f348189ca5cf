"""Exceptions raised by scraperlib.

Everything derives from ``ScraperError`` so callers can catch the whole
family. Page-level failures during pagination are not raised at all: they
travel through the result stream as ``Result(error=...)`` items.
"""

from typing import Optional


class ScraperError(Exception):
    pass


class PaginationConfigError(ScraperError):
    """Invalid PaginationConfig, detected before any request is made."""


class StreamClosedError(ScraperError):
    pass


class ScrapeCancelled(ScraperError):
    pass


# Transport level: produced by the HTTP client, carried on FetchResult.error

class TransportError(ScraperError):
    pass


class DomainNotAllowedError(TransportError):
    pass


class HTTPStatusError(TransportError):
    def __init__(self, status: int, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"{status} {reason}".strip())


# Fetch level: raised by RetryingFetcher

class FetchError(ScraperError):
    def __init__(self, message: str, url: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class RetryExhaustedError(FetchError):
    def __init__(self, message: str, url: str, attempts: int, status: Optional[int] = None) -> None:
        super().__init__(message, url, status)
        self.attempts = attempts


class ExtractionError(ScraperError):
    def __init__(self, message: str, text: str = "", target: str = "") -> None:
        super().__init__(message)
        self.text = text
        self.target = target


class PageError(ScraperError):
    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url

from dataclasses import dataclass
from typing import Iterable, Tuple

from .errors import PaginationConfigError
from .parsing import UrlTools


DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_MAX_RETRIES = 5
DEFAULT_MAX_WORKERS = 8
PAGE_PLACEHOLDER = "::page::"


@dataclass(frozen=True)
class ScraperOptions:
    user_agent: str = DEFAULT_USER_AGENT
    allowed_domains: Tuple[str, ...] = ()
    max_depth: int = 0
    concurrent: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    max_workers: int = DEFAULT_MAX_WORKERS
    request_timeout: float = 15.0
    max_connections: int = 16

    def __post_init__(self) -> None:
        if not self.user_agent:
            object.__setattr__(self, "user_agent", DEFAULT_USER_AGENT)
        if self.max_retries <= 0:
            object.__setattr__(self, "max_retries", DEFAULT_MAX_RETRIES)
        if self.max_workers <= 0:
            object.__setattr__(self, "max_workers", 1)
        object.__setattr__(self, "allowed_domains", _normalize_domains(self.allowed_domains))

    @property
    def page_workers(self) -> int:
        return self.max_workers if self.concurrent else 1


@dataclass(frozen=True)
class PaginationConfig:
    """Selects how ``Scraper.scrape_paginated`` walks from page to page.

    next_page_selector: selector of the "next page" link; the crawl stops on
        the first page where it matches nothing.
    last_page_selector: selector whose text is the total number of pages.
        Pages 2..N are then built from next_page_url_pattern, which is
        mandatory in this mode.
    next_page_url_pattern: URL (absolute or relative) in which ``::page::``
        is replaced by the page number.
    """

    next_page_selector: str = ""
    last_page_selector: str = ""
    next_page_url_pattern: str = ""

    @property
    def counted(self) -> bool:
        return bool(self.last_page_selector)

    def validate(self) -> None:
        if not self.counted:
            return
        if not self.next_page_url_pattern:
            raise PaginationConfigError(
                "next_page_url_pattern must be provided when using last_page_selector"
            )
        if self.next_page_selector:
            raise PaginationConfigError(
                "next_page_selector and last_page_selector are mutually exclusive"
            )

    def page_url(self, base_url: str, page: int) -> str:
        link = self.next_page_url_pattern.replace(PAGE_PLACEHOLDER, str(page))
        return UrlTools.resolve(base_url, link)


def _normalize_domains(domains: Iterable[str]) -> Tuple[str, ...]:
    if isinstance(domains, str):
        domains = [domains]
    return tuple(d.lower().lstrip(".") for d in domains if d)

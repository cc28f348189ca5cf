import re
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from .errors import ExtractionError


SELECTOR_SEPARATOR = "||"

_ATTR_SELECTOR = re.compile(r"\[([a-zA-Z0-9\-_]+)(?:[~|^$*]?=.*?)?\]$")
_BASE_URL = re.compile(r"^(https?://[^/]+)")
_NUMBER_NOISE = re.compile(r"[^0-9\-.]+")
_RELATIVE_TIME = re.compile(r"(\d+)\s+(second|minute|hour|day|week|month|year)s?\s+ago", re.IGNORECASE)
_TIME_UNITS = {
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


class UrlTools:
    @staticmethod
    def base_url(url: str) -> str:
        match = _BASE_URL.match(url)
        return match.group(1) if match else url

    @staticmethod
    def resolve(base_url: str, link: str) -> str:
        absolute = urljoin(base_url, link.strip())
        absolute, _ = urldefrag(absolute)
        return absolute

    @staticmethod
    def normalize_link(base_url: str, href: str) -> Optional[str]:
        """Absolute http(s) URL for href, or None for empty, fragment-only and non-web links."""
        if not href:
            return None
        href = href.strip()
        if not href or href.startswith(("mailto:", "javascript:", "tel:", "#")):
            return None
        absolute = UrlTools.resolve(base_url, href)
        if urlparse(absolute).scheme not in ("http", "https"):
            return None
        return absolute

    @staticmethod
    def is_allowed_domain(url: str, allowed_domains: Iterable[str]) -> bool:
        allowed_domains = list(allowed_domains)
        if not allowed_domains:
            return True
        host = (urlparse(url).hostname or "").lower()
        return any(host == d or host.endswith("." + d) for d in allowed_domains)


class Extractor:
    """CSS-selector extraction over raw HTML.

    A selector may hold several alternatives joined by ``||``; they are
    evaluated in order. A trailing attribute clause (``a[href]``) makes the
    text helpers return that attribute instead of the element text.
    """

    @staticmethod
    def split_selectors(selector: str) -> List[str]:
        return selector.split(SELECTOR_SEPARATOR)

    @staticmethod
    def attr_name(selector: str) -> str:
        match = _ATTR_SELECTOR.search(selector.strip())
        return match.group(1) if match else ""

    @staticmethod
    def outer_html(html: str, selector: str) -> List[str]:
        soup = _soup(html)
        results: List[str] = []
        for sel in Extractor.split_selectors(selector):
            results.extend(str(tag) for tag in _select(soup, sel))
        return results

    @staticmethod
    def text(html: str, selector: str) -> List[str]:
        soup = _soup(html)
        results: List[str] = []
        for sel in Extractor.split_selectors(selector):
            attr = Extractor.attr_name(sel)
            for tag in _select(soup, sel):
                value = _attr_value(tag, attr) if attr else tag.get_text().strip()
                if value:
                    results.append(value)
        return results

    @staticmethod
    def text_single(html: str, selector: str) -> str:
        return _first_value(html, selector, default_attr="")

    @staticmethod
    def link(html: str, selector: str) -> str:
        """First link found by selector, reading ``href`` unless the selector names an attribute."""
        return _first_value(html, selector, default_attr="href")

    @staticmethod
    def float_value(html: str, selector: str) -> float:
        text = Extractor.text_single(html, selector)
        if not text:
            return 0.0
        cleaned = _NUMBER_NOISE.sub("", text)
        try:
            return float(cleaned)
        except ValueError as exc:
            raise ExtractionError(f"failed to convert '{text}' to float", text=text, target="float") from exc

    @staticmethod
    def int_value(html: str, selector: str) -> int:
        value = Extractor.float_value(html, selector)
        try:
            return int(value)
        except OverflowError as exc:
            text = Extractor.text_single(html, selector)
            raise ExtractionError(f"failed to convert '{text}' to int", text=text, target="int") from exc

    @staticmethod
    def time_value(html: str, selector: str, fmt: str, now: Optional[datetime] = None) -> datetime:
        text = Extractor.text_single(html, selector)
        if not text:
            raise ExtractionError("failed to get date text", target="datetime")
        if not fmt:
            raise ExtractionError("date format is required", text=text, target="datetime")
        if fmt == "ago":
            match = _RELATIVE_TIME.search(text)
            if not match:
                raise ExtractionError(f"failed to parse relative date '{text}'", text=text, target="datetime")
            amount = int(match.group(1))
            unit = _TIME_UNITS[match.group(2).lower()]
            return (now or datetime.now()) - amount * unit
        try:
            return datetime.strptime(text, fmt)
        except ValueError as exc:
            raise ExtractionError(
                f"failed to parse date '{text}' with format '{fmt}'", text=text, target="datetime"
            ) from exc


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _select(soup: BeautifulSoup, selector: str) -> List[Tag]:
    selector = selector.strip()
    if not selector:
        return []
    try:
        return soup.select(selector)
    except SelectorSyntaxError as exc:
        raise ExtractionError(f"invalid selector '{selector}': {exc}", text=selector, target="selector") from exc


def _attr_value(tag: Tag, attr: str) -> str:
    value = tag.get(attr)
    if value is None:
        return ""
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip()


def _first_value(html: str, selector: str, default_attr: str) -> str:
    soup = _soup(html)
    for sel in Extractor.split_selectors(selector):
        matches = _select(soup, sel)
        if not matches:
            continue
        attr = Extractor.attr_name(sel) or default_attr
        if attr:
            return _attr_value(matches[0], attr)
        return matches[0].get_text().strip()
    return ""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class FetchResult:
    status: int
    content_type: str
    text: str
    size_bytes: int
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300


class HttpClientProtocol(Protocol):
    def fetch(self, url: str) -> FetchResult: ...


@dataclass(frozen=True)
class Result:
    """One item of a ResultStream: an extracted fragment or a page error."""

    data: str = ""
    error: Optional[Exception] = None
    url: str = ""

    def __post_init__(self) -> None:
        if self.error is not None and self.data:
            raise ValueError("a Result carries either data or an error, not both")

    @property
    def ok(self) -> bool:
        return self.error is None

"""Hand-off channel between the pagination producer and its consumer.

The stream holds at most one pending item, so producers block on ``send``
until the consumer catches up. Consumers must either drain the stream or
cancel it; a producer blocked on an abandoned stream only gives up once the
stream is cancelled.
"""

import queue
import threading
from typing import Iterable, Iterator, Optional

from .errors import StreamClosedError
from .types import Result


_POLL_INTERVAL = 0.1
_CLOSED = object()


class ResultStream:
    def __init__(self, cancel: Optional[threading.Event] = None):
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=1)
        self._cancel = cancel or threading.Event()
        self._lock = threading.Lock()
        self._send_lock = threading.RLock()
        self._closed = False
        self._exhausted = False

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> None:
        self._cancel.set()

    # producer side

    def send(self, item: Result) -> bool:
        """Block until the item is handed over; False if the stream was cancelled first."""
        return self.send_all([item])

    def send_all(self, items: Iterable[Result]) -> bool:
        """Send items back to back; no other producer's item lands in between."""
        with self._send_lock:
            for item in items:
                if self._closed:
                    raise StreamClosedError("send on closed result stream")
                if not self._put(item):
                    return False
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise StreamClosedError("result stream already closed")
            self._closed = True
        self._put(_CLOSED)

    def _put(self, item: object) -> bool:
        while not self._cancel.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    # consumer side

    def __iter__(self) -> Iterator[Result]:
        return self

    def __next__(self) -> Result:
        while not self._exhausted:
            if self._cancel.is_set():
                self._exhausted = True
                break
            try:
                item = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _CLOSED:
                self._exhausted = True
                # leave the marker for any other consumer of this stream
                self._queue.put_nowait(_CLOSED)
                break
            return item
        raise StopIteration

    def __enter__(self) -> "ResultStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

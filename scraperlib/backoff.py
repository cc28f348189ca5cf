import random
import threading
import time
from typing import Callable, Optional

from .errors import ScrapeCancelled


class Backoff:
    """Exponential backoff with uniform jitter: initial * 2**attempt + U(0, jitter)."""

    def __init__(
        self,
        initial: float = 1.0,
        jitter: float = 1.0,
        rand: random.Random | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.initial = initial
        self.jitter = jitter
        self._rand = rand or random.Random()
        self._sleep = sleep

    def delay(self, attempt: int) -> float:
        return self.initial * (2 ** attempt) + self._rand.uniform(0, self.jitter)

    def wait(self, attempt: int, cancel: Optional[threading.Event] = None) -> float:
        delay = self.delay(attempt)
        if cancel is not None and cancel.is_set():
            raise ScrapeCancelled("cancelled before backoff")
        if self._sleep is not None:
            self._sleep(delay)
        elif cancel is not None:
            if cancel.wait(delay):
                raise ScrapeCancelled("cancelled during backoff")
        else:
            time.sleep(delay)
        return delay

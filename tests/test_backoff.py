import random
import threading

import pytest

from scraperlib.backoff import Backoff
from scraperlib.errors import ScrapeCancelled


class FixedRand:
    def __init__(self, value):
        self.value = value

    def uniform(self, a, b):
        return a + (b - a) * self.value


def test_delay_doubles_per_attempt():
    backoff = Backoff(initial=1.0, rand=FixedRand(0.0))
    assert [backoff.delay(a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]


def test_jitter_stays_within_one_second():
    backoff = Backoff(initial=1.0, rand=random.Random(42))
    for attempt in range(5):
        base = 2 ** attempt
        for _ in range(20):
            d = backoff.delay(attempt)
            assert base <= d <= base + 1.0


def test_wait_uses_injected_sleep():
    sleeps = []
    backoff = Backoff(initial=0.5, rand=FixedRand(0.5), sleep=sleeps.append)
    assert backoff.wait(1) == 1.5
    assert sleeps == [1.5]


def test_wait_raises_when_already_cancelled():
    sleeps = []
    cancel = threading.Event()
    cancel.set()
    backoff = Backoff(sleep=sleeps.append)
    with pytest.raises(ScrapeCancelled):
        backoff.wait(0, cancel)
    assert sleeps == []


def test_wait_on_cancel_event_times_out_normally():
    backoff = Backoff(initial=0.01, jitter=0.0)
    assert backoff.wait(0, threading.Event()) == pytest.approx(0.01)


def test_cancel_interrupts_wait():
    cancel = threading.Event()
    backoff = Backoff(initial=30.0, jitter=0.0)
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    try:
        with pytest.raises(ScrapeCancelled):
            backoff.wait(0, cancel)
    finally:
        timer.cancel()

"""
Clock sources returning epoch milliseconds.
"""
import threading
import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Current UTC time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class FixedClock:
    """
    Manually driven clock for deterministic tests and replays.

    Calling the instance returns the current reading; ``advance`` and
    ``set`` move it.
    """

    def __init__(self, millis: int = 0):
        self._millis = millis
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._millis

    def advance(self, millis: int) -> int:
        """Move the clock forward (or back, if negative) and return the new reading."""
        with self._lock:
            self._millis += millis
            return self._millis

    def set(self, millis: int) -> None:
        with self._lock:
            self._millis = millis

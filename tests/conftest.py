"""
Shared fixtures for csrfguard tests
"""

import pytest

from csrfguard.clock import FixedClock
from csrfguard.crypto import CSRFTokenManager

SESSION_ID = "abcdefghijklmnopqrstuvwxyz"
ISSUED_AT = 1_000_000


class RecordingSink:
    """Diagnostics sink that keeps every notice for assertions"""

    def __init__(self):
        self.misuse = []
        self.validation = []
        self.internal = []

    def notify_misuse(self, message):
        self.misuse.append(message)

    def notify_validation_failure(self, message):
        self.validation.append(message)

    def notify_internal_failure(self, message, cause):
        self.internal.append((message, cause))

    @property
    def total(self):
        return len(self.misuse) + len(self.validation) + len(self.internal)


def counting_random(n):
    """Deterministic stand-in for a secure random source"""
    return bytes(range(n))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return FixedClock(ISSUED_AT)


@pytest.fixture
def manager(sink, clock):
    return CSRFTokenManager(clock=clock, diagnostics=sink)

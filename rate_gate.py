"""
Fixed inter-request delay for serial call sequences (pagination loops, batch loops)
"""
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateGate:
    """
    Inserts a fixed delay before every call after the first one of a sequence.

    Call sequences are strictly serial, so a fixed delay keeps the aggregate
    call rate under the API ceiling without a token bucket.
    """

    def __init__(self, delay: float, sleep: Callable[[float], None] = time.sleep):
        self.delay = max(0.0, delay)
        self._sleep = sleep
        self._calls = 0

    def reset(self):
        """Start a new sequence - next wait() returns immediately"""
        self._calls = 0

    def wait(self):
        """Call before each request of the sequence"""
        if self._calls and self.delay:
            logger.debug(f"Rate gate: sleeping {self.delay:.2f}s before call #{self._calls + 1}")
            self._sleep(self.delay)
        self._calls += 1

    @property
    def calls(self) -> int:
        return self._calls

"""JIRA API Rate Limiting Utilities

Token bucket limiter that spaces out REST calls so a long download/upload
session does not trip JIRA's per-user throttling.
"""

import time
import threading


class RateLimiter:
    """Token bucket rate limiter.

    A rate of 0 (or less) disables limiting entirely.
    """

    def __init__(self, requests_per_second: float = 10.0):
        self.rate = requests_per_second
        self.capacity = max(requests_per_second, 1.0)
        self.tokens = self.capacity
        self.last_update = time.monotonic()
        self.lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.last_update) * self.rate)
        self.last_update = now

    def acquire(self) -> float:
        """Take one token, sleeping until one is available.

        Returns:
            Seconds spent waiting (0.0 when a token was free)
        """
        if not self.enabled:
            return 0.0

        waited = 0.0
        with self.lock:
            while True:
                self._refill()

                if self.tokens >= 1:
                    self.tokens -= 1
                    return waited

                wait_time = (1 - self.tokens) / self.rate

                # Release lock while waiting so other callers can refill/check
                self.lock.release()
                try:
                    time.sleep(wait_time)
                finally:
                    self.lock.acquire()
                waited += wait_time

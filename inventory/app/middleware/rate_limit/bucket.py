"""Token bucket and the process-wide admission gate.

The bucket refills lazily: no background timer runs, tokens are added on
the next ``allow()`` call according to the time elapsed since the last
refill. When at least one whole interval has passed, ``last_refill`` jumps
to *now*, so the fraction of an interval left over is discarded. Over many
refills this under-counts slightly relative to the nominal rate; that is the
intended behaviour.
"""

import threading
import time
from typing import Callable

from inventory.app.middleware.rate_limit.models import AdmissionDecision


class TokenBucket:
    """Thread-safe token bucket.

    Args:
        capacity: Maximum number of tokens, also the initial token count
        refill_interval: Seconds needed to earn one token
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        capacity: int,
        refill_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_interval <= 0:
            raise ValueError("refill_interval must be positive")

        self._capacity = capacity
        self._refill_interval = refill_interval
        self._clock = clock
        self._tokens = capacity
        self._last_refill = clock()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def refill_interval(self) -> float:
        return self._refill_interval

    def allow(self) -> bool:
        """Take one token if available."""
        return self.try_acquire()[0]

    def try_acquire(self) -> tuple[bool, int]:
        """Refill, then take one token if available.

        Returns:
            (allowed, tokens left after this call)
        """
        with self._lock:
            now = self._clock()
            tokens_to_add = int((now - self._last_refill) // self._refill_interval)
            if tokens_to_add > 0:
                self._tokens = min(self._capacity, self._tokens + tokens_to_add)
                self._last_refill = now

            if self._tokens > 0:
                self._tokens -= 1
                return True, self._tokens
            return False, 0


class AdmissionGate:
    """Single global quota shared by every request the process serves.

    The gate does not look at client identity, route or method. It is
    created once by the application factory and handed to the middleware.
    """

    def __init__(self, bucket: TokenBucket):
        self._bucket = bucket

    @classmethod
    def from_settings(cls, capacity: int, refill_seconds: float) -> "AdmissionGate":
        return cls(TokenBucket(capacity, refill_seconds))

    @property
    def bucket(self) -> TokenBucket:
        return self._bucket

    def admit(self) -> AdmissionDecision:
        """Decide whether the current request may proceed."""
        allowed, remaining = self._bucket.try_acquire()
        return AdmissionDecision(
            allowed=allowed,
            limit=self._bucket.capacity,
            remaining=remaining,
            retry_after=self._bucket.refill_interval,
        )

"""Token bucket rate limiter for inbound game commands."""

import time


class TokenBucket:
    """Per-connection command throttle.

    Tokens refill continuously at ``rate`` per second up to ``burst``. Each
    command costs one token; when none is left the command is dropped and
    counted in ``dropped``.
    """

    def __init__(self, rate: float, burst: int) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()
        self.dropped = 0

    def consume(self) -> bool:
        """Take one token. Returns False (and counts a drop) when throttled."""
        now = time.monotonic()
        self._tokens = min(self._burst, self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now

        if self._tokens < 1.0:
            self.dropped += 1
            return False
        self._tokens -= 1.0
        return True

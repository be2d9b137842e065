# tiktok_analytics/infrastructure/clients/rate_limiter.py
"""
Rate Limiting for the TikTok Open API client
Token bucket shared by all requests of one client instance.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


# ============================================================================
# Token Bucket Algorithm Implementation
# ============================================================================


@dataclass
class TokenBucket:
    """
    Token bucket for rate limiting

    Attributes:
        capacity: Maximum tokens (burst capacity)
        refill_rate: Tokens added per second
        tokens: Current available tokens
        last_refill: Last refill timestamp
    """

    capacity: float
    refill_rate: float
    tokens: float
    last_refill: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _refill(self) -> None:
        """Refill tokens based on elapsed time"""
        now = time.monotonic()
        elapsed = now - self.last_refill

        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def consume(self, tokens: float = 1.0) -> bool:
        """
        Try to consume tokens

        Returns:
            True if tokens consumed, False if insufficient
        """
        with self.lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False

    def wait_for_tokens(
        self, tokens: float = 1.0, timeout: Optional[float] = None
    ) -> bool:
        """
        Wait until tokens become available

        Args:
            tokens: Number of tokens needed
            timeout: Maximum wait time in seconds (None = infinite)

        Returns:
            True if tokens obtained, False if timeout
        """
        start_time = time.monotonic()

        while True:
            if self.consume(tokens):
                return True

            if timeout is not None and (time.monotonic() - start_time) >= timeout:
                return False

            with self.lock:
                self._refill()
                deficit = tokens - self.tokens
            sleep_time = min(deficit / self.refill_rate, 1.0) if deficit > 0 else 0.01
            time.sleep(sleep_time)


# ============================================================================
# Rate Limiter Class
# ============================================================================


class RateLimiter:
    """Blocking rate limiter around a local token bucket"""

    def __init__(self, calls_per_second: float, burst_capacity: Optional[int] = None):
        """
        Initialize rate limiter

        Args:
            calls_per_second: Maximum calls per second
            burst_capacity: Burst capacity (defaults to calls_per_second * 2)
        """
        if calls_per_second <= 0:
            raise ValueError("calls_per_second must be positive")

        self.calls_per_second = calls_per_second
        self.burst_capacity = burst_capacity or max(1, int(calls_per_second * 2))

        self.bucket = TokenBucket(
            capacity=float(self.burst_capacity),
            refill_rate=calls_per_second,
            tokens=float(self.burst_capacity),
            last_refill=time.monotonic(),
        )

        logger.debug(
            f"🕐 Rate limiter initialized: {calls_per_second} calls/sec, "
            f"burst={self.burst_capacity}"
        )

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """
        Acquire permission to make a call

        Args:
            timeout: Maximum wait time (None = block indefinitely)

        Returns:
            True if permission acquired, False if timeout
        """
        return self.bucket.wait_for_tokens(1.0, timeout)

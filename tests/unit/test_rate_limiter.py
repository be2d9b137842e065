# tests/unit/test_rate_limiter.py
"""
Unit Tests for the token bucket rate limiter
"""

import time

import pytest

from tiktok_analytics.infrastructure.clients.rate_limiter import RateLimiter, TokenBucket


class TestTokenBucket:
    """Test token bucket algorithm"""

    def test_token_bucket_initialization(self):
        """Test token bucket initializes with full capacity"""
        bucket = TokenBucket(
            capacity=10.0, refill_rate=5.0, tokens=10.0, last_refill=time.monotonic()
        )

        assert bucket.capacity == 10.0
        assert bucket.tokens == 10.0

    def test_token_consumption(self):
        """Test consuming tokens until the bucket is empty"""
        bucket = TokenBucket(
            capacity=3.0, refill_rate=0.001, tokens=3.0, last_refill=time.monotonic()
        )

        assert bucket.consume() is True
        assert bucket.consume() is True
        assert bucket.consume() is True
        assert bucket.consume() is False

    def test_token_refill(self):
        """Test tokens refill with elapsed time, capped at capacity"""
        bucket = TokenBucket(
            capacity=5.0,
            refill_rate=10.0,
            tokens=0.0,
            last_refill=time.monotonic() - 10,
        )

        assert bucket.consume(5.0) is True
        assert bucket.tokens < 1.0

    def test_wait_for_tokens_timeout(self):
        bucket = TokenBucket(
            capacity=1.0, refill_rate=0.01, tokens=0.0, last_refill=time.monotonic()
        )

        assert bucket.wait_for_tokens(1.0, timeout=0.05) is False


class TestRateLimiter:
    """Test the blocking limiter"""

    def test_burst_capacity_defaults_to_double_rate(self):
        limiter = RateLimiter(calls_per_second=5)

        assert limiter.burst_capacity == 10

    def test_acquire_within_burst_is_immediate(self):
        limiter = RateLimiter(calls_per_second=100, burst_capacity=5)

        start = time.monotonic()
        for _ in range(5):
            assert limiter.acquire(timeout=1) is True

        assert time.monotonic() - start < 0.5

    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            RateLimiter(calls_per_second=0)

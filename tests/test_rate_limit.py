"""
LegalTendr Backend — Rate Limiter Tests
=========================================

What:  SlidingWindowCounter behavior with explicit timestamps.
"""

from legaltendr.middleware.rate_limit import RateLimitMiddleware, SlidingWindowCounter


class TestSlidingWindowCounter:

    def setup_method(self):
        self.counter = SlidingWindowCounter(limit=3, window=60)

    def test_allows_up_to_limit(self):
        assert [self.counter.hit("1.2.3.4", now=100 + i) for i in range(3)] == [None, None, None]

    def test_rejects_over_limit_with_retry_after(self):
        for i in range(3):
            self.counter.hit("1.2.3.4", now=100 + i)

        # Oldest hit (t=100) leaves the window at t=160
        assert self.counter.hit("1.2.3.4", now=110) == 51

    def test_rejected_requests_are_not_counted(self):
        for i in range(3):
            self.counter.hit("1.2.3.4", now=100 + i)
        for _ in range(5):
            self.counter.hit("1.2.3.4", now=120)

        assert self.counter.hit("1.2.3.4", now=160.5) is None

    def test_window_slides(self):
        for i in range(3):
            self.counter.hit("1.2.3.4", now=100 + i)

        # t=100 has left the window, t=101 has not
        assert self.counter.hit("1.2.3.4", now=160.5) is None
        assert self.counter.hit("1.2.3.4", now=160.6) == 1

    def test_keys_are_independent(self):
        for i in range(3):
            self.counter.hit("1.2.3.4", now=100 + i)
        assert self.counter.hit("5.6.7.8", now=103) is None

    def test_prune_forgets_idle_keys(self):
        self.counter.hit("old", now=10)
        self.counter.hit("recent", now=100)

        assert self.counter.prune(window_start=50) == 1
        assert self.counter.hit("old", now=101) is None
        assert "recent" in self.counter._hits


def test_health_and_docs_are_not_limited():
    assert "/health" in RateLimitMiddleware.EXCLUDED_PATHS
    assert "/docs" in RateLimitMiddleware.EXCLUDED_PATHS

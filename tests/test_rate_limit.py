"""Tests for the token bucket, admission gate and rate limit middleware."""

import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from inventory.app.middleware.rate_limit import (
    AdmissionDecision,
    AdmissionGate,
    RateLimitMiddleware,
    TokenBucket,
)


class TestTokenBucket:
    """Tests for the lazy-refill token bucket."""

    def test_fresh_bucket_allows_capacity_then_denies(self, clock):
        """A new bucket of capacity C allows exactly C calls without elapsed time."""
        bucket = TokenBucket(capacity=5, refill_interval=1.0, clock=clock)
        results = [bucket.allow() for _ in range(5)]
        assert results == [True, True, True, True, True]
        assert bucket.allow() is False

    def test_refill_after_one_interval(self, clock):
        """Capacity 5 / 1s: drained, then one more call after sleeping 1s."""
        bucket = TokenBucket(capacity=5, refill_interval=1.0, clock=clock)
        for _ in range(5):
            assert bucket.allow() is True
        assert bucket.allow() is False

        clock.advance(1.0)
        assert bucket.allow() is True
        assert bucket.allow() is False

    def test_no_refill_before_full_interval(self, clock):
        bucket = TokenBucket(capacity=1, refill_interval=1.0, clock=clock)
        assert bucket.allow() is True
        clock.advance(0.999)
        assert bucket.allow() is False

    def test_refill_never_exceeds_capacity(self, clock):
        bucket = TokenBucket(capacity=3, refill_interval=1.0, clock=clock)
        assert bucket.allow() is True
        clock.advance(100.0)
        results = [bucket.allow() for _ in range(5)]
        assert results == [True, True, True, False, False]

    def test_refill_adds_whole_intervals(self, clock):
        bucket = TokenBucket(capacity=10, refill_interval=1.0, clock=clock)
        for _ in range(10):
            bucket.allow()
        clock.advance(3.5)
        results = [bucket.allow() for _ in range(4)]
        assert results == [True, True, True, False]

    def test_residual_time_is_dropped_on_refill(self, clock):
        """Refill resets the reference point to now, discarding the leftover fraction."""
        bucket = TokenBucket(capacity=1, refill_interval=1.0, clock=clock)
        assert bucket.allow() is True

        clock.advance(1.5)  # one token earned, 0.5s discarded
        assert bucket.allow() is True

        clock.advance(0.75)  # 1.25s past the last whole interval, but only 0.75s since refill
        assert bucket.allow() is False

        clock.advance(0.25)
        assert bucket.allow() is True

    def test_denied_call_without_refill_keeps_reference_point(self, clock):
        bucket = TokenBucket(capacity=1, refill_interval=1.0, clock=clock)
        assert bucket.allow() is True
        clock.advance(0.5)
        assert bucket.allow() is False
        clock.advance(0.5)
        assert bucket.allow() is True

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            TokenBucket(capacity=capacity, refill_interval=1.0)

    @pytest.mark.parametrize("interval", [0, -0.5])
    def test_invalid_refill_interval(self, interval):
        with pytest.raises(ValueError):
            TokenBucket(capacity=5, refill_interval=interval)

    def test_window_bound_with_stepped_clock(self, clock):
        """Allowed calls within a window never exceed capacity + floor(W / interval)."""
        capacity, interval = 4, 0.5
        bucket = TokenBucket(capacity=capacity, refill_interval=interval, clock=clock)
        start = clock.now
        allowed = 0
        for _ in range(200):
            if bucket.allow():
                allowed += 1
            clock.advance(0.07)
        window = clock.now - start
        assert allowed <= capacity + int(window // interval)

    def test_concurrent_callers_never_oversubscribe(self, clock):
        """Many threads racing on a frozen clock get exactly capacity tokens."""
        bucket = TokenBucket(capacity=50, refill_interval=1.0, clock=clock)
        results = []
        results_lock = threading.Lock()
        barrier = threading.Barrier(20)

        def worker():
            barrier.wait()
            local = [bucket.allow() for _ in range(10)]
            with results_lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 200
        assert sum(results) == 50


class TestAdmissionGate:
    """Tests for the global admission gate."""

    def test_admit_reports_remaining(self, clock):
        gate = AdmissionGate(TokenBucket(capacity=2, refill_interval=1.0, clock=clock))
        first = gate.admit()
        assert first.allowed is True
        assert first.limit == 2
        assert first.remaining == 1

        second = gate.admit()
        assert second.allowed is True
        assert second.remaining == 0

        denied = gate.admit()
        assert denied.allowed is False
        assert denied.remaining == 0
        assert denied.retry_after == 1.0

    def test_from_settings(self):
        gate = AdmissionGate.from_settings(capacity=3, refill_seconds=2.0)
        assert gate.bucket.capacity == 3
        assert gate.bucket.refill_interval == 2.0


class TestAdmissionDecision:
    """Tests for retry hint formatting."""

    def test_retry_after_text_singular(self):
        decision = AdmissionDecision(allowed=False, limit=5, remaining=0, retry_after=1.0)
        assert decision.retry_after_text == "1 second"
        assert decision.retry_after_header == "1"

    def test_retry_after_text_plural(self):
        decision = AdmissionDecision(allowed=False, limit=5, remaining=0, retry_after=2.5)
        assert decision.retry_after_text == "2.5 seconds"
        assert decision.retry_after_header == "3"

    def test_retry_after_header_at_least_one(self):
        decision = AdmissionDecision(allowed=False, limit=5, remaining=0, retry_after=0.2)
        assert decision.retry_after_header == "1"


class TestRateLimitMiddleware:
    """Tests for the middleware wired into a minimal app."""

    @pytest.fixture
    def app(self, clock):
        app = FastAPI()
        gate = AdmissionGate(TokenBucket(capacity=5, refill_interval=1.0, clock=clock))
        app.add_middleware(RateLimitMiddleware, gate=gate)

        @app.get("/a")
        async def route_a():
            return {"ok": "a"}

        @app.post("/b")
        async def route_b():
            return {"ok": "b"}

        return app

    def test_sixth_request_is_rejected(self, app, clock):
        client = TestClient(app)
        for _ in range(5):
            assert client.get("/a").status_code == 200

        resp = client.get("/a")
        assert resp.status_code == 429
        assert resp.json() == {
            "error": "Rate limit exceeded. Please try again later.",
            "retry_after": "1 second",
        }
        assert resp.headers["Retry-After"] == "1"

        clock.advance(1.0)
        assert client.get("/a").status_code == 200

    def test_quota_is_shared_across_routes_and_clients(self, app):
        """One bucket for the whole service, regardless of path, method or caller."""
        client = TestClient(app)
        for i in range(5):
            headers = {"Authorization": f"Bearer client-{i}", "X-Forwarded-For": f"10.0.0.{i}"}
            path_ok = client.get("/a", headers=headers) if i % 2 else client.post("/b", headers=headers)
            assert path_ok.status_code == 200

        assert client.post("/b", headers={"X-Forwarded-For": "10.0.0.99"}).status_code == 429
        assert client.get("/a").status_code == 429

    def test_allowed_response_has_rate_limit_headers(self, app):
        client = TestClient(app)
        resp = client.get("/a")
        assert resp.headers["X-RateLimit-Limit"] == "5"
        assert resp.headers["X-RateLimit-Remaining"] == "4"

    def test_denied_request_never_reaches_handler(self, clock):
        app = FastAPI()
        gate = AdmissionGate(TokenBucket(capacity=1, refill_interval=1.0, clock=clock))
        app.add_middleware(RateLimitMiddleware, gate=gate)
        calls = []

        @app.get("/count")
        async def count():
            calls.append(1)
            return {"calls": len(calls)}

        client = TestClient(app)
        assert client.get("/count").status_code == 200
        assert client.get("/count").status_code == 429
        assert len(calls) == 1

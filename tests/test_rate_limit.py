"""Tests for the rate limiting pure function and middleware integration."""

import pytest

from vaultkeeper.core.config import settings
from vaultkeeper.middleware.request_context import check_rate_limit, evict_stale


class TestCheckRateLimit:
    """Unit tests for the pure function, no middleware, no HTTP."""

    def test_allows_within_limit(self):
        bucket: dict = {}
        allowed, retry = check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)
        assert allowed is True
        assert retry == 0.0

    def test_denies_after_exhaustion(self):
        bucket: dict = {}
        now = 0.0
        # Exhaust all tokens
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=now)

        allowed, retry = check_rate_limit(bucket, "client-a", max_per_minute=60, now=now)
        assert allowed is False
        assert retry > 0

    def test_refills_over_time(self):
        bucket: dict = {}
        # Exhaust tokens at t=0
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)

        # 2 seconds later: should have refilled ~2 tokens
        allowed, _ = check_rate_limit(bucket, "client-a", max_per_minute=60, now=2.0)
        assert allowed is True

    def test_separate_keys_independent(self):
        bucket: dict = {}
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)

        # Different client should still have tokens
        allowed, _ = check_rate_limit(bucket, "client-b", max_per_minute=60, now=0.0)
        assert allowed is True

    def test_zero_limit_always_allows(self):
        bucket: dict = {}
        allowed, _ = check_rate_limit(bucket, "any", max_per_minute=0, now=0.0)
        assert allowed is True

    def test_retry_after_matches_refill_rate(self):
        bucket: dict = {}
        check_rate_limit(bucket, "c", max_per_minute=1, now=0.0)
        allowed, retry = check_rate_limit(bucket, "c", max_per_minute=1, now=0.0)
        assert allowed is False
        assert retry == pytest.approx(60.0)


class TestEvictStale:

    def test_drops_idle_buckets_only(self):
        bucket = {"old": (1.0, 0.0), "fresh": (1.0, 100.0)}
        assert evict_stale(bucket, now=150.0, max_age=120.0) == 1
        assert list(bucket) == ["fresh"]


class TestRateLimitMiddleware:

    def test_returns_429_with_structured_body(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
        assert client.get("/api/vault/vaults").status_code == 200
        assert client.get("/api/vault/vaults").status_code == 200

        resp = client.get("/api/vault/vaults")
        assert resp.status_code == 429
        assert resp.json()["error"] == "RATE_LIMITED"
        assert "retry-after" in resp.headers

    def test_health_is_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200

"""Tests for the risk snapshot cache."""

from datetime import datetime, timedelta, timezone

import pytest

from palace.services.snapshot_cache import SnapshotCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class TestSnapshotCache:
    """Test expiry and eviction."""

    def test_get_put(self):
        cache = SnapshotCache()
        cache.put("pf-1", "snapshot")

        assert cache.get("pf-1") == "snapshot"
        assert "pf-1" in cache
        assert cache.get("pf-2") is None

    def test_entries_expire(self):
        clock = FakeClock()
        cache = SnapshotCache(ttl_seconds=60, clock=clock)
        cache.put("pf-1", "snapshot")

        clock.advance(60)
        assert cache.get("pf-1") == "snapshot"
        clock.advance(1)
        assert cache.get("pf-1") is None
        assert len(cache) == 0

    def test_least_recently_used_evicted(self):
        cache = SnapshotCache(max_entries=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_invalidate_and_clear(self):
        cache = SnapshotCache()
        cache.put("a", 1)
        cache.put("b", 2)

        cache.invalidate("a")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            SnapshotCache(ttl_seconds=0)

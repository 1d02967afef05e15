"""
Unit tests for the Console response cache.
"""

import pytest

from service_console.app.caching import keys
from service_console.app.caching.response_cache import CacheEntry, ResponseCache


class TestResponseCache:
    """Test cases for ResponseCache."""

    def test_get_returns_value_before_expiry(self, cache, clock):
        """Test a value set with a TTL is served until the TTL elapses."""
        cache.set("allAdmins", {"admins": [1]}, 30)
        clock.advance(29.9)

        assert cache.get("allAdmins") == {"admins": [1]}

    def test_entry_expires_at_ttl_boundary(self, cache, clock):
        """Test an entry is no longer served once exactly TTL seconds passed."""
        cache.set("allAdmins", "value", 30)
        clock.advance(30)

        assert cache.get("allAdmins") is None

    def test_expired_entry_is_evicted_on_read(self, cache, clock):
        """Test lazy eviction removes the entry on the first stale lookup."""
        cache.set("allVehicles", "value", 5)
        clock.advance(10)

        assert len(cache) == 1
        assert cache.get("allVehicles") is None
        assert len(cache) == 0

    def test_missing_key_returns_default(self, cache):
        """Test missing keys return the supplied default."""
        assert cache.get("never-set") is None
        assert cache.get("never-set", default="fallback") == "fallback"

    def test_set_overwrites_value_and_ttl(self, cache, clock):
        """Test re-setting a key replaces both value and expiry."""
        cache.set("k", "old", 10)
        clock.advance(8)
        cache.set("k", "new", 10)
        clock.advance(8)

        assert cache.get("k") == "new"

    def test_zero_ttl_is_never_served(self, cache):
        """Test a zero TTL entry is expired immediately."""
        cache.set("k", "value", 0)

        assert cache.get("k") is None

    def test_invalidate(self, cache):
        """Test invalidate drops one key and ignores unknown keys."""
        cache.set("a", 1, 30)
        cache.set("b", 2, 30)

        cache.invalidate("a")
        cache.invalidate("unknown")

        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_invalidate_prefix(self, cache):
        """Test prefix invalidation drops only matching keys."""
        cache.set(keys.employees_search("", 1, 10, False), "page1", 30)
        cache.set(keys.employees_search("ann", 2, 10, True), "page2", 30)
        cache.set(keys.employee_details("e1"), "details", 300)

        removed = cache.invalidate_prefix(keys.EMPLOYEES_PREFIX)

        assert removed == 2
        assert keys.employee_details("e1") in cache
        assert len(cache) == 1

    def test_clear(self, cache):
        """Test clear empties the cache."""
        cache.set("a", 1, 30)
        cache.set("b", 2, 30)

        cache.clear()

        assert len(cache) == 0

    def test_contains_respects_expiry(self, cache, clock):
        """Test membership reflects liveness, not just presence."""
        cache.set("a", 1, 10)
        assert "a" in cache

        clock.advance(10)
        assert "a" not in cache

    def test_falsy_values_are_cached(self, cache):
        """Test empty lists and zeros are returned as-is."""
        cache.set("empty", [], 30)
        cache.set("zero", 0, 30)

        assert cache.get("empty", default="missing") == []
        assert cache.get("zero", default="missing") == 0

    def test_records_lookup_metrics(self, cache, clock, metrics):
        """Test hit, miss and expired lookups are counted."""
        cache.set("a", 1, 10)
        cache.get("a")
        cache.get("b")
        clock.advance(10)
        cache.get("a")

        results = [labels["result"] for name, labels in metrics.counters if name == "response_cache_lookups_total"]
        assert results == ["hit", "miss", "expired"]

    def test_employee_details_lifetime(self, cache, clock):
        """Test details cached for 300s are served at +299s and gone at +301s."""
        key = keys.employee_details("42")
        cache.set(key, {"id": "42"}, 300)

        clock.advance(299)
        assert cache.get(key) == {"id": "42"}

        clock.advance(2)
        assert cache.get(key) is None
        assert cache.get(key) is None
        assert len(cache) == 0

    def test_admin_list_invalidated_before_expiry(self, cache, clock):
        """Test an invalidated admin list is gone although its TTL has not run out."""
        cache.set(keys.ALL_ADMINS, {"admins": ["e1"]}, 30)
        clock.advance(5)

        cache.invalidate(keys.ALL_ADMINS)

        assert cache.get(keys.ALL_ADMINS) is None
        assert keys.ALL_ADMINS not in cache

    def test_default_clock_without_metrics(self):
        """Test the cache works with the real clock and no metrics collector."""
        cache = ResponseCache()
        cache.set("k", "v", 60)

        assert cache.get("k") == "v"


class TestCacheEntry:
    """Test cases for CacheEntry."""

    @pytest.mark.parametrize("now,expired", [(99.0, False), (100.0, True), (101.0, True)])
    def test_is_expired(self, now, expired):
        """Test an entry expires at its expiry reading."""
        assert CacheEntry(value="v", expires_at=100.0).is_expired(now) is expired


class TestCacheKeys:
    """Test cases for cache key helpers."""

    def test_list_keys_share_prefixes(self):
        """Test list keys start with the prefix their mutations invalidate."""
        assert keys.employees_search("x", 1, 10, False).startswith(keys.EMPLOYEES_PREFIX)
        assert keys.students_search("x", 1, 10, False).startswith(keys.STUDENTS_PREFIX)
        assert keys.payments("2024-01-01", "2024-01-31", 1, 10, False).startswith(keys.PAYMENTS_PREFIX)

    def test_search_key_layout(self):
        """Test search keys encode query, order and paging."""
        assert keys.employees_search("ann", 2, 25, True) == "employees-ann-true-2-25"

    def test_dates_render_as_iso(self):
        """Test date arguments and strings render identically."""
        from datetime import date

        assert keys.daily_attendance(date(2024, 3, 5)) == keys.daily_attendance("2024-03-05")

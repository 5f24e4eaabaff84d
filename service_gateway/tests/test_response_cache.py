"""
Unit tests for the response cache.
"""

import pytest
from dataclasses import FrozenInstanceError

from service_gateway.app.caching.response_cache import ResponseCache, make_cache_key
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeClock


class TestResponseCache:
    """Test cases for ResponseCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("gateway")

    @pytest.fixture
    def cache(self, clock, metrics):
        return ResponseCache("keyword_ideas", 120, clock=clock, metrics=metrics)

    def test_miss_on_empty_cache(self, cache):
        assert cache.lookup("seo|any|any|15") is None

    def test_hit_returns_stored_payload(self, cache):
        payload = {"results": [{"keyword": "seo"}]}
        cache.store("seo|any|any|15", payload)

        assert cache.lookup("seo|any|any|15") == payload

    def test_entry_fresh_at_exact_ttl(self, cache, clock):
        """Test an entry whose age equals the TTL is still served."""
        cache.store("key", {"value": 1})
        clock.advance(120)

        assert cache.lookup("key") == {"value": 1}

    def test_entry_expires_after_ttl(self, cache, clock):
        """Test stale entries are treated as misses and evicted."""
        cache.store("key", {"value": 1})
        clock.advance(120.5)

        assert cache.lookup("key") is None
        assert "key" not in cache
        assert len(cache) == 0

    def test_store_replaces_entry(self, cache, clock):
        cache.store("key", {"value": 1})
        clock.advance(100)
        cache.store("key", {"value": 2})
        clock.advance(100)

        assert cache.lookup("key") == {"value": 2}
        assert cache.get_entry("key").stored_at == clock.now - 100

    def test_entries_are_frozen(self, cache):
        cache.store("key", {"value": 1})

        with pytest.raises(FrozenInstanceError):
            cache.get_entry("key").value = {"value": 2}

    def test_hit_and_miss_metrics(self, cache, metrics):
        """Test lookups are counted per cache."""
        cache.lookup("key")
        cache.store("key", {"value": 1})
        cache.lookup("key")
        cache.lookup("key")

        labels = {"cache_type": "keyword_ideas"}
        assert metrics.get_sample_value("cache_misses_total", labels) == 1
        assert metrics.get_sample_value("cache_hits_total", labels) == 2

    def test_clear(self, cache):
        cache.store("key", {"value": 1})
        cache.clear()

        assert len(cache) == 0


class TestMakeCacheKey:
    """Test cases for cache key construction."""

    def test_joins_parts(self):
        assert make_cache_key("seo", "any", "any", 15) == "seo|any|any|15"

    def test_separator_in_part_does_not_collide(self):
        """Test parts containing the separator produce distinct keys."""
        assert make_cache_key("a|b", "c") != make_cache_key("a", "b|c")

    def test_escape_special_characters(self):
        assert make_cache_key("50%|off") == "50%25%7Coff"

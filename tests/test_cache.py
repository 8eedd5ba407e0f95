"""Tests for runtime.cache — LRU eviction with pinning."""

import pytest

from sparqlmap.runtime.cache import EntityCache


class TestEntityCache:
    def test_get_put(self):
        cache = EntityCache(2)
        cache.put("a", 1)
        assert cache.get("a") == 1
        assert cache.get("missing") is None
        assert "a" in cache

    def test_lru_eviction(self):
        cache = EntityCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert list(cache) == ["a", "c"]

    def test_pinned_entries_survive(self):
        cache = EntityCache(1)
        cache.put("a", 1)
        cache.pin("a")
        cache.put("b", 2)
        cache.put("c", 3)
        assert "a" in cache
        assert "c" in cache
        assert "b" not in cache

    def test_unpin_evicts_over_bound(self):
        cache = EntityCache(1)
        cache.put("a", 1, pin=True)
        cache.put("b", 2)
        assert len(cache) == 2
        cache.unpin("a")
        assert len(cache) == 1
        assert not cache.is_pinned("a")

    def test_zero_size_keeps_only_pinned(self):
        cache = EntityCache(0)
        cache.put("a", 1)
        assert "a" not in cache
        cache.put("b", 2, pin=True)
        assert cache.get("b") == 2

    def test_pin_missing_raises(self):
        with pytest.raises(KeyError):
            EntityCache().pin("nope")

    def test_discard_and_clear(self):
        cache = EntityCache()
        cache.put("a", 1, pin=True)
        cache.discard("a")
        assert "a" not in cache
        assert not cache.is_pinned("a")
        cache.put("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError):
            EntityCache(-1)

"""Tests for app.services.ranking_cache: RankingCache."""
from __future__ import annotations

import json

import pytest

from app.services.ranking_cache import RankingCache


@pytest.fixture
def cache():
    return RankingCache(ttl_seconds=60.0)


class TestRankingCache:
    def test_miss_returns_none(self, cache):
        assert cache.get(1) is None

    def test_set_then_get(self, cache):
        cache.set(1, ["row"])
        assert cache.get(1) == ["row"]
        assert cache.get(2) is None

    def test_expired_entries_are_misses(self):
        cache = RankingCache(ttl_seconds=0)
        cache.set(1, ["row"])
        assert cache.get(1) is None

    def test_empty_ranking_is_still_a_hit(self, cache):
        calls = []
        cache.get_or_set(1, lambda: calls.append(1) or [])
        cache.get_or_set(1, lambda: calls.append(1) or [])
        assert calls == [1]

    def test_get_or_set_computes_once(self, cache):
        calls = []

        def factory():
            calls.append(1)
            return ["computed"]

        assert cache.get_or_set(1, factory) == ["computed"]
        assert cache.get_or_set(1, factory) == ["computed"]
        assert len(calls) == 1

    def test_invalidate_only_named_groups(self, cache):
        cache.set(1, ["a"])
        cache.set(2, ["b"])
        cache.invalidate([1, 3])
        assert cache.get(1) is None
        assert cache.get(2) == ["b"]

    def test_events_logged(self, cache, log_file):
        cache.get_or_set(4, lambda: ["x"])
        cache.get_or_set(4, lambda: ["x"])
        cache.invalidate([4])
        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert events == ["ranking_cache_miss", "ranking_cache_hit", "ranking_cache_invalidated"]

    def test_invalidation_during_compute_discards_result(self, cache):
        def factory():
            cache.invalidate([1])
            return ["computed before the write"]

        assert cache.get_or_set(1, factory) == ["computed before the write"]
        assert cache.get(1) is None
        assert cache.get_or_set(1, lambda: ["fresh"]) == ["fresh"]
        assert cache.get(1) == ["fresh"]

    def test_set_with_outdated_generation_is_ignored(self, cache):
        generation = cache.generation(1)
        cache.invalidate([1])
        assert cache.set(1, ["stale"], generation=generation) is False
        assert cache.get(1) is None
        assert cache.set(1, ["current"], generation=cache.generation(1)) is True

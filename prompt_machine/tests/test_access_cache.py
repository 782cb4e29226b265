"""Tests for the access decision cache (TTL, sweep, invalidation)."""

import threading

from prompt_machine.core.metrics import access_cache_entries, access_cache_evictions_total
from prompt_machine.features.access.cache import AccessDecisionCache, NullAccessCache
from prompt_machine.models.access import AccessDecision

ALLOW = AccessDecision.allow()
DENY = AccessDecision.deny("insufficient tier", required_tier="premium")


class TestExpiry:
    """Entries vanish once they are older than the TTL."""

    def test_hit_within_ttl(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, time_fn=clock)
        cache.put(("u1", "p1", "f1"), DENY)
        clock.advance(299.9)
        assert cache.get(("u1", "p1", "f1")) == DENY

    def test_hit_at_exact_ttl(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, time_fn=clock)
        cache.put(("u1", "p1", "f1"), DENY)
        clock.advance(300)
        assert cache.get(("u1", "p1", "f1")) == DENY

    def test_absent_past_ttl(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, time_fn=clock)
        cache.put(("u1", "p1", "f1"), DENY)
        clock.advance(300.5)
        assert cache.get(("u1", "p1", "f1")) is None
        assert len(cache) == 0

    def test_rewrite_refreshes_timestamp(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, time_fn=clock)
        cache.put(("u1", "p1", "f1"), DENY)
        clock.advance(200)
        cache.put(("u1", "p1", "f1"), ALLOW)
        clock.advance(200)
        assert cache.get(("u1", "p1", "f1")) == ALLOW


class TestKeys:
    """Project and anonymous identity are part of the key."""

    def test_same_field_in_two_projects_kept_apart(self, clock):
        cache = AccessDecisionCache(time_fn=clock)
        cache.put(("u1", "pa", "q1"), DENY)
        assert cache.get(("u1", "pb", "q1")) is None

    def test_anonymous_key_distinct_from_user_named_anonymous(self, clock):
        cache = AccessDecisionCache(time_fn=clock)
        cache.put(("anonymous", "p1", "f1"), ALLOW)
        assert cache.get((None, "p1", "f1")) is None


class TestSweep:
    """Capacity overflow sweeps expired entries only."""

    def test_overflow_sweeps_stale_entries(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, max_entries=2, time_fn=clock)
        cache.put(("u1", "p1", "f1"), ALLOW)
        cache.put(("u2", "p1", "f1"), ALLOW)
        clock.advance(301)
        cache.put(("u3", "p1", "f1"), DENY)

        assert len(cache) == 1
        assert cache.get(("u3", "p1", "f1")) == DENY
        assert access_cache_evictions_total.value() == 2
        assert access_cache_entries.value() == 1

    def test_overflow_without_stale_entries_still_inserts(self, clock):
        cache = AccessDecisionCache(ttl_seconds=300, max_entries=2, time_fn=clock)
        cache.put(("u1", "p1", "f1"), ALLOW)
        cache.put(("u2", "p1", "f1"), ALLOW)
        cache.put(("u3", "p1", "f1"), ALLOW)

        assert len(cache) == 3
        assert access_cache_evictions_total.value() == 0


class TestInvalidate:
    def _seeded(self, clock):
        cache = AccessDecisionCache(time_fn=clock)
        cache.put(("u1", "p1", "f1"), ALLOW)
        cache.put(("u1", "p1", "f2"), DENY)
        cache.put(("u2", "p1", "f1"), ALLOW)
        cache.put(("u1", "p2", "f1"), DENY)
        return cache

    def test_clear_all(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate() == 4
        assert len(cache) == 0

    def test_subject_only(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate(subject_id="u1") == 3
        assert cache.get(("u2", "p1", "f1")) == ALLOW

    def test_field_only_clears_every_subject_and_project(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate(field_id="f1") == 3
        assert cache.get(("u1", "p1", "f2")) == DENY

    def test_single_pair(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate(subject_id="u1", field_id="f2") == 1
        assert cache.invalidate(subject_id="u1", field_id="f2") == 0
        assert len(cache) == 3

    def test_project_only(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate(project_id="p1") == 3
        assert cache.get(("u1", "p2", "f1")) == DENY
        assert access_cache_entries.value() == 1

    def test_project_and_field(self, clock):
        cache = self._seeded(clock)
        assert cache.invalidate(project_id="p2", field_id="f1") == 1
        assert cache.get(("u1", "p1", "f1")) == ALLOW


def test_null_cache_stores_nothing():
    cache = NullAccessCache()
    cache.put(("u1", "p1", "f1"), ALLOW)
    assert cache.get(("u1", "p1", "f1")) is None
    assert cache.invalidate() == 0
    assert cache.invalidate(project_id="p1") == 0


def test_concurrent_writers_do_not_lose_entries():
    cache = AccessDecisionCache(max_entries=10_000)

    def writer(worker: int):
        for i in range(200):
            cache.put((f"u{worker}", "p1", f"f{i}"), ALLOW)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 1600

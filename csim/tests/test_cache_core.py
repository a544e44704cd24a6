"""Unit tests for the cache core.

These tests focus on the Cache decision procedure (hit, fill into an empty
line, LRU eviction) and the statistics it keeps. They are small and
deterministic.
"""

import random

import pytest
from csim.core.cache import Cache, CacheLine
from csim.errors import ConfigurationError
from csim.trace.valgrind import AccessEvent, Operation


def load(addr):
    return AccessEvent(Operation.LOAD, addr, 1)


def store(addr):
    return AccessEvent(Operation.STORE, addr, 1)


def counts(cache):
    s = cache.statistics()
    return s.hits, s.misses, s.evictions


def test_construct_cold_cache():
    c = Cache(set_bits=2, lines_per_set=3, block_bits=4)
    assert c.num_sets == 4
    assert len(c.sets) == 4
    for s in c.sets:
        assert len(s.lines) == 3
        for line in s.lines:
            assert line == CacheLine(valid=False, tag=0, last_access=0)
    assert counts(c) == (0, 0, 0)


def test_direct_mapped_forced_eviction():
    # s=0, E=1, b=0: one line, every new address evicts it
    c = Cache(0, 1, 0)
    r1 = c.process(load(0x0))
    assert (r1.hit, r1.evicted) == (False, False)
    r2 = c.process(load(0x1))
    assert (r2.hit, r2.evicted, r2.evicted_tag) == (False, True, 0x0)
    r3 = c.process(load(0x0))
    assert (r3.hit, r3.evicted, r3.evicted_tag) == (False, True, 0x1)
    assert counts(c) == (0, 3, 2)


def test_lru_uses_recency_not_fill_order():
    c = Cache(0, 2, 0)
    c.process(load(0x0))
    c.process(load(0x1))
    assert c.process(load(0x0)).hit is True
    res = c.process(load(0x2))
    assert res.evicted is True
    # 0x0 was just refreshed, so 0x1 is the least recently used
    assert res.evicted_tag == 0x1
    assert counts(c) == (1, 3, 1)
    tags = {line.tag for line in c.sets[0].lines}
    assert tags == {0x0, 0x2}


def test_invalid_geometry_fails_before_any_access():
    with pytest.raises(ConfigurationError):
        Cache(set_bits=40, lines_per_set=1, block_bits=30)
    with pytest.raises(ConfigurationError):
        Cache(set_bits=1, lines_per_set=0, block_bits=1)


def test_hit_in_any_way():
    # the matching line is not line 0; a full scan must still find it
    c = Cache(0, 4, 0)
    for a in (10, 11, 12, 13):
        c.access(a)
    res = c.access(13)
    assert res.hit is True
    assert res.line_index == 3
    assert counts(c) == (1, 4, 0)


def test_fill_uses_first_empty_line():
    c = Cache(0, 3, 0)
    assert c.access(7).line_index == 0
    assert c.access(8).line_index == 1
    assert c.access(9).line_index == 2
    assert c.sets[0].valid_count() == 3


def test_store_and_load_are_treated_alike():
    c = Cache(1, 1, 2)
    c.process(store(0x10))
    assert c.process(load(0x13)).hit is True   # same block
    assert c.process(store(0x11)).hit is True
    assert counts(c) == (2, 1, 0)


def test_size_is_ignored():
    # an access spanning past the block end still only looks at its address
    c = Cache(0, 1, 2)
    c.process(AccessEvent(Operation.LOAD, 0x3, 8))
    assert c.process(AccessEvent(Operation.LOAD, 0x0, 1)).hit is True


def test_sets_are_independent():
    # s=1, b=0: even addresses go to set 0, odd to set 1
    c = Cache(1, 1, 0)
    c.access(0b10)   # set 0, tag 1
    c.access(0b11)   # set 1, tag 1
    c.access(0b100)  # set 0, tag 2 -> evicts set 0 only
    assert c.sets[1].lines[0].tag == 1
    assert c.access(0b11).hit is True
    assert counts(c) == (1, 3, 1)


def test_lru_tie_goes_to_lowest_index():
    c = Cache(0, 3, 0)
    for line in c.sets[0].lines:
        line.valid = True
        line.last_access = 5
    c.sets[0].lines[0].tag, c.sets[0].lines[1].tag, c.sets[0].lines[2].tag = 1, 2, 3
    res = c.access(99)
    assert res.line_index == 0
    assert res.evicted_tag == 1


def test_timestamps_follow_logical_clock():
    c = Cache(0, 2, 0)
    c.access(1)
    c.access(2)
    c.access(1)
    lines = c.sets[0].lines
    assert c.clock == 3
    assert lines[0].last_access == 3
    assert lines[1].last_access == 2


def test_no_evictions_until_a_set_overflows():
    c = Cache(2, 2, 4)
    num_sets = c.num_sets
    # two distinct tags per set fit
    for tag in range(2):
        for s in range(num_sets):
            c.access((tag * num_sets + s) << 4)
    assert counts(c) == (0, 8, 0)
    # third tag in set 3 is the first eviction
    c.access((2 * num_sets + 3) << 4)
    assert counts(c) == (0, 9, 1)


def test_counter_invariants_on_random_stream():
    rng = random.Random(42)
    c = Cache(3, 2, 3)
    seen = 0
    for _ in range(2000):
        c.access(rng.randrange(0, 4096))
        seen += 1
        s = c.statistics()
        assert s.hits + s.misses == seen
        assert s.evictions <= s.misses
    for cache_set in c.sets:
        tags = [line.tag for line in cache_set.lines if line.valid]
        assert len(tags) == len(set(tags))
        assert len(tags) <= c.lines_per_set


def test_replay_is_deterministic():
    rng = random.Random(7)
    addrs = [rng.getrandbits(16) for _ in range(500)]
    results = []
    for _ in range(2):
        c = Cache(2, 4, 2)
        for a in addrs:
            c.access(a)
        results.append(c.statistics())
    assert results[0] == results[1]


def test_reset_returns_to_cold_state():
    c = Cache(1, 2, 1)
    for a in (0, 4, 8, 0):
        c.access(a)
    c.reset()
    assert counts(c) == (0, 0, 0)
    assert c.clock == 0
    assert all(not line.valid for s in c.sets for line in s.lines)
    assert c.access(0).hit is False


def test_snapshot_does_not_change_after_more_accesses():
    c = Cache(0, 1, 0)
    c.access(1)
    before = c.statistics()
    c.access(1)
    assert before.hits == 0
    assert c.statistics().hits == 1

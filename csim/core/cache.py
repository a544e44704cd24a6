"""Core cache implementation

This file provides the set-associative LRU cache model driven by the simulator.
Behavior:
- Cache is composed of 2**s sets; each set has E lines (ways).
  tag        = address >> (s + b)
  set_index  = (address >> b) & (2**s - 1)
  offset     = address & (2**b - 1)
- Every access is resolved by exactly one of: hit, miss + store into an
  empty line, miss + eviction of the least recently used line.
- Recency uses a logical clock that ticks once per access, so replays are
  deterministic.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from csim.core.address import AddressPartition, Geometry, decompose
from csim.data.stats_export import Statistics, StatsSnapshot

logger = logging.getLogger(__name__)

BASELINE_TIME = 0


@dataclass
class CacheLine:
    """container for a cache line (way).

    Fields:
    - valid: whether the line currently holds a block
    - tag: the tag stored in the line (meaningless while invalid)
    - last_access: logical time of the last hit or fill, used by LRU
    """

    valid: bool = False
    tag: int = 0
    last_access: int = BASELINE_TIME

    def fill(self, tag: int, now: int) -> None:
        self.valid = True
        self.tag = tag
        self.last_access = now

    def clear(self) -> None:
        self.valid = False
        self.tag = 0
        self.last_access = BASELINE_TIME


class CacheSet:
    """Fixed group of E lines. The line tuple never changes size."""

    def __init__(self, lines_per_set: int):
        self.lines: Tuple[CacheLine, ...] = tuple(CacheLine() for _ in range(lines_per_set))

    def find(self, tag: int) -> Optional[int]:
        """Index of the valid line holding `tag`, scanning every way."""
        for wi, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                return wi
        return None

    def find_empty(self) -> Optional[int]:
        for wi, line in enumerate(self.lines):
            if not line.valid:
                return wi
        return None

    def lru_index(self) -> int:
        # strict < keeps the first minimum, so ties go to the lowest index
        victim = 0
        for wi in range(1, len(self.lines)):
            if self.lines[wi].last_access < self.lines[victim].last_access:
                victim = wi
        return victim

    def valid_count(self) -> int:
        return sum(1 for line in self.lines if line.valid)


class AccessResult(NamedTuple):
    """Outcome of one access.

    Exactly one of: hit, miss with a fill into an empty line, or miss with
    an eviction (`evicted` True and `evicted_tag` set).
    """

    hit: bool
    evicted: bool
    set_index: int
    line_index: int
    evicted_tag: Optional[int] = None


class Cache:
    """Set-associative cache with LRU replacement.
    """

    def __init__(self, set_bits: int, lines_per_set: int, block_bits: int):
        # raises ConfigurationError before anything is allocated
        self.geometry = Geometry(set_bits=set_bits, block_bits=block_bits, lines_per_set=lines_per_set)
        self.sets: Tuple[CacheSet, ...] = tuple(
            CacheSet(lines_per_set) for _ in range(self.geometry.num_sets)
        )
        self.stats = Statistics()
        self._clock = BASELINE_TIME
        logger.info(
            "cache: %d sets x %d lines, %d-byte blocks (tag %d bits)",
            self.geometry.num_sets, lines_per_set, self.geometry.block_size, self.geometry.tag_bits,
        )

    @property
    def set_bits(self) -> int:
        return self.geometry.set_bits

    @property
    def block_bits(self) -> int:
        return self.geometry.block_bits

    @property
    def lines_per_set(self) -> int:
        return self.geometry.lines_per_set

    @property
    def num_sets(self) -> int:
        return self.geometry.num_sets

    @property
    def clock(self) -> int:
        return self._clock

    def decompose(self, address: int) -> AddressPartition:
        return decompose(address, self.geometry)

    def process(self, event) -> AccessResult:
        """Resolve one load or store event. Only `event.address` matters."""
        return self.access(event.address)

    def access(self, address: int) -> AccessResult:
        parts = self.decompose(address)
        self._clock += 1
        now = self._clock
        cache_set = self.sets[parts.set_index]

        # search for hit across every way
        wi = cache_set.find(parts.tag)
        if wi is not None:
            cache_set.lines[wi].last_access = now
            self.stats.record_access(hit=True)
            return AccessResult(True, False, parts.set_index, wi)

        # try to find a free way
        wi = cache_set.find_empty()
        if wi is not None:
            cache_set.lines[wi].fill(parts.tag, now)
            self.stats.record_access(hit=False)
            return AccessResult(False, False, parts.set_index, wi)

        # set is full: evict the least recently used line
        wi = cache_set.lru_index()
        victim = cache_set.lines[wi]
        evicted_tag = victim.tag
        victim.fill(parts.tag, now)
        self.stats.record_access(hit=False, evicted=True)
        logger.debug("set %d: evicted tag %#x from line %d for tag %#x",
                     parts.set_index, evicted_tag, wi, parts.tag)
        return AccessResult(False, True, parts.set_index, wi, evicted_tag)

    def statistics(self) -> StatsSnapshot:
        return self.stats.snapshot()

    def reset(self):
        """Return every line to the cold state and clear statistics.
        """
        for s in self.sets:
            for line in s.lines:
                line.clear()
        self.stats.reset()
        self._clock = BASELINE_TIME

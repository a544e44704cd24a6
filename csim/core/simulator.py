"""CacheSimulator coordinates cache accesses and statistics.
Feeds access events into the core Cache, strictly in order.
"""
import logging
from typing import Callable, Iterable, Iterator, List, Optional

from .cache import Cache
from ..data.stats_export import StatsSnapshot

logger = logging.getLogger(__name__)


class CacheSimulator:
    def __init__(self, cache: Cache, record_history: bool = False):
        self.cache = cache
        self.record_history = record_history
        self.hit_rate_history: List[float] = []
        self._events: Iterator = iter(())
        self._pending = None
        self.index = 0

    @property
    def stats(self) -> StatsSnapshot:
        return self.cache.statistics()

    def reset(self):
        # clear stats, history and cache contents; the loaded events are dropped
        self.cache.reset()
        self.hit_rate_history = []
        self._events = iter(())
        self._pending = None
        self.index = 0

    def load_sequence(self, events: Iterable):
        # events may be a list or a lazy generator; either way they are
        # consumed once, in order, by step()
        self._events = iter(events)
        self._pending = None
        self.index = 0

    def has_next(self) -> bool:
        if self._pending is None:
            self._pending = next(self._events, None)
        return self._pending is not None

    def step(self) -> Optional[dict]:
        if not self.has_next():
            return None
        event, self._pending = self._pending, None
        self.index += 1

        result = self.cache.process(event)
        stats = self.cache.stats
        if self.record_history:
            self.hit_rate_history.append(stats.hit_rate)

        return {
            'event': event,
            'hit': result.hit,
            'evicted': result.evicted,
            'evicted_tag': result.evicted_tag,
            'set_index': result.set_index,
            'line_index': result.line_index,
            'stats': {
                'accesses': stats.accesses,
                'hits': stats.hits,
                'misses': stats.misses,
                'evictions': stats.evictions,
                'hit_rate': stats.hit_rate,
            },
        }

    def run_all(self, callback: Optional[Callable[[dict], None]] = None) -> StatsSnapshot:
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)
        final = self.cache.statistics()
        logger.info("replayed %d accesses: %s", self.index, final.summary())
        return final


def simulate(events: Iterable, set_bits: int, lines_per_set: int, block_bits: int) -> StatsSnapshot:
    """Build a cache, replay `events` through it and return the final counts."""
    sim = CacheSimulator(Cache(set_bits, lines_per_set, block_bits))
    sim.load_sequence(events)
    return sim.run_all()

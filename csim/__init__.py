"""LRU set-associative cache simulator for valgrind memory traces.

Main components:
- Cache: the simulated cache (address split, sets/lines, hit/store/evict)
- CacheSimulator: replays access events through a Cache in order
- parse / parse_file: valgrind lackey trace reader
"""

from .core.address import AddressPartition, Geometry, decompose, reassemble
from .core.cache import AccessResult, Cache
from .core.simulator import CacheSimulator, simulate
from .data.stats_export import Statistics, StatsSnapshot
from .errors import ConfigurationError, CsimError, TraceParseError
from .trace.valgrind import AccessEvent, Operation, parse, parse_file

__version__ = "0.1.0"

__all__ = [
    "AccessEvent",
    "AccessResult",
    "AddressPartition",
    "Cache",
    "CacheSimulator",
    "ConfigurationError",
    "CsimError",
    "Geometry",
    "Operation",
    "Statistics",
    "StatsSnapshot",
    "TraceParseError",
    "decompose",
    "parse",
    "parse_file",
    "reassemble",
    "simulate",
]

"""
Simulator configuration.

The geometry can come from the command line, from a JSON file, or both
(command-line values win). Everything is validated before a Cache is built.
"""

import json
from dataclasses import dataclass, fields, replace
from typing import Optional

from csim.core.address import Geometry
from csim.errors import ConfigurationError


@dataclass
class SimulatorConfig:
    """
    Options for one simulation run.

    Example:
        SimulatorConfig(set_bits=4, lines_per_set=1, block_bits=4,
                        trace_file="traces/yi.trace")
    """
    # s: number of set index bits (2**s sets)
    set_bits: Optional[int] = None

    # E: associativity (lines per set)
    lines_per_set: Optional[int] = None

    # b: number of block offset bits (2**b byte blocks)
    block_bits: Optional[int] = None

    # Valgrind lackey trace to replay
    trace_file: Optional[str] = None

    # Echo every access with its outcome
    verbose: bool = False

    def merged(self, **overrides) -> "SimulatorConfig":
        """Return a copy where every non-None override replaces our value."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def geometry(self) -> Geometry:
        missing = [name for name in ("set_bits", "lines_per_set", "block_bits")
                   if getattr(self, name) is None]
        if missing:
            raise ConfigurationError(f"missing geometry option(s): {', '.join(missing)}")
        return Geometry(set_bits=self.set_bits, block_bits=self.block_bits,
                        lines_per_set=self.lines_per_set)


_TYPES = {
    "set_bits": int,
    "lines_per_set": int,
    "block_bits": int,
    "trace_file": str,
    "verbose": bool,
}


def load_config(path: str) -> SimulatorConfig:
    """Read a SimulatorConfig from a JSON object file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: invalid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")

    known = {f.name for f in fields(SimulatorConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"{path}: unknown key(s): {', '.join(unknown)}")

    for key, value in raw.items():
        expected = _TYPES[key]
        # json gives true/false as bool, which would otherwise pass as int
        if value is not None and (not isinstance(value, expected)
                                  or (expected is int and isinstance(value, bool))):
            raise ConfigurationError(f"{path}: {key} must be {expected.__name__}, got {value!r}")

    return SimulatorConfig(**raw)

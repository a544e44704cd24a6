"""Address decomposition for a set-associative cache.

A 64-bit address is split, from the high bits down, into:

    | tag (64 - s - b bits) | set index (s bits) | block offset (b bits) |

The split depends only on the geometry, so `decompose` is a pure function.
"""
from dataclasses import dataclass
from typing import NamedTuple

from csim.errors import ConfigurationError

ADDRESS_BITS = 64
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1


@dataclass(frozen=True)
class Geometry:
    """Cache shape: s set-index bits, b block-offset bits, E lines per set."""

    set_bits: int
    block_bits: int
    lines_per_set: int

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for name in ("set_bits", "block_bits", "lines_per_set"):
            value = getattr(self, name)
            # bool is an int subclass but never a meaningful geometry value
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.set_bits < 0 or self.block_bits < 0:
            raise ConfigurationError("set_bits and block_bits must be >= 0")
        if self.set_bits + self.block_bits > ADDRESS_BITS:
            raise ConfigurationError(
                f"set_bits + block_bits = {self.set_bits + self.block_bits} "
                f"exceeds the {ADDRESS_BITS}-bit address width"
            )
        if self.lines_per_set < 1:
            raise ConfigurationError("lines_per_set must be >= 1")

    @property
    def tag_bits(self) -> int:
        return ADDRESS_BITS - self.set_bits - self.block_bits

    @property
    def num_sets(self) -> int:
        return 1 << self.set_bits

    @property
    def block_size(self) -> int:
        return 1 << self.block_bits

    @property
    def capacity(self) -> int:
        """Total bytes the cache could hold."""
        return self.num_sets * self.lines_per_set * self.block_size


class AddressPartition(NamedTuple):
    tag: int
    set_index: int
    block_offset: int


def decompose(address: int, geometry: Geometry) -> AddressPartition:
    """Split `address` into (tag, set_index, block_offset)."""
    s, b = geometry.set_bits, geometry.block_bits
    return AddressPartition(
        tag=address >> (s + b),
        set_index=(address >> b) & ((1 << s) - 1),
        block_offset=address & ((1 << b) - 1),
    )


def reassemble(parts: AddressPartition, geometry: Geometry) -> int:
    """Inverse of `decompose`."""
    s, b = geometry.set_bits, geometry.block_bits
    return (parts.tag << (s + b)) | (parts.set_index << b) | parts.block_offset

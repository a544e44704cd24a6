"""Valgrind lackey trace reader.

Traces come from

    valgrind --log-fd=1 --tool=lackey -v --trace-mem=yes <program>

and look like::

    I 0400d7d4,8
     L 7ff0005c8,8
     S 7ff0005c8,8
     M 0421c7f0,4

Each record is turned into `AccessEvent`s for the cache:
- `I` (instruction fetch) is dropped, the cache under study is a data cache
- `M` (modify) becomes a load immediately followed by a store
- `L` and `S` pass through unchanged

A malformed line aborts the whole parse with `TraceParseError`; a trace with
holes in it would give meaningless statistics.
"""
import logging
import string
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List

from csim.core.address import ADDRESS_MASK
from csim.errors import TraceParseError

logger = logging.getLogger(__name__)

MAX_SIZE = 0xFF
TRACE_ENCODING = "utf-8"


class Operation(Enum):
    LOAD = "L"
    STORE = "S"
    MODIFY = "M"
    INSTRUCTION = "I"


@dataclass(frozen=True)
class AccessEvent:
    """One data access replayed against the cache.

    `size` is kept for tracing only; the cache decides by address alone.
    """

    operation: Operation
    address: int
    size: int = 1

    def __post_init__(self):
        if self.operation not in (Operation.LOAD, Operation.STORE):
            raise ValueError(f"cache only accepts loads and stores, got {self.operation}")
        if not 0 <= self.address <= ADDRESS_MASK:
            raise ValueError(f"address {self.address:#x} is not a 64-bit unsigned value")

    def __str__(self):
        return f"{self.operation.value} {self.address:x},{self.size}"


def _parse_operation(token: str) -> Operation:
    try:
        return Operation(token)
    except ValueError:
        raise TraceParseError(f"unknown operation {token!r}") from None


def _parse_address_size(token: str):
    operands = token.split(",")
    if len(operands) != 2:
        raise TraceParseError("expected <address>,<size>")
    addr_str, size_str = operands
    # int() would also take signs, underscores and a 0x prefix
    if not addr_str or any(c not in string.hexdigits for c in addr_str):
        raise TraceParseError(f"bad address {addr_str!r}")
    address = int(addr_str, 16)
    if address > ADDRESS_MASK:
        raise TraceParseError(f"address {addr_str!r} does not fit in 64 bits")
    if not size_str or any(c not in string.digits for c in size_str):
        raise TraceParseError(f"bad size {size_str!r}")
    size = int(size_str)
    if size > MAX_SIZE:
        raise TraceParseError(f"size {size} does not fit in a byte")
    return address, size


def parse_line(line: str) -> List[AccessEvent]:
    """Turn one trace record into zero, one or two events."""
    fields = line.split()
    if len(fields) != 2:
        raise TraceParseError("expected '<op> <address>,<size>'")
    operation = _parse_operation(fields[0])
    address, size = _parse_address_size(fields[1])

    if operation is Operation.INSTRUCTION:
        return []
    if operation is Operation.MODIFY:
        return [
            AccessEvent(Operation.LOAD, address, size),
            AccessEvent(Operation.STORE, address, size),
        ]
    return [AccessEvent(operation, address, size)]


def iter_events(lines: Iterable) -> Iterator[AccessEvent]:
    """Lazily parse `lines`; blank lines are skipped.

    Lines may be `str` or raw `bytes` (a file opened in binary mode); bytes
    are decoded one line at a time so a bad byte is reported on its own line.
    """
    for number, line in enumerate(lines, start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode(TRACE_ENCODING)
            except UnicodeDecodeError as exc:
                raise TraceParseError(f"undecodable byte ({exc.reason})", number, line) from None
        if not line.strip():
            continue
        try:
            events = parse_line(line)
        except TraceParseError as exc:
            raise TraceParseError(exc.args[0], number, line) from None
        yield from events


def parse(trace_input: str) -> List[AccessEvent]:
    """Parse a whole trace held in memory."""
    events = list(iter_events(trace_input.splitlines()))
    logger.debug("parsed %d data accesses", len(events))
    return events


def parse_file(path: str) -> List[AccessEvent]:
    with open(path, "rb") as fh:
        events = list(iter_events(fh))
    logger.debug("parsed %d data accesses from %s", len(events), path)
    return events

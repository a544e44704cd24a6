"""Exceptions raised by the simulator.

Only two things can go wrong: the cache geometry (or the config file that
describes it) is invalid, or the trace cannot be parsed. Both abort the run
before or instead of producing statistics.
"""


class CsimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(CsimError, ValueError):
    """Invalid cache geometry or configuration content."""


class TraceParseError(CsimError, ValueError):
    """A trace line could not be turned into an access event."""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        self.line_number = line_number
        self.line = line
        if line_number:
            message = f"line {line_number}: {message}: {line.strip()!r}"
        super().__init__(message)

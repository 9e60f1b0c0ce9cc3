"""
Error taxonomy for the SolisCloud poller.

Every failure the poller can raise derives from :class:`SolisError` so the
process boundary can tell expected fatal errors apart from programming bugs.
Only :class:`TimestampAnomaly` is recovered locally; everything else unwinds
the poll loop.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations


class SolisError(Exception):
    """Base class for all poller errors."""


class ConfigError(SolisError):
    """Missing or invalid configuration. Fatal at startup."""


class TransportError(SolisError):
    """Network failure, timeout, or non-2xx HTTP status.

    Attributes:
        status_code: HTTP status when the server answered, else ``None``.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(SolisError):
    """Response body could not be decoded into the expected envelope."""


class FieldError(SolisError):
    """A classified field carried a value that cannot be converted."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"field '{field}': {message}")
        self.field = field


class UnitError(FieldError):
    """A classified field carried a unit string with no known conversion."""

    def __init__(self, field: str, unit: str, expected: str) -> None:
        super().__init__(field, f"unrecognized unit {unit!r} (expected {expected})")
        self.unit = unit


class TimestampAnomaly(SolisError):
    """Vendor timestamp too far from the wall clock to be trusted."""

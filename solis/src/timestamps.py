"""
Observation-time resolution for inverter detail records.

The vendor stamps each detail record with ``dataTimestamp`` (epoch
milliseconds, sent as either a JSON string or number). That value is only
trusted when it lies within :data:`MAX_SKEW` of the wall clock; otherwise the
wall clock is used. A missing or unparsable value silently falls back to the
wall clock, while an out-of-window value is logged as an anomaly.

The wall clock is injected by the caller, so resolution is deterministic.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime, timedelta

from solis.src.errors import TimestampAnomaly
from solis.src.models import RawDetail, RawValue

logger = logging.getLogger(__name__)

TIMESTAMP_FIELD = "dataTimestamp"
"""Vendor field carrying the record's epoch-millisecond timestamp."""

MAX_SKEW = timedelta(minutes=10)
"""Largest accepted distance (either direction) from the wall clock."""


def parse_epoch_ms(value: RawValue) -> int | None:
    """Parse an epoch-millisecond value encoded as a number or string.

    Returns ``None`` for booleans, non-finite numbers, and unparsable strings.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return None
    return int(parsed) if math.isfinite(parsed) else None


def _from_epoch_ms(millis: int) -> datetime | None:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def check_skew(candidate: datetime, now: datetime) -> datetime:
    """Return *candidate* if it is within :data:`MAX_SKEW` of *now*.

    Raises:
        TimestampAnomaly: If the distance exceeds :data:`MAX_SKEW`.
    """
    skew = candidate - now
    if abs(skew) > MAX_SKEW:
        raise TimestampAnomaly(
            f"vendor timestamp {candidate.isoformat()} is "
            f"{skew.total_seconds():+.0f}s from wall clock {now.isoformat()}"
        )
    return candidate


def resolve_timestamp(raw: RawDetail, *, now: datetime) -> datetime:
    """Pick the observation time for one detail record.

    Args:
        raw: Vendor detail record (read, not modified).
        now: Current wall-clock time (aware).

    Returns:
        The vendor timestamp when present, parsable, and plausible;
        otherwise *now*.
    """
    millis = parse_epoch_ms(raw.get(TIMESTAMP_FIELD))
    if millis is None:
        return now
    candidate = _from_epoch_ms(millis)
    if candidate is None:
        return now
    try:
        return check_skew(candidate, now)
    except TimestampAnomaly as exc:
        logger.warning("Discarding vendor timestamp: %s", exc)
        return now

"""
Canonical metric points and their newline-delimited JSON encoding.

A metric point is a ``(FullName, Observation)`` pair. :func:`build_points`
combines the classifier's typed output (``soliscloud_{name}``) with the
numeric part of the fallback output (``soliscloud_raw_{name}``) for one
device and labels every point with ``id={device_id}``.

:func:`encode_lines` renders points in the JSON-line import format::

    {"metric":{"id":"123","__name__":"soliscloud_ac_power_w"},"values":[1200.0],"timestamps":[1760000000000]}

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

NAME_LABEL = "__name__"
"""Reserved label key carrying the metric name."""

CLASSIFIED_PREFIX = "soliscloud_"
RAW_PREFIX = "soliscloud_raw_"
DEVICE_LABEL = "id"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class FullName:
    """Metric name plus an ordered set of labels with unique keys.

    Raises:
        ValueError: If a label key repeats or is the reserved ``__name__``.
    """

    name: str
    labels: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        keys = [key for key, _ in self.labels]
        if NAME_LABEL in keys:
            raise ValueError(f"Label key '{NAME_LABEL}' is reserved for the metric name")
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate label keys in {keys}")

    def as_metric(self) -> dict[str, str]:
        metric = dict(self.labels)
        metric[NAME_LABEL] = self.name
        return metric


@dataclass(frozen=True, slots=True)
class Observation:
    """One sample: value plus epoch-millisecond timestamp."""

    value: float
    timestamp_ms: int

    @classmethod
    def at(cls, value: float, when: datetime) -> Observation:
        return cls(value=value, timestamp_ms=(when - _EPOCH) // timedelta(milliseconds=1))


MetricPoint = tuple[FullName, Observation]


def parse_number(text: str) -> float | None:
    """Parse a fallback value as a finite float, or return ``None``."""
    if "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def build_points(
    device_id: str,
    classified: Mapping[str, float],
    fallback: Mapping[str, str],
    when: datetime,
) -> list[MetricPoint]:
    """Assemble one device's metric points for one cycle.

    Fallback values that do not parse as finite numbers carry no
    time-series value and are skipped.
    """
    labels = ((DEVICE_LABEL, device_id),)
    points: list[MetricPoint] = [
        (FullName(f"{CLASSIFIED_PREFIX}{name}", labels), Observation.at(value, when))
        for name, value in classified.items()
    ]
    for name, text in fallback.items():
        number = parse_number(text)
        if number is None:
            continue
        points.append((FullName(f"{RAW_PREFIX}{name}", labels), Observation.at(number, when)))
    return points


def encode_point(name: FullName, observations: Sequence[Observation]) -> str:
    """Encode one series as a single JSON line (without trailing newline)."""
    return json.dumps(
        {
            "metric": name.as_metric(),
            "values": [obs.value for obs in observations],
            "timestamps": [obs.timestamp_ms for obs in observations],
        },
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_lines(points: Iterable[MetricPoint]) -> str:
    """Encode points as newline-delimited JSON, one line per point."""
    return "".join(f"{encode_point(name, [obs])}\n" for name, obs in points)

"""
Generic fallback mapper for fields the classifier did not claim.

Renames every residual field to snake_case and renders its value as a
string, keeping the exact JSON number formatting (``0`` stays ``"0"``,
``0.0`` stays ``"0.0"``). Value/unit pairs (``X`` + ``XStr``) fold the
sanitized unit into the key: ``homeLoadTodayEnergy`` + ``"kWh"`` becomes
``home_load_today_energy_kwh``. No unit conversion happens here. Two vendor
fields that land on the same canonical key raise
:class:`~solis.src.errors.FieldError` instead of overwriting each other.

An optional :class:`ZeroSuppression` policy drops literal-zero values for
keys that have never been non-zero on the same device, so structurally
absent signals do not spawn empty time series. The policy is the only state
that survives across polling cycles; the poll loop owns one instance and
passes it in.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Reject canonical key collisions; scope zero suppression per device

TODO:
- None
"""

from __future__ import annotations

import json
import re

from solis.src.errors import FieldError
from solis.src.models import RawDetail, RawValue
from solis.src.rules import snake_case

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

ZERO_VALUES: frozenset[str] = frozenset({"0", "0.0"})
"""Rendered values treated as zero by :class:`ZeroSuppression`."""


class ZeroSuppression:
    """Remembers which keys have been non-zero at least once, per device.

    A zero value is admitted only for keys already seen non-zero on the same
    device; any non-zero value is admitted and marks its key as seen.
    """

    def __init__(self) -> None:
        self._seen_nonzero: set[tuple[str, str]] = set()

    @property
    def seen_nonzero(self) -> frozenset[tuple[str, str]]:
        """``(device_id, key)`` pairs that have carried a non-zero value."""
        return frozenset(self._seen_nonzero)

    def admit(self, key: str, value: str, *, device_id: str = "") -> bool:
        if value in ZERO_VALUES:
            return (device_id, key) in self._seen_nonzero
        self._seen_nonzero.add((device_id, key))
        return True


def render_value(value: RawValue) -> str:
    """Render a JSON scalar as text; strings pass through unquoted."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def sanitize_unit(unit: str) -> str:
    """Keep only ASCII letters and digits of a unit string."""
    return _NON_ALNUM.sub("", unit)


def _insert(
    mapped: dict[str, str],
    sources: dict[str, str],
    key: str,
    value: str,
    source: str,
) -> None:
    if key in mapped:
        raise FieldError(
            source,
            f"maps to '{key}', which is already produced by '{sources[key]}'",
        )
    mapped[key] = value
    sources[key] = source


def map_residual(
    residual: RawDetail,
    *,
    zero_suppression: ZeroSuppression | None = None,
    device_id: str = "",
) -> dict[str, str]:
    """Map unclaimed vendor fields to ``canonical_key -> string value``.

    Args:
        residual: Fields left over by the classifier. Not modified.
        zero_suppression: Optional cross-cycle zero filter.
        device_id: Device the residual belongs to; scopes zero suppression.

    Returns:
        Canonical snake_case key -> rendered value. Values may be
        non-numeric; the caller decides what is plottable.

    Raises:
        FieldError: If two vendor fields map to the same canonical key.
    """
    remaining = dict(residual)
    mapped: dict[str, str] = {}
    sources: dict[str, str] = {}

    for unit_field, unit in residual.items():
        if not unit_field.endswith("Str") or "Time" in unit_field:
            continue
        if not isinstance(unit, str):
            continue
        base = unit_field[: -len("Str")]
        if not base or base not in remaining or unit_field not in remaining:
            continue
        clean_unit = sanitize_unit(unit)
        if not clean_unit:
            continue
        value = remaining.pop(base)
        del remaining[unit_field]
        key = f"{snake_case(base)}_{clean_unit.lower()}"
        _insert(mapped, sources, key, render_value(value), base)

    for key, value in remaining.items():
        _insert(mapped, sources, snake_case(key), render_value(value), key)

    if zero_suppression is None:
        return mapped
    return {
        key: value
        for key, value in mapped.items()
        if zero_suppression.admit(key, value, device_id=device_id)
    }

"""
Opinionated classifier: turns known vendor field families into canonical,
unit-normalized metrics.

Works on a copy of one inverter detail record in three steps:

1. **Strip noise** -- drop per-string channel duplicates (``iPv1``,
   ``mpptPow3``, ...), identity fields (``sn``, ``sno``, ``userId``) and
   numeric identifiers (``id``, ``stationId``, ``dataTimestamp``).
2. **Pair values with units** -- every field ``X`` whose companion ``XStr``
   or ``XUnit`` holds a string becomes a value/unit pair.
3. **Claim** -- every field named in :data:`~solis.src.rules.FIELD_RULES`
   is converted to its canonical unit and removed from the working set.

Whatever is left (the *residual*) goes to the fallback mapper. Pairs that no
rule claimed are written back as ``X`` + ``XStr`` so the residual keeps the
vendor's shape.

Unit conversion never guesses: an unknown unit on a claimed field raises
:class:`~solis.src.errors.UnitError` naming the field.

This is a pure function: the input mapping is never modified, and the same
input always yields the same :class:`Classification`.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Reject conversions that overflow; drop numeric identifiers

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from solis.src.errors import FieldError
from solis.src.models import RawDetail, RawValue
from solis.src.rules import (
    FIELD_RULES,
    IDENTIFIER_FIELDS,
    SECRET_FIELDS,
    UNIT_SUFFIXES,
    Conversion,
    FieldRule,
    is_per_channel,
    to_celsius,
    to_kwh,
    to_watt,
)

logger = logging.getLogger(__name__)

_CONVERTERS = {
    Conversion.ENERGY_KWH: to_kwh,
    Conversion.POWER_W: to_watt,
    Conversion.CELSIUS: to_celsius,
}


@dataclass(frozen=True, slots=True)
class UnitPair:
    """A vendor value together with the unit string of its companion field."""

    value: RawValue
    unit: str
    unit_field: str


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of classifying one detail record.

    Attributes:
        metrics: Canonical metric name -> value in its base unit.
        residual: Unclaimed fields, in vendor shape, for the fallback mapper.
        claimed: Raw keys consumed by *metrics* (values and unit companions).
        dropped: Raw keys discarded as secrets, identifiers, or per-channel
            duplicates.
        renamed: Residual key -> original raw key, for unit companions that
            were written back under a different name (``XUnit`` -> ``XStr``).
    """

    metrics: dict[str, float]
    residual: RawDetail
    claimed: frozenset[str]
    dropped: frozenset[str]
    renamed: dict[str, str] = field(default_factory=dict)

    def accounted_keys(self) -> set[str]:
        """Every raw key, mapped back from wherever it ended up."""
        residual_sources = {self.renamed.get(key, key) for key in self.residual}
        return set(self.claimed) | set(self.dropped) | residual_sources


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def strip_noise(raw: RawDetail) -> tuple[RawDetail, frozenset[str]]:
    """Return a working copy without secrets, identifiers and channel duplicates."""
    working: RawDetail = {}
    dropped: set[str] = set()
    for key, value in raw.items():
        if key in SECRET_FIELDS or key in IDENTIFIER_FIELDS or is_per_channel(key):
            dropped.add(key)
        else:
            working[key] = value
    return working, frozenset(dropped)


def pair_units(working: RawDetail) -> dict[str, UnitPair]:
    """Remove value/unit pairs from *working* and return them by base field.

    ``XStr`` wins over ``XUnit`` when both exist; the loser stays in
    *working*. Fields containing ``Time`` are never paired since their
    ``Str`` companion is a formatted date, not a unit.
    """
    pairs: dict[str, UnitPair] = {}
    for base in list(working):
        if base not in working or "Time" in base:
            continue
        for suffix in UNIT_SUFFIXES:
            unit_field = f"{base}{suffix}"
            unit = working.get(unit_field)
            if isinstance(unit, str):
                pairs[base] = UnitPair(
                    value=working.pop(base),
                    unit=unit,
                    unit_field=unit_field,
                )
                del working[unit_field]
                break
    return pairs


def _as_number(field_name: str, value: RawValue) -> float:
    if isinstance(value, bool) or value is None:
        raise FieldError(field_name, f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError as exc:
            raise FieldError(field_name, f"expected a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise FieldError(field_name, f"expected a finite number, got {value!r}")
    return number


def _claim(
    rule: FieldRule,
    working: RawDetail,
    pairs: dict[str, UnitPair],
) -> tuple[float, set[str]] | None:
    """Extract and convert one rule's field, or return ``None`` if absent."""
    pair = pairs.pop(rule.source, None)
    if rule.conversion.needs_unit:
        if pair is None:
            return None
        value = _as_number(rule.source, pair.value)
        converted = _CONVERTERS[rule.conversion](value, pair.unit, field=rule.source)
        if not math.isfinite(converted):
            raise FieldError(
                rule.source,
                f"{value!r} {pair.unit} overflows when converted",
            )
        return converted, {rule.source, pair.unit_field}

    if pair is not None:
        return _as_number(rule.source, pair.value), {rule.source, pair.unit_field}
    if rule.source in working:
        return _as_number(rule.source, working.pop(rule.source)), {rule.source}
    return None


def _write_back(
    working: RawDetail,
    pairs: dict[str, UnitPair],
) -> dict[str, str]:
    """Re-insert unclaimed pairs as ``X`` + ``XStr``; return renamed keys."""
    renamed: dict[str, str] = {}
    for base, pair in pairs.items():
        unit_key = f"{base}Str"
        if unit_key in working:
            unit_key = pair.unit_field
        working[base] = pair.value
        working[unit_key] = pair.unit
        if unit_key != pair.unit_field:
            renamed[unit_key] = pair.unit_field
    return renamed


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify(raw: RawDetail) -> Classification:
    """Classify one inverter detail record.

    Args:
        raw: Vendor detail record. Not modified.

    Returns:
        The claimed canonical metrics plus the residual for the fallback
        mapper.

    Raises:
        UnitError: If a claimed field carries an unrecognized unit.
        FieldError: If a claimed field's value is not a finite number, or
            stops being finite after unit conversion.
    """
    working, dropped = strip_noise(raw)
    pairs = pair_units(working)

    metrics: dict[str, float] = {}
    claimed: set[str] = set()
    for rule in FIELD_RULES.values():
        result = _claim(rule, working, pairs)
        if result is None:
            continue
        value, keys = result
        metrics[rule.target] = value
        claimed.update(keys)

    if pairs:
        logger.debug("Writing back %d unclaimed value/unit pair(s)", len(pairs))
    renamed = _write_back(working, pairs)

    return Classification(
        metrics=metrics,
        residual=working,
        claimed=frozenset(claimed),
        dropped=dropped,
        renamed=renamed,
    )

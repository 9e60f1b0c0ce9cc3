"""
SolisCloud inverter-detail field rules -- single source of truth.

Declares, as static data, which vendor fields the classifier understands,
what canonical metric name each maps to, and how its unit is converted:

- :class:`EnergyFamily` -- ``{family}{period}Energy`` counters in kWh.
- :class:`BatteryEnergy` -- ``battery{period}{direction}Energy`` counters in kWh.
- :class:`PowerAlias` -- a single power field renamed and converted to W.
- :class:`Temperature` -- a single field whose unit must be Celsius.
- :class:`StateOfCharge` -- a single field passed through without unit check.

Adding a vendor field is a change to :data:`RULES`, not to classifier code.
The same module defines the noise the classifier strips before matching
(per-string channel duplicates, identity fields and numeric identifiers)
and the unit tables.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Drop numeric identifiers before classification

TODO:
- None
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union

from solis.src.errors import UnitError

# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_DIGIT_BOUNDARY = re.compile(r"(?<=[A-Za-z])(?=[0-9])|(?<=[0-9])(?=[A-Za-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def snake_case(name: str) -> str:
    """Convert a vendor camelCase field name to snake_case.

    Word boundaries are lower->upper transitions, acronym ends, letter/digit
    transitions, and any non-alphanumeric run::

        homeLoadTodayEnergy -> home_load_today_energy
        iPv1                -> i_pv_1
        eTotal              -> e_total
    """
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    text = _WORD_BOUNDARY.sub(r"\1_\2", text)
    text = _DIGIT_BOUNDARY.sub("_", text)
    text = _SEPARATORS.sub("_", text)
    return text.strip("_").lower()


# ---------------------------------------------------------------------------
# Unit conversion tables
# ---------------------------------------------------------------------------

ENERGY_TO_KWH: dict[str, float] = {
    "Wh": 0.001,
    "kWh": 1.0,
    "MWh": 1_000.0,
    "GWh": 1_000_000.0,
}
"""Multiplier from each accepted energy unit to kWh."""

POWER_TO_W: dict[str, float] = {
    "W": 1.0,
    "kW": 1_000.0,
    "MW": 1_000_000.0,
    "GW": 1_000_000_000.0,
}
"""Multiplier from each accepted power unit to W."""

CELSIUS_UNITS: frozenset[str] = frozenset(
    {
        "℃",  # DEGREE CELSIUS sign
        "°C",  # degree sign + C
        "ºC",  # masculine ordinal, a common look-alike
        "C",
        "degC",
        "Â°C",  # UTF-8 degree sign decoded as latin-1
        "â„ƒ",  # UTF-8 celsius sign decoded as cp1252
        "?C",
        "�C",  # replacement character + C
    }
)
"""Spellings accepted as Celsius, including common mis-encodings."""


def to_kwh(value: float, unit: str, *, field: str = "") -> float:
    """Convert an energy *value* in *unit* to kWh.

    Raises:
        UnitError: If *unit* is not in :data:`ENERGY_TO_KWH`.
    """
    factor = ENERGY_TO_KWH.get(unit.strip())
    if factor is None:
        raise UnitError(field, unit, "Wh/kWh/MWh/GWh")
    return value * factor


def to_watt(value: float, unit: str, *, field: str = "") -> float:
    """Convert a power *value* in *unit* to W.

    Raises:
        UnitError: If *unit* is not in :data:`POWER_TO_W`.
    """
    factor = POWER_TO_W.get(unit.strip())
    if factor is None:
        raise UnitError(field, unit, "W/kW/MW/GW")
    return value * factor


def to_celsius(value: float, unit: str, *, field: str = "") -> float:
    """Return *value* unchanged if *unit* denotes Celsius.

    Raises:
        UnitError: For any other unit.
    """
    if unit.strip() not in CELSIUS_UNITS:
        raise UnitError(field, unit, "Celsius")
    return value


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


class Conversion(enum.Enum):
    """How a claimed field's value is brought to its canonical unit."""

    ENERGY_KWH = "energy_kwh"
    POWER_W = "power_w"
    CELSIUS = "celsius"
    PASSTHROUGH = "passthrough"

    @property
    def needs_unit(self) -> bool:
        return self is not Conversion.PASSTHROUGH


PERIODS: tuple[str, ...] = ("Total", "Year", "Month", "Yesterday", "Today", "")
"""Counter periods; the empty period is the instantaneous counter."""


def _period_suffix(period: str) -> str:
    return f"_{period.lower()}" if period else ""


@dataclass(frozen=True, slots=True)
class EnergyFamily:
    """``{family}{period}Energy`` -> ``energy_{family}_{period}_kwh``."""

    family: str
    periods: tuple[str, ...] = PERIODS
    conversion = Conversion.ENERGY_KWH

    def fields(self) -> dict[str, str]:
        stem = snake_case(self.family)
        return {
            f"{self.family}{period}Energy": f"energy_{stem}{_period_suffix(period)}_kwh"
            for period in self.periods
        }


@dataclass(frozen=True, slots=True)
class BatteryEnergy:
    """``battery{period}{direction}Energy`` -> ``energy_battery_{direction}_{period}_kwh``."""

    direction: str
    periods: tuple[str, ...] = PERIODS
    conversion = Conversion.ENERGY_KWH

    def fields(self) -> dict[str, str]:
        direction = self.direction.lower()
        return {
            f"battery{period}{self.direction}Energy": (
                f"energy_battery_{direction}{_period_suffix(period)}_kwh"
            )
            for period in self.periods
        }


@dataclass(frozen=True, slots=True)
class PowerAlias:
    """A single power field renamed to a canonical ``*_w`` metric."""

    source: str
    target: str
    conversion = Conversion.POWER_W

    def fields(self) -> dict[str, str]:
        return {self.source: self.target}


@dataclass(frozen=True, slots=True)
class Temperature:
    """A single temperature field; its unit must be Celsius."""

    source: str
    target: str
    conversion = Conversion.CELSIUS

    def fields(self) -> dict[str, str]:
        return {self.source: self.target}


@dataclass(frozen=True, slots=True)
class StateOfCharge:
    """Battery state of charge, passed through as-is.

    The vendor sends this field without a unit companion, so no unit check
    applies.
    """

    source: str
    target: str
    conversion = Conversion.PASSTHROUGH

    def fields(self) -> dict[str, str]:
        return {self.source: self.target}


Rule = Union[EnergyFamily, BatteryEnergy, PowerAlias, Temperature, StateOfCharge]


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

RULES: tuple[Rule, ...] = (
    EnergyFamily("backup"),
    EnergyFamily("gridPurchased"),
    EnergyFamily("gridSell"),
    EnergyFamily("homeGrid"),
    EnergyFamily("homeLoad"),
    EnergyFamily("generator"),
    BatteryEnergy("Charge"),
    BatteryEnergy("Discharge"),
    PowerAlias("pac", "ac_power_w"),
    PowerAlias("dcPac", "dc_power_w"),
    PowerAlias("batteryPower", "battery_power_w"),
    PowerAlias("psum", "grid_power_w"),
    PowerAlias("familyLoadPower", "family_load_power_w"),
    PowerAlias("totalLoadPower", "total_load_power_w"),
    PowerAlias("bypassLoadPower", "bypass_load_power_w"),
    PowerAlias("generatorPower", "generator_power_w"),
    Temperature("inverterTemperature", "inverter_temperature_c"),
    StateOfCharge("batteryCapacitySoc", "battery_soc_percent"),
)
"""Every field family the classifier claims, in evaluation order."""


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Flattened rule entry for one vendor field."""

    source: str
    target: str
    conversion: Conversion


def _index(rules: tuple[Rule, ...]) -> dict[str, FieldRule]:
    index: dict[str, FieldRule] = {}
    for rule in rules:
        for source, target in rule.fields().items():
            if source in index:
                msg = f"Vendor field '{source}' is claimed by more than one rule"
                raise ValueError(msg)
            index[source] = FieldRule(source=source, target=target, conversion=rule.conversion)
    return index


FIELD_RULES: dict[str, FieldRule] = _index(RULES)
"""Flat lookup of every claimed vendor field."""


# ---------------------------------------------------------------------------
# Noise: per-string channel duplicates and identity fields
# ---------------------------------------------------------------------------

PER_CHANNEL_PREFIXES: tuple[str, ...] = (
    "iPv",
    "uPv",
    "pow",
    "mpptIpv",
    "mpptUpv",
    "mpptPow",
)
"""Per-input-channel current/voltage/power field prefixes."""

PER_CHANNEL_PATTERN = re.compile(
    r"^(?:{prefixes})(?:[1-9]|[1-3][0-9])(?:Str|Unit)?$".format(
        prefixes="|".join(sorted(PER_CHANNEL_PREFIXES, key=len, reverse=True))
    )
)
"""Matches indexed channels 1..39 and their unit companions."""

SECRET_FIELDS: frozenset[str] = frozenset({"sn", "sno", "userId"})
"""Identity fields that must never reach any output."""

IDENTIFIER_FIELDS: frozenset[str] = frozenset({"id", "stationId", "dataTimestamp"})
"""Numeric identifiers that are not measurements.

The device id is already the series label and ``dataTimestamp`` is the
observation time, so neither becomes a raw gauge.
"""

UNIT_SUFFIXES: tuple[str, ...] = ("Str", "Unit")
"""Companion-field suffixes that carry a unit string for the base field."""


def is_per_channel(field: str) -> bool:
    return PER_CHANNEL_PATTERN.match(field) is not None

"""
Unit catalog — the static table every conversion reads from.

Each category names a conversion family and an ordered list of units.
Factors convert one of the unit into the category's base unit:

    Length          m
    Mass            kg
    Temperature     °C   (affine, explicit formulas)
    Time            s
    Pressure        Pa
    Area            m²
    Volume          m³
    Energy          J
    Speed           m/s
    Fuel Economy    km/L (reciprocal; higher is better)
    Data Storage    B
    Data Transfer   bps
    Bitcoin         BTC

The table is built once at import and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

INVERSE_CONSUMPTION = "inverse_consumption"


class Family(str, Enum):
    LINEAR = "linear"
    AFFINE = "affine"
    RECIPROCAL = "reciprocal"


@dataclass(frozen=True)
class Unit:
    """A single unit within a category."""
    name: str
    symbol: str
    factor: float = 1.0
    kind: str | None = None          # INVERSE_CONSUMPTION for L/100km-style units
    to_base: Callable[[float], float] | None = None
    from_base: Callable[[float], float] | None = None

    @property
    def is_reciprocal(self) -> bool:
        return self.kind == INVERSE_CONSUMPTION

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "factor": self.factor,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class Category:
    name: str
    family: Family
    units: tuple[Unit, ...]

    def find(self, symbol: str) -> Unit | None:
        for unit in self.units:
            if unit.symbol == symbol:
                return unit
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "family": self.family.value,
            "units": [u.to_dict() for u in self.units],
        }


def _linear(name: str, units: list[Unit]) -> Category:
    return Category(name=name, family=Family.LINEAR, units=tuple(units))


_TIME_UNITS = sorted(
    [
        Unit("Millisecond", "ms", 0.001),
        Unit("Second", "s", 1),
        Unit("Minute", "min", 60),
        Unit("Hour", "hr", 3600),
        Unit("Day", "day", 86400),
        Unit("Year", "yr", 31557600),
    ],
    key=lambda u: u.factor,
)

_CATEGORIES: tuple[Category, ...] = (
    _linear("Length", [
        Unit("Meter", "m", 1),
        Unit("Kilometer", "km", 1000),
        Unit("Centimeter", "cm", 0.01),
        Unit("Millimeter", "mm", 0.001),
        Unit("Mile", "mi", 1609.34),
        Unit("Foot", "ft", 0.3048),
        Unit("Inch", "in", 0.0254),
    ]),
    _linear("Mass", [
        Unit("Kilogram", "kg", 1),
        Unit("Gram", "g", 0.001),
        Unit("Milligram", "mg", 0.000001),
        Unit("Metric Ton", "t", 1000),
        Unit("Pound", "lb", 0.453592),
        Unit("Ounce", "oz", 0.0283495),
    ]),
    Category(
        name="Temperature",
        family=Family.AFFINE,
        units=(
            Unit("Celsius", "°C", to_base=lambda c: c, from_base=lambda c: c),
            Unit(
                "Fahrenheit", "°F",
                to_base=lambda f: (f - 32) * (5 / 9),
                from_base=lambda c: c * (9 / 5) + 32,
            ),
            Unit(
                "Kelvin", "K",
                to_base=lambda k: k - 273.15,
                from_base=lambda c: c + 273.15,
            ),
        ),
    ),
    _linear("Time", _TIME_UNITS),
    _linear("Pressure", [
        Unit("Pascal", "Pa", 1),
        Unit("Kilopascal", "kPa", 1000),
        Unit("Bar", "bar", 100000),
        Unit("Atmosphere", "atm", 101325),
        Unit("Pound per square inch", "psi", 6894.76),
    ]),
    _linear("Area", [
        Unit("Square Meter", "m²", 1),
        Unit("Square Centimeter", "cm²", 0.0001),
        Unit("Square Foot", "ft²", 0.092903),
        Unit("Hectare", "ha", 10000),
        Unit("Acre", "acre", 4046.86),
    ]),
    _linear("Volume", [
        Unit("Cubic Meter", "m³", 1),
        Unit("Cubic Centimeter", "cm³", 1e-6),
        Unit("Liter", "L", 0.001),
        Unit("Milliliter", "mL", 1e-6),
        Unit("Gallon (US)", "gal", 0.00378541),
        Unit("Cubic Foot", "ft³", 0.0283168),
    ]),
    _linear("Energy", [
        Unit("Joule", "J", 1),
        Unit("Kilojoule", "kJ", 1000),
        Unit("Calorie", "cal", 4.184),
        Unit("Kilocalorie (food)", "kcal", 4184),
        Unit("Kilowatt Hour", "kWh", 3.6e6),
        Unit("British Thermal Unit", "BTU", 1055.06),
    ]),
    _linear("Speed", [
        Unit("Meter per second", "m/s", 1),
        Unit("Kilometer per hour", "km/h", 1 / 3.6),
        Unit("Mile per hour", "mph", 0.44704),
    ]),
    Category(
        name="Fuel Economy",
        family=Family.RECIPROCAL,
        units=(
            Unit("Kilometer per Liter", "km/L", 1),
            Unit("Liter per 100 kilometers", "L/100km", 100, kind=INVERSE_CONSUMPTION),
            Unit("Mile per Gallon (US)", "MPG (US)", 0.425144),
            Unit("Mile per Gallon (UK)", "MPG (UK)", 0.354006),
        ),
    ),
    _linear("Data Storage", [
        Unit("Byte", "B", 1),
        Unit("Kilobyte", "KB", 1024),
        Unit("Megabyte", "MB", 1024 ** 2),
        Unit("Gigabyte", "GB", 1024 ** 3),
        Unit("Terabyte", "TB", 1024 ** 4),
    ]),
    _linear("Data Transfer Rate", [
        Unit("Bits per second", "bps", 1),
        Unit("Kilobits per second", "Kbps", 1000),
        Unit("Megabits per second", "Mbps", 1e6),
        Unit("Gigabits per second", "Gbps", 1e9),
        Unit("Bytes per second", "B/s", 8),
        Unit("Kilobytes per second", "KB/s", 8 * 1000),
        Unit("Megabytes per second", "MB/s", 8 * 1e6),
    ]),
    _linear("Bitcoin", [
        Unit("Bitcoin", "BTC", 1),
        Unit("Satoshi", "sat", 1e-8),
    ]),
)

CATALOG: dict[str, Category] = {c.name: c for c in _CATEGORIES}


def list_categories() -> list[str]:
    """Category names in table order."""
    return list(CATALOG)


def get_category(category: str) -> Category | None:
    return CATALOG.get(category)


def lookup(category: str) -> tuple[Unit, ...] | None:
    """Ordered units for a category, or None when the category is unknown."""
    cat = CATALOG.get(category)
    if cat is None:
        return None
    return cat.units


def find_unit(category: str, symbol: str) -> Unit | None:
    """Unit with the given symbol, or None when category or symbol is unknown."""
    cat = CATALOG.get(category)
    if cat is None:
        return None
    return cat.find(symbol)

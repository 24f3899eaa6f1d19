"""
Named quick-pick conversions and per-category default unit pairs.
"""

from __future__ import annotations

from dataclasses import dataclass

from swapunits.units.catalog import find_unit, lookup

MAX_PRESETS = 15
MAX_PER_CATEGORY = 2
PINNED_PRESET = ("Bitcoin", "Bitcoin to Satoshi")
PINNED_POSITION = 4
REQUIRED_PRESET = ("Fuel Economy", "km/L to MPG (UK)")


@dataclass(frozen=True)
class Preset:
    category: str
    from_unit: str
    to_unit: str
    name: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.category, self.name)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "from_unit": self.from_unit,
            "to_unit": self.to_unit,
            "name": self.name,
        }


ALL_PRESETS: tuple[Preset, ...] = (
    Preset("Length", "m", "ft", "Meter to Feet"),
    Preset("Length", "km", "mi", "Kilometer to Miles"),
    Preset("Length", "in", "cm", "Inches to Centimeters"),
    Preset("Mass", "kg", "lb", "Kilograms to Pounds"),
    Preset("Mass", "lb", "kg", "Pounds to Kilograms"),
    Preset("Mass", "g", "oz", "Grams to Ounces"),
    Preset("Temperature", "°C", "°F", "Celsius to Fahrenheit"),
    Preset("Temperature", "°F", "°C", "Fahrenheit to Celsius"),
    Preset("Time", "hr", "min", "Hours to Minutes"),
    Preset("Time", "s", "ms", "Seconds to Milliseconds"),
    Preset("Pressure", "psi", "kPa", "PSI to Kilopascals"),
    Preset("Pressure", "bar", "psi", "Bar to PSI"),
    Preset("Pressure", "Pa", "atm", "Pascals to Atmospheres"),
    Preset("Pressure", "atm", "Pa", "Atmospheres to Pascals"),
    Preset("Area", "m²", "ft²", "Square Meters to Square Feet"),
    Preset("Area", "acre", "m²", "Acres to Square Meters"),
    Preset("Volume", "L", "gal", "Liters to Gallons (US)"),
    Preset("Volume", "mL", "L", "Milliliters to Liters"),
    Preset("Energy", "kWh", "BTU", "Kilowatt Hours to BTU"),
    Preset("Energy", "J", "cal", "Joules to Calories"),
    Preset("Speed", "km/h", "mph", "km/h to mph"),
    Preset("Speed", "m/s", "km/h", "m/s to km/h"),
    Preset("Fuel Economy", "MPG (US)", "km/L", "MPG (US) to km/L"),
    Preset("Fuel Economy", "L/100km", "MPG (US)", "L/100km to MPG (US)"),
    Preset("Fuel Economy", "km/L", "MPG (UK)", "km/L to MPG (UK)"),
    Preset("Data Storage", "GB", "MB", "Gigabytes to Megabytes"),
    Preset("Data Storage", "TB", "GB", "Terabytes to Gigabytes"),
    Preset("Data Transfer Rate", "Mbps", "MB/s", "Mbps to MB/s"),
    Preset("Data Transfer Rate", "Gbps", "Mbps", "Gbps to Mbps"),
    Preset("Bitcoin", "BTC", "sat", "Bitcoin to Satoshi"),
    Preset("Bitcoin", "sat", "BTC", "Satoshi to Bitcoin"),
)

CATEGORY_ORDER: tuple[str, ...] = (
    "Length", "Mass", "Temperature", "Time", "Bitcoin",
    "Pressure", "Area", "Volume", "Energy", "Speed",
    "Fuel Economy", "Data Storage", "Data Transfer Rate",
)

DEFAULT_PAIRS: dict[str, tuple[str, str]] = {
    "Length": ("m", "ft"),
    "Mass": ("kg", "g"),
    "Temperature": ("°C", "°F"),
    "Time": ("s", "ms"),
    "Pressure": ("Pa", "kPa"),
    "Area": ("m²", "ft²"),
    "Volume": ("L", "mL"),
    "Energy": ("J", "kJ"),
    "Speed": ("m/s", "km/h"),
    "Fuel Economy": ("km/L", "MPG (US)"),
    "Data Storage": ("GB", "MB"),
    "Data Transfer Rate": ("Mbps", "MB/s"),
    "Bitcoin": ("BTC", "sat"),
}


def _order(category: str) -> int:
    try:
        return CATEGORY_ORDER.index(category)
    except ValueError:
        return len(CATEGORY_ORDER)


def _is_valid(preset: Preset) -> bool:
    return (
        find_unit(preset.category, preset.from_unit) is not None
        and find_unit(preset.category, preset.to_unit) is not None
    )


def get_presets(limit: int = MAX_PRESETS) -> list[Preset]:
    """
    Balanced preset list for the quick-pick panel.

    One preset per category first, then a second per category while there
    is room. "Bitcoin to Satoshi" is pinned near the top and
    "km/L to MPG (UK)" is always present.
    """
    valid = [p for p in ALL_PRESETS if _is_valid(p)]
    ordered = sorted(valid, key=lambda p: _order(p.category))
    by_key = {p.key: p for p in valid}

    chosen: list[Preset] = []
    counts: dict[str, int] = {}

    for category in CATEGORY_ORDER:
        if len(chosen) >= limit:
            break
        first = next((p for p in ordered if p.category == category), None)
        if first is not None:
            chosen.append(first)
            counts[category] = counts.get(category, 0) + 1

    for preset in ordered:
        if len(chosen) >= limit:
            break
        if preset in chosen or counts.get(preset.category, 0) >= MAX_PER_CATEGORY:
            continue
        chosen.append(preset)
        counts[preset.category] = counts.get(preset.category, 0) + 1

    pinned = by_key.get(PINNED_PRESET)
    if pinned is not None:
        chosen = [p for p in chosen if p.key != PINNED_PRESET]
        if len(chosen) >= PINNED_POSITION:
            chosen.insert(PINNED_POSITION, pinned)
        else:
            chosen.append(pinned)

    required = by_key.get(REQUIRED_PRESET)
    if required is not None and required not in chosen:
        if len(chosen) < limit:
            chosen.append(required)
        else:
            _replace_for(chosen, counts, required)

    chosen.sort(key=lambda p: _order(p.category))

    seen: set[tuple[str, str]] = set()
    unique = []
    for preset in chosen:
        if preset.key not in seen:
            seen.add(preset.key)
            unique.append(preset)
    return unique[:limit]


def _replace_for(chosen: list[Preset], counts: dict[str, int], incoming: Preset):
    """Swap out the last second-of-its-category entry for incoming."""
    protected = {PINNED_PRESET[0], incoming.category}
    for i in range(len(chosen) - 1, -1, -1):
        category = chosen[i].category
        if counts.get(category, 0) <= 1 or category in protected:
            continue
        first_index = next(j for j, p in enumerate(chosen) if p.category == category)
        if i != first_index:
            chosen[i] = incoming
            counts[category] -= 1
            counts[incoming.category] = counts.get(incoming.category, 0) + 1
            return
    if chosen and chosen[-1].category != PINNED_PRESET[0]:
        counts[chosen[-1].category] = counts.get(chosen[-1].category, 1) - 1
        chosen[-1] = incoming
        counts[incoming.category] = counts.get(incoming.category, 0) + 1


def default_pair(category: str) -> tuple[str, str] | None:
    """
    Unit pair selected when the user switches to a category.
    Falls back to the first two catalog units; None for unknown categories.
    """
    units = lookup(category)
    if not units:
        return None
    symbols = [u.symbol for u in units]

    from_unit, to_unit = DEFAULT_PAIRS.get(category, (symbols[0], ""))
    if from_unit not in symbols:
        from_unit = symbols[0]
    if to_unit not in symbols or to_unit == from_unit:
        to_unit = next((s for s in symbols if s != from_unit), from_unit)
    return from_unit, to_unit

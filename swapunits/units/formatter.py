"""
Number formatting for display.

Two modes, normal and scientific. Scientific notation is forced when a
value's magnitude would make fixed notation meaningless, whatever the
caller asked for; FormatOutcome.scientific_reason records which of the
two put it there so the UI policy can react.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

# Magnitude thresholds for forced scientific notation. Keep these exact.
UPPER_THRESHOLD = 1e9
LOWER_THRESHOLD = 1e-7
FRACTION_DIGITS = 7

# History list uses a tighter, shorter rendering
HISTORY_UPPER_THRESHOLD = 1e7
HISTORY_LOWER_THRESHOLD = 1e-5
HISTORY_MANTISSA_DIGITS = 4
HISTORY_FRACTION_DIGITS = 5

PLACEHOLDER = "-"


class NumberFormat(str, Enum):
    NORMAL = "normal"
    SCIENTIFIC = "scientific"


class ScientificReason(str, Enum):
    MAGNITUDE = "magnitude"
    USER_CHOICE = "user_choice"


@dataclass(frozen=True)
class FormatOutcome:
    formatted_string: str
    actual_format_used: NumberFormat
    scientific_reason: ScientificReason | None = None

    def to_dict(self) -> dict:
        return {
            "formatted": self.formatted_string,
            "actual_format": self.actual_format_used.value,
            "scientific_reason": self.scientific_reason.value if self.scientific_reason else None,
        }


def _as_float(value) -> float:
    """Ints (including ones past float range) become floats."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def is_forced_by_magnitude(value: float, upper: float = UPPER_THRESHOLD, lower: float = LOWER_THRESHOLD) -> bool:
    value = _as_float(value)
    magnitude = abs(value)
    return magnitude > upper or (magnitude < lower and value != 0)


def _scientific(value: float, digits: int) -> str:
    """'1.2300000e+06' -> '1.23E+6'"""
    value = _as_float(value)
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    if "." in mantissa:
        mantissa = mantissa.rstrip("0").rstrip(".")
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}E{sign}{abs(exp)}"


def _grouped(value: float, digits: int) -> str:
    """Round, then render with thousands separators and no trailing zeros."""
    rounded = round(_as_float(value), digits)
    if rounded.is_integer():
        return f"{int(rounded):,}"
    return f"{rounded:,.{digits}f}".rstrip("0").rstrip(".")


def format_number(value: float, requested_format: NumberFormat | str = NumberFormat.NORMAL) -> FormatOutcome:
    """
    Render a conversion result.

    Non-finite values render as '-'. Scientific is used when requested or
    when forced by magnitude; a forced reason is reported even if the user
    also asked for scientific.
    """
    requested = NumberFormat(requested_format)
    value = _as_float(value)

    if not math.isfinite(value):
        return FormatOutcome(PLACEHOLDER, requested, None)

    forced = is_forced_by_magnitude(value)
    if requested is NumberFormat.SCIENTIFIC or forced:
        reason = ScientificReason.MAGNITUDE if forced else ScientificReason.USER_CHOICE
        return FormatOutcome(_scientific(value, FRACTION_DIGITS), NumberFormat.SCIENTIFIC, reason)

    return FormatOutcome(_grouped(value, FRACTION_DIGITS), NumberFormat.NORMAL, None)


def format_source_value(value: float) -> str:
    """Echo of the input value. Ignores the result-format preference."""
    return format_number(value, NumberFormat.NORMAL).formatted_string


def format_history_number(value: float) -> str:
    value = _as_float(value)
    if not math.isfinite(value):
        return PLACEHOLDER
    if is_forced_by_magnitude(value, HISTORY_UPPER_THRESHOLD, HISTORY_LOWER_THRESHOLD):
        return _scientific(value, HISTORY_MANTISSA_DIGITS)
    return _grouped(value, HISTORY_FRACTION_DIGITS)

"""
Conversion engine.

convert() is evaluated on every keystroke, so it never raises for bad
input: every problem comes back as a ConversionFailure value.

Families:
  LINEAR      value * from.factor / to.factor
  AFFINE      normalise to Celsius, then expand to the target
  RECIPROCAL  inverse-consumption units are reciprocated on the way in
              and on the way out; reciprocating zero yields +inf
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real

from swapunits.units.catalog import Category, Family, Unit, get_category

logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNIT_NOT_FOUND = "unit_not_found"
    NON_FINITE_RESULT = "non_finite_result"


@dataclass(frozen=True)
class ConversionResult:
    value: float
    unit: str

    ok = True


@dataclass(frozen=True)
class ConversionFailure:
    reason: FailureReason
    detail: str = ""

    ok = False


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _convert_linear(value: float, src: Unit, dst: Unit) -> tuple[float, bool]:
    return value * src.factor / dst.factor, False


def _convert_affine(value: float, src: Unit, dst: Unit) -> tuple[float, bool]:
    celsius = src.to_base(value) if src.to_base else value
    return (dst.from_base(celsius) if dst.from_base else celsius), False


def _convert_reciprocal(value: float, src: Unit, dst: Unit) -> tuple[float, bool]:
    """Returns (result, defined_infinity)."""
    if src.is_reciprocal:
        if value == 0:
            base = math.inf
            if not dst.is_reciprocal:
                return math.inf, True
        else:
            base = src.factor / value
    else:
        base = value * src.factor

    if dst.is_reciprocal:
        if base == 0:
            return math.inf, True
        return dst.factor / base, False
    return base / dst.factor, False


_DISPATCH = {
    Family.LINEAR: _convert_linear,
    Family.AFFINE: _convert_affine,
    Family.RECIPROCAL: _convert_reciprocal,
}


def convert(category: str, from_symbol: str, to_symbol: str, value) -> ConversionResult | ConversionFailure:
    """
    Convert value from one unit to another within a category.

    Returns a ConversionResult on success, or a ConversionFailure carrying
    one of INVALID_INPUT, UNIT_NOT_FOUND, NON_FINITE_RESULT.
    """
    try:
        number = float(value) if _is_number(value) else math.nan
    except OverflowError:
        number = math.nan
    if not math.isfinite(number):
        return ConversionFailure(FailureReason.INVALID_INPUT, f"not a finite number: {value!r}")

    cat: Category | None = get_category(category)
    if cat is None:
        return ConversionFailure(FailureReason.UNIT_NOT_FOUND, f"unknown category: {category!r}")

    src = cat.find(from_symbol)
    dst = cat.find(to_symbol)
    if src is None:
        return ConversionFailure(FailureReason.UNIT_NOT_FOUND, f"unknown unit {from_symbol!r} in {category}")
    if dst is None:
        return ConversionFailure(FailureReason.UNIT_NOT_FOUND, f"unknown unit {to_symbol!r} in {category}")

    result, defined_infinity = _DISPATCH[cat.family](number, src, dst)

    if defined_infinity:
        return ConversionResult(value=math.inf, unit=dst.symbol)
    if not math.isfinite(result):
        logger.debug("Non-finite result converting %r %s -> %s (%s)", value, from_symbol, to_symbol, category)
        return ConversionFailure(FailureReason.NON_FINITE_RESULT, f"{value!r} {from_symbol} overflows {to_symbol}")
    return ConversionResult(value=result, unit=dst.symbol)

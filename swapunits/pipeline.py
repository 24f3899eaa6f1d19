"""
Conversion pipeline — one pass per input event.

    ConversionRequest ─► parse value ─► convert ─► format result/source ─► reconcile

The caller owns all UI state and hands it in on every call; nothing is
kept between calls.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from swapunits.units.engine import ConversionFailure, ConversionResult, FailureReason, convert
from swapunits.units.formatter import (
    PLACEHOLDER,
    FormatOutcome,
    NumberFormat,
    format_number,
    format_source_value,
)
from swapunits.units.policy import PolicyDecision, reconcile, reset_for_selection

# "1,234,567.89": commas only between groups of three integer digits
_GROUPED_NUMBER = re.compile(r"[+-]?\d{1,3}(?:,\d{3})+(?:\.\d*)?")


def parse_value(raw) -> float | None:
    """
    Numbers pass through; numeric strings are parsed. Anything else is None.

    NaN is never a value. Commas are accepted only as thousands separators
    and underscores are rejected, so "1,2,3" and "1_000" are not numbers.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
        return None if math.isnan(value) else value
    if isinstance(raw, str):
        cleaned = raw.strip()
        if not cleaned or "_" in cleaned:
            return None
        if "," in cleaned:
            if not _GROUPED_NUMBER.fullmatch(cleaned):
                return None
            cleaned = cleaned.replace(",", "")
        try:
            value = float(cleaned)
        except ValueError:
            return None
        return None if math.isnan(value) else value
    return None


def json_number(value: float | None):
    """JSON has no inf/nan literals; render those as strings."""
    if value is None or math.isfinite(value):
        return value
    if math.isnan(value):
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


@dataclass(frozen=True)
class ConversionRequest:
    category: str
    from_unit: str
    to_unit: str
    value: object = 1
    number_format: NumberFormat = NumberFormat.NORMAL
    selection_changed: bool = False


@dataclass(frozen=True)
class ConversionView:
    request: ConversionRequest
    outcome: ConversionResult | ConversionFailure
    source_value: float | None
    source_display: str
    result: FormatOutcome
    policy: PolicyDecision = field(default_factory=reset_for_selection)

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def to_dict(self) -> dict:
        data = {
            "ok": self.ok,
            "category": self.request.category,
            "from_unit": self.request.from_unit,
            "to_unit": self.request.to_unit,
            "from_value": json_number(self.source_value),
            "from_display": self.source_display,
            **self.result.to_dict(),
            "policy": self.policy.to_dict(),
        }
        if isinstance(self.outcome, ConversionResult):
            data["result"] = {"value": json_number(self.outcome.value), "unit": self.outcome.unit}
        else:
            data["error"] = {"reason": self.outcome.reason.value, "detail": self.outcome.detail}
        return data


def run_conversion(request: ConversionRequest) -> ConversionView:
    preference = NumberFormat(request.number_format)
    if request.selection_changed:
        preference = reset_for_selection().next_preference

    value = parse_value(request.value)
    if value is None:
        outcome = ConversionFailure(FailureReason.INVALID_INPUT, f"not a number: {request.value!r}")
    else:
        outcome = convert(request.category, request.from_unit, request.to_unit, value)

    if isinstance(outcome, ConversionResult):
        formatted = format_number(outcome.value, preference)
        policy = reconcile(formatted.actual_format_used, formatted.scientific_reason, preference)
    else:
        formatted = FormatOutcome(PLACEHOLDER, preference, None)
        # No result on screen: normal stays selectable
        policy = PolicyDecision(preference, False)

    source_display = format_source_value(value) if value is not None else PLACEHOLDER

    return ConversionView(
        request=request,
        outcome=outcome,
        source_value=value,
        source_display=source_display,
        result=formatted,
        policy=policy,
    )

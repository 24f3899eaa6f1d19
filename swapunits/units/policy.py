"""
Display/selection policy.

Decides, after each conversion, which format option the UI should show as
selected and whether the "normal" option must be disabled. Magnitude
forcing is a property of the current result only; nothing here is sticky.
"""

from __future__ import annotations

from dataclasses import dataclass

from swapunits.units.formatter import NumberFormat, ScientificReason


@dataclass(frozen=True)
class PolicyDecision:
    next_preference: NumberFormat
    normal_option_disabled: bool

    def to_dict(self) -> dict:
        return {
            "next_preference": self.next_preference.value,
            "normal_option_disabled": self.normal_option_disabled,
        }


def reconcile(
    actual_format: NumberFormat | str,
    reason: ScientificReason | str | None,
    current_preference: NumberFormat | str,
) -> PolicyDecision:
    actual = NumberFormat(actual_format)
    preference = NumberFormat(current_preference)
    reason = ScientificReason(reason) if reason is not None else None

    forced = actual is NumberFormat.SCIENTIFIC and reason is ScientificReason.MAGNITUDE
    if forced:
        # Flip the radio so it matches what is on screen
        return PolicyDecision(NumberFormat.SCIENTIFIC, True)
    return PolicyDecision(preference, False)


def reset_for_selection() -> PolicyDecision:
    """New unit pair or category: magnitude unknown until the first conversion."""
    return PolicyDecision(NumberFormat.NORMAL, False)

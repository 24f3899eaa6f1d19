from swapunits.units.catalog import (
    CATALOG,
    Category,
    Family,
    Unit,
    find_unit,
    get_category,
    list_categories,
    lookup,
)
from swapunits.units.engine import ConversionFailure, ConversionResult, FailureReason, convert
from swapunits.units.formatter import (
    FormatOutcome,
    NumberFormat,
    ScientificReason,
    format_history_number,
    format_number,
    format_source_value,
)
from swapunits.units.policy import PolicyDecision, reconcile, reset_for_selection

__all__ = [
    "CATALOG",
    "Category",
    "Family",
    "Unit",
    "find_unit",
    "get_category",
    "list_categories",
    "lookup",
    "ConversionFailure",
    "ConversionResult",
    "FailureReason",
    "convert",
    "FormatOutcome",
    "NumberFormat",
    "ScientificReason",
    "format_history_number",
    "format_number",
    "format_source_value",
    "PolicyDecision",
    "reconcile",
    "reset_for_selection",
]

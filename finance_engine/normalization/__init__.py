"""Record normalization package."""

from finance_engine.normalization.dates import (
    CENT,
    MalformedAmountError,
    MalformedDateError,
    add_months,
    month_bounds,
    normalize_amount,
    normalize_date,
)

__all__ = [
    "CENT",
    "MalformedAmountError",
    "MalformedDateError",
    "add_months",
    "month_bounds",
    "normalize_amount",
    "normalize_date",
]

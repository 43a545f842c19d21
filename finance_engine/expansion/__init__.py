"""Installment and recurrence expansion package."""

from finance_engine.expansion.expander import (
    FREQUENCY_STEPS,
    ExpansionError,
    TransactionExpander,
    occurrence_date,
    split_installments,
)

__all__ = [
    "FREQUENCY_STEPS",
    "ExpansionError",
    "TransactionExpander",
    "occurrence_date",
    "split_installments",
]

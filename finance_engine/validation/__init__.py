"""Validation package."""

from finance_engine.validation.balance import (
    DEBIT_TYPES,
    BalanceValidator,
    apply_credit,
    apply_debit,
    idempotency_key,
)

__all__ = [
    "DEBIT_TYPES",
    "BalanceValidator",
    "apply_credit",
    "apply_debit",
    "idempotency_key",
]

"""
Installment / Recurrence Expander

Turns one transaction intent into the ordered list of concrete, dated
transactions it represents.

INSTALLMENTS:
- the amount is split in integer cents, the remainder goes to the first
  installment: 1000.00 / 3 -> 333.34, 333.33, 333.33
- one calendar month between installments
- shared total_installments, current_installment 1..N
- no recurring_transaction_id (installments are not a recurrence)

RECURRENCES:
- one transaction per period from the start date
- stops at end_date (inclusive), or after the configured occurrence cap
  when no end date is given
- every occurrence shares one newly minted recurring_transaction_id

Month steps are always computed from the start date and clamped to the
last day of the target month: Jan 31 -> Feb 29 -> Mar 31, never Mar 29.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Union

import structlog

from finance_engine.config import get_settings
from finance_engine.models.records import (
    RecurrenceFrequency,
    Transaction,
    TransactionIntent,
    new_id,
)
from finance_engine.normalization import CENT, add_months, normalize_date


logger = structlog.get_logger(__name__)


# Step per frequency: ("days", n) or ("months", n)
FREQUENCY_STEPS: dict[RecurrenceFrequency, tuple[str, int]] = {
    RecurrenceFrequency.DAILY: ("days", 1),
    RecurrenceFrequency.WEEKLY: ("days", 7),
    RecurrenceFrequency.MONTHLY: ("months", 1),
    RecurrenceFrequency.QUARTERLY: ("months", 3),
    RecurrenceFrequency.SEMI_ANNUAL: ("months", 6),
    RecurrenceFrequency.ANNUAL: ("months", 12),
}


class ExpansionError(ValueError):
    """Raised when an intent cannot be expanded (invalid count, frequency or dates)."""


def split_installments(amount: Decimal, count: int) -> list[Decimal]:
    """
    Split an amount into count cent-exact parts.

    The parts always sum to the amount. The remainder cents go to the first part.
    """
    if count < 1:
        raise ExpansionError(f"Installment count must be positive, got {count}")

    cents = int((amount / CENT).to_integral_value())
    if count > cents:
        raise ExpansionError(f"Cannot split {amount} into {count} installments of at least one cent")

    base, remainder = divmod(cents, count)
    parts = [base] * count
    parts[0] += remainder
    return [Decimal(part) * CENT for part in parts]


def occurrence_date(start: date, frequency: RecurrenceFrequency, index: int) -> date:
    """Date of the index-th occurrence (0 is the start date)."""
    unit, step = FREQUENCY_STEPS[frequency]
    if unit == "days":
        return start + timedelta(days=step * index)
    return add_months(start, step * index)


def _coerce_frequency(frequency: Union[RecurrenceFrequency, str]) -> RecurrenceFrequency:
    try:
        return RecurrenceFrequency(frequency)
    except ValueError as e:
        allowed = ", ".join(f.value for f in RecurrenceFrequency)
        raise ExpansionError(
            f"Unknown recurrence frequency {frequency!r}. Allowed: {allowed}"
        ) from e


class TransactionExpander:
    """
    Expands transaction intents into concrete transactions.

    Only the first generated transaction inherits the intent's settlement
    (is_paid / paid_date). Later occurrences are future obligations and
    start out pending.
    """

    def __init__(self, max_occurrences: Optional[int] = None):
        """
        Args:
            max_occurrences: Cap for recurrences without an end date.
                             Defaults to settings.recurrence_max_occurrences.
        """
        if max_occurrences is None:
            max_occurrences = get_settings().recurrence_max_occurrences
        if max_occurrences < 1:
            raise ExpansionError(f"max_occurrences must be at least 1, got {max_occurrences}")
        self._max_occurrences = max_occurrences

    @property
    def max_occurrences(self) -> int:
        return self._max_occurrences

    def _settlement(self, intent: TransactionIntent, index: int) -> dict:
        if index == 0:
            return {"is_paid": intent.is_paid, "paid_date": intent.paid_date}
        return {"is_paid": False, "paid_date": None}

    def expand_installments(
        self,
        intent: TransactionIntent,
        count: int,
    ) -> list[Transaction]:
        """
        Split an intent into monthly installments.

        Raises:
            ExpansionError: If count is not a positive integer
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ExpansionError(f"Installment count must be a positive integer, got {count!r}")

        amounts = split_installments(intent.amount, count)
        transactions = [
            intent.to_transaction(
                id=new_id(),
                amount=amount,
                date=add_months(intent.date, index),
                current_installment=index + 1,
                total_installments=count,
                recurring_transaction_id=None,
                **self._settlement(intent, index),
            )
            for index, amount in enumerate(amounts)
        ]

        logger.debug(
            "installments_expanded",
            count=count,
            amount=str(intent.amount),
            first_date=transactions[0].date.isoformat(),
        )
        return transactions

    def expand_recurrence(
        self,
        intent: TransactionIntent,
        frequency: Union[RecurrenceFrequency, str],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Generate one transaction per period.

        Args:
            intent: The transaction to repeat
            frequency: How often it repeats
            start_date: First occurrence (defaults to the intent date)
            end_date: Last possible occurrence, inclusive. Without it the
                      series stops after max_occurrences.

        Raises:
            ExpansionError: If the frequency is unknown or end_date < start_date
        """
        frequency = _coerce_frequency(frequency)
        start = normalize_date(start_date) if start_date is not None else intent.date
        end = normalize_date(end_date) if end_date is not None else None

        if end is not None and end < start:
            raise ExpansionError(f"End date {end} is before start date {start}")

        recurring_id = new_id()
        transactions = []

        index = 0
        while True:
            if end is None and index >= self._max_occurrences:
                break
            when = occurrence_date(start, frequency, index)
            if end is not None and when > end:
                break
            transactions.append(intent.to_transaction(
                id=new_id(),
                date=when,
                recurring_transaction_id=recurring_id,
                **self._settlement(intent, index),
            ))
            index += 1

        logger.debug(
            "recurrence_expanded",
            frequency=frequency.value,
            count=len(transactions),
            recurring_transaction_id=recurring_id,
        )
        return transactions

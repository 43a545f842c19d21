"""
Flow Aggregator

Sums income and expense amounts per period, per category and per
account or card.

DESIGN DECISION: Whether investment outflows count as "expense" is an
explicit argument of every expense total. Screens disagree on this:
the summary dashboard subtracts investment from expense, the transaction
history does not. The engine refuses to pick one silently.

TRANSFER and INVOICE_PAYMENT never count as income or expense.
A transfer moves money between own accounts, and an invoice payment
settles card expenses that were already counted when they were made.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from finance_engine.models.records import (
    Transaction,
    TransactionCategory,
    TransactionType,
)
from finance_engine.models.views import (
    ZERO,
    CashFlowPoint,
    CategoryTotal,
    FlowTotals,
)
from finance_engine.reports.categories import category_label
from finance_engine.reports.periods import bucket_by_month


ExclusionPredicate = Callable[[Transaction], bool]


def is_investment_related(transaction: Transaction) -> bool:
    """True for transactions in the investment category or linked to an equity."""
    return (
        transaction.category == TransactionCategory.INVESTMENT.value
        or transaction.equity_id is not None
    )


def _is_investment_category(transaction: Transaction) -> bool:
    return transaction.category == TransactionCategory.INVESTMENT.value


def _never(transaction: Transaction) -> bool:
    return False


class ExpensePolicy(str, Enum):
    """
    Named choices for what counts as an expense.

    INCLUDE_INVESTMENT: every EXPENSE transaction counts.
    EXCLUDE_INVESTMENT: EXPENSE transactions in the INVESTMENT category
    are treated as money moved into assets, not spent.
    """
    INCLUDE_INVESTMENT = "include_investment"
    EXCLUDE_INVESTMENT = "exclude_investment"

    @property
    def exclusion(self) -> ExclusionPredicate:
        if self == ExpensePolicy.EXCLUDE_INVESTMENT:
            return _is_investment_category
        return _never


PolicyArg = Union[ExpensePolicy, ExclusionPredicate]


def resolve_exclusion(policy: Optional[PolicyArg]) -> ExclusionPredicate:
    """Turn a policy or caller predicate into an exclusion predicate."""
    if policy is None:
        return _never
    if isinstance(policy, ExpensePolicy):
        return policy.exclusion
    if callable(policy):
        return policy
    raise TypeError(f"expense_policy must be an ExpensePolicy or a callable, got {policy!r}")


def _require_policy(policy: Optional[PolicyArg]) -> ExclusionPredicate:
    if policy is None:
        raise ValueError(
            "expense_policy is required: pass ExpensePolicy.INCLUDE_INVESTMENT, "
            "ExpensePolicy.EXCLUDE_INVESTMENT or an exclusion predicate"
        )
    return resolve_exclusion(policy)


def aggregate_flow(
    records: Iterable[Transaction],
    *,
    expense_policy: PolicyArg,
) -> FlowTotals:
    """
    Sum income and expense of a record set.

    Args:
        records: Transactions (typically one month bucket's records)
        expense_policy: What to leave out of the expense total

    Returns:
        FlowTotals with income, expense and the derived net
    """
    excluded = _require_policy(expense_policy)

    income = ZERO
    expense = ZERO
    for tx in records:
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        elif tx.type == TransactionType.EXPENSE and not excluded(tx):
            expense += tx.amount

    return FlowTotals(income=income, expense=expense)


def aggregate_by_category(
    records: Iterable[Transaction],
    type_filter: TransactionType = TransactionType.EXPENSE,
    *,
    expense_policy: Optional[PolicyArg] = None,
) -> list[CategoryTotal]:
    """
    Totals per category, sorted descending by total.

    Ties keep the order in which categories were first seen.
    The exclusion predicate only applies to EXPENSE breakdowns.
    """
    excluded = resolve_exclusion(expense_policy)
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for tx in records:
        if tx.type != type_filter:
            continue
        if type_filter == TransactionType.EXPENSE and excluded(tx):
            continue
        totals[tx.category] += tx.amount

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryTotal(category=key, label=category_label(key), total=total)
        for key, total in ranked
    ]


def aggregate_by_account(
    records: Iterable[Transaction],
    type_filter: TransactionType = TransactionType.EXPENSE,
) -> dict[str, Decimal]:
    """Total per account id for one transaction type."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for tx in records:
        if tx.type == type_filter and tx.account_id:
            totals[tx.account_id] += tx.amount
    return dict(totals)


def aggregate_by_card(
    records: Iterable[Transaction],
    type_filter: TransactionType = TransactionType.EXPENSE,
) -> dict[str, Decimal]:
    """Total per card id for one transaction type."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for tx in records:
        if tx.type == type_filter and tx.card_id:
            totals[tx.card_id] += tx.amount
    return dict(totals)


def cash_flow_series(
    records: Iterable[Transaction],
    reference_date: date,
    window_size: Optional[int] = None,
    *,
    expense_policy: PolicyArg,
) -> list[CashFlowPoint]:
    """Income, expense and net per month, oldest first."""
    series = []
    for bucket in bucket_by_month(records, reference_date, window_size):
        flow = aggregate_flow(bucket.records, expense_policy=expense_policy)
        series.append(CashFlowPoint(
            month_label=bucket.month_label,
            period_start=bucket.period_start,
            income=flow.income,
            expense=flow.expense,
            net=flow.net,
        ))
    return series


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Percent change from previous to current, 0 when previous is not positive."""
    if previous <= 0:
        return 0.0
    return float((current - previous) / previous * 100)

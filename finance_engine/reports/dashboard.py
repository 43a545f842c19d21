"""
Dashboard Summary

KPI cards and charts of the summary screen, built in one pass from
account, card, transaction and equity snapshots.
"""

from datetime import date
from typing import Iterable, Optional

from finance_engine.config import EngineSettings, get_settings
from finance_engine.models.records import (
    Account,
    AccountType,
    CreditCard,
    Equity,
    Transaction,
    TransactionType,
)
from finance_engine.models.views import ZERO, CardUsage, DashboardSummary
from finance_engine.normalization import add_months
from finance_engine.reports.equity import equity_composition, equity_evolution
from finance_engine.reports.flows import (
    PolicyArg,
    aggregate_by_category,
    aggregate_flow,
    cash_flow_series,
    percent_change,
)


def _same_month(value: date, reference: date) -> bool:
    return value.year == reference.year and value.month == reference.month


def card_usage(cards: Iterable[CreditCard]) -> list[CardUsage]:
    """Used and available limit per card."""
    return [
        CardUsage(
            card_id=card.id,
            name=card.name,
            used=card.limit_used,
            available=card.available,
            limit=card.limit,
        )
        for card in cards
    ]


def upcoming_bills(
    transactions: Iterable[Transaction],
    as_of: date,
    days: int,
    limit: int,
) -> list[Transaction]:
    """Unpaid expenses due within the next `days` days, soonest first."""
    due = [
        tx for tx in transactions
        if tx.type == TransactionType.EXPENSE
        and not tx.is_paid
        and 0 <= (tx.date - as_of).days <= days
    ]
    due.sort(key=lambda tx: tx.date)
    return due[:limit]


def recent_transactions(transactions: Iterable[Transaction], limit: int) -> list[Transaction]:
    """Newest transactions first."""
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)[:limit]


def build_dashboard_summary(
    accounts: Iterable[Account],
    cards: Iterable[CreditCard],
    transactions: Iterable[Transaction],
    equities: Iterable[Equity],
    *,
    as_of: date,
    expense_policy: PolicyArg,
    settings: Optional[EngineSettings] = None,
) -> DashboardSummary:
    """
    Build the summary dashboard.

    Args:
        accounts, cards, transactions, equities: Snapshots from the data store
        as_of: The day the dashboard is built for
        expense_policy: Whether investment outflows count as expense
        settings: Overrides the cached engine settings
    """
    settings = settings or get_settings()
    accounts = list(accounts)
    transactions = list(transactions)
    equities = list(equities)

    total_balance = sum((a.balance for a in accounts), ZERO)
    wallet_balance = sum(
        (a.balance for a in accounts if a.type == AccountType.WALLET),
        ZERO,
    )

    previous_month = add_months(as_of, -1)
    current_txs = [tx for tx in transactions if _same_month(tx.date, as_of)]
    previous_txs = [tx for tx in transactions if _same_month(tx.date, previous_month)]

    current = aggregate_flow(current_txs, expense_policy=expense_policy)
    previous = aggregate_flow(previous_txs, expense_policy=expense_policy)

    return DashboardSummary(
        as_of=as_of,
        total_balance=total_balance,
        wallet_balance=wallet_balance,
        bank_balance=total_balance - wallet_balance,
        current_income=current.income,
        current_expense=current.expense,
        previous_income=previous.income,
        previous_expense=previous.expense,
        income_change_pct=percent_change(current.income, previous.income),
        expense_change_pct=percent_change(current.expense, previous.expense),
        cash_flow=cash_flow_series(
            transactions, as_of, settings.window_months, expense_policy=expense_policy
        ),
        equity_evolution=equity_evolution(equities, as_of, settings.window_months),
        equity_composition=equity_composition(equities),
        card_usage=card_usage(cards),
        upcoming_bills=upcoming_bills(
            transactions, as_of, settings.upcoming_bills_days, settings.upcoming_bills_limit
        ),
        expenses_by_category=aggregate_by_category(
            current_txs, TransactionType.EXPENSE, expense_policy=expense_policy
        ),
        recent_transactions=recent_transactions(
            transactions, settings.recent_transactions_limit
        ),
    )

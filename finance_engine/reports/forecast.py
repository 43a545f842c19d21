"""
Weekly Cash-Flow Forecast

Groups upcoming transactions into Monday-start weeks and summarizes what
is still to be received and paid.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.config import get_settings
from finance_engine.models.records import Transaction, TransactionType
from finance_engine.models.views import (
    ZERO,
    ForecastSummary,
    ForecastSummaryLine,
    WeeklyForecastPoint,
)
from finance_engine.reports.periods import MONTH_ABBREVIATIONS


def week_start(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def _day_label(value: date) -> str:
    return f"{value.day:02d} {MONTH_ABBREVIATIONS[value.month - 1]}"


def _sum_type(transactions: Iterable[Transaction], tx_type: TransactionType) -> Decimal:
    return sum((tx.amount for tx in transactions if tx.type == tx_type), ZERO)


def build_weekly_series(
    transactions: Iterable[Transaction],
    *,
    week_of: date,
    weeks: Optional[int] = None,
) -> list[WeeklyForecastPoint]:
    """
    Income and expense per week, starting with the week containing week_of.

    The net is split into net_positive and net_negative so a chart can
    stack them in different colors. One of the two is always zero.
    """
    if weeks is None:
        weeks = get_settings().forecast_weeks
    if weeks < 1:
        raise ValueError(f"weeks must be at least 1, got {weeks}")

    transactions = list(transactions)
    base = week_start(week_of)

    series = []
    for index in range(weeks):
        start = base + timedelta(weeks=index)
        end = start + timedelta(days=6)
        in_week = [tx for tx in transactions if start <= tx.date <= end]

        income = _sum_type(in_week, TransactionType.INCOME)
        expense = _sum_type(in_week, TransactionType.EXPENSE)
        net = income - expense

        series.append(WeeklyForecastPoint(
            label=_day_label(start),
            start=start,
            end=end,
            income=income,
            expense=expense,
            net_positive=net if net > 0 else ZERO,
            net_negative=-net if net < 0 else ZERO,
        ))
    return series


def _summary_line(title: str, transactions: list[Transaction]) -> ForecastSummaryLine:
    return ForecastSummaryLine(
        title=title,
        total=sum((tx.amount for tx in transactions), ZERO),
        pending=sum((tx.amount for tx in transactions if not tx.is_paid), ZERO),
        paid=sum((tx.amount for tx in transactions if tx.is_paid), ZERO),
        count=len(transactions),
    )


def forecast_summary(
    transactions: Iterable[Transaction],
    overdue_net: Optional[Decimal] = None,
) -> ForecastSummary:
    """Receivable (income) and payable (expense) totals split by settlement."""
    transactions = list(transactions)
    receivable = [tx for tx in transactions if tx.type == TransactionType.INCOME]
    payable = [tx for tx in transactions if tx.type == TransactionType.EXPENSE]

    return ForecastSummary(
        receivable=_summary_line("A Receber", receivable),
        payable=_summary_line("A Pagar", payable),
        overdue_net=overdue_net,
    )

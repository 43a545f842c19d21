"""
Report builders package.

Pure functions and small builder classes that turn record snapshots
into the derived views consumed by the presentation layer.
"""

from finance_engine.reports.budgets import BudgetComparator, budget_percent
from finance_engine.reports.categories import (
    CATEGORY_LABELS,
    category_label,
    humanize_category,
)
from finance_engine.reports.dashboard import (
    build_dashboard_summary,
    card_usage,
    recent_transactions,
    upcoming_bills,
)
from finance_engine.reports.equity import (
    InvestmentSnapshotBuilder,
    equity_composition,
    equity_evolution,
    gain_pct,
    investment_allocation,
    investment_equities,
)
from finance_engine.reports.flows import (
    ExpensePolicy,
    aggregate_by_account,
    aggregate_by_card,
    aggregate_by_category,
    aggregate_flow,
    cash_flow_series,
    is_investment_related,
    percent_change,
)
from finance_engine.reports.forecast import (
    build_weekly_series,
    forecast_summary,
    week_start,
)
from finance_engine.reports.periods import bucket_by_month, month_label

__all__ = [
    "BudgetComparator",
    "budget_percent",
    "CATEGORY_LABELS",
    "category_label",
    "humanize_category",
    "build_dashboard_summary",
    "card_usage",
    "recent_transactions",
    "upcoming_bills",
    "InvestmentSnapshotBuilder",
    "equity_composition",
    "equity_evolution",
    "gain_pct",
    "investment_allocation",
    "investment_equities",
    "ExpensePolicy",
    "aggregate_by_account",
    "aggregate_by_card",
    "aggregate_by_category",
    "aggregate_flow",
    "cash_flow_series",
    "is_investment_related",
    "percent_change",
    "build_weekly_series",
    "forecast_summary",
    "week_start",
    "bucket_by_month",
    "month_label",
]

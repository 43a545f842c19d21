"""Tests for the dashboard summary and the weekly forecast."""

import pytest
from datetime import date
from decimal import Decimal

from finance_engine.config import EngineSettings
from finance_engine.models import (
    AccountType,
    CreditCard,
    EquityType,
    TransactionCategory,
    TransactionType,
)
from finance_engine.reports.dashboard import (
    build_dashboard_summary,
    card_usage,
    recent_transactions,
    upcoming_bills,
)
from finance_engine.reports.flows import ExpensePolicy
from finance_engine.reports.forecast import (
    build_weekly_series,
    forecast_summary,
    week_start,
)


AS_OF = date(2025, 6, 15)


@pytest.fixture
def snapshot(make_account, make_tx, make_equity):
    accounts = [
        make_account(balance="1000"),
        make_account(id="acc-2", name="Carteira", type=AccountType.WALLET, balance="50"),
    ]
    cards = [CreditCard(id="card-1", name="Nubank", limit="3000", limit_used="1250")]
    transactions = [
        make_tx(type=TransactionType.INCOME, category="SALARY", amount="5000", date=date(2025, 6, 5), is_paid=True),
        make_tx(category="FOOD", amount="400", date=date(2025, 6, 8), is_paid=True),
        make_tx(category=TransactionCategory.INVESTMENT, amount="1000", date=date(2025, 6, 10), is_paid=True),
        make_tx(type=TransactionType.INCOME, category="SALARY", amount="4000", date=date(2025, 5, 5), is_paid=True),
        make_tx(category="FOOD", amount="500", date=date(2025, 5, 12), is_paid=True),
        make_tx(category="HOUSING", amount="1500", date=date(2025, 6, 20)),
        make_tx(category="UTILITIES", amount="200", date=date(2025, 6, 17)),
    ]
    equities = [
        make_equity(value="10000", acquisition_date=date(2025, 6, 1)),
        make_equity(value="30000", type=EquityType.VEHICLE_CAR, acquisition_date=date(2024, 3, 1)),
    ]
    return accounts, cards, transactions, equities


class TestDashboardSummary:
    """Tests for build_dashboard_summary."""

    def test_balances(self, snapshot):
        summary = build_dashboard_summary(
            *snapshot, as_of=AS_OF, expense_policy=ExpensePolicy.INCLUDE_INVESTMENT
        )
        assert summary.total_balance == Decimal("1050.00")
        assert summary.wallet_balance == Decimal("50.00")
        assert summary.bank_balance == Decimal("1000.00")

    def test_month_over_month_include_investment(self, snapshot):
        summary = build_dashboard_summary(
            *snapshot, as_of=AS_OF, expense_policy=ExpensePolicy.INCLUDE_INVESTMENT
        )
        assert summary.current_income == Decimal("5000.00")
        assert summary.current_expense == Decimal("3100.00")
        assert summary.previous_income == Decimal("4000.00")
        assert summary.previous_expense == Decimal("500.00")
        assert summary.income_change_pct == 25.0

    def test_month_over_month_exclude_investment(self, snapshot):
        summary = build_dashboard_summary(
            *snapshot, as_of=AS_OF, expense_policy=ExpensePolicy.EXCLUDE_INVESTMENT
        )
        assert summary.current_expense == Decimal("2100.00")
        assert "INVESTMENT" not in [c.category for c in summary.expenses_by_category]

    def test_policy_is_required(self, snapshot):
        with pytest.raises(ValueError):
            build_dashboard_summary(*snapshot, as_of=AS_OF, expense_policy=None)

    def test_charts(self, snapshot):
        summary = build_dashboard_summary(
            *snapshot, as_of=AS_OF, expense_policy=ExpensePolicy.INCLUDE_INVESTMENT
        )
        assert len(summary.cash_flow) == 6
        assert summary.cash_flow[-1].month_label == "jun/25"
        assert summary.equity_evolution[-2].value == Decimal("30000.00")
        assert summary.equity_evolution[-1].value == Decimal("40000.00")
        assert summary.equity_composition[0].label == "Veículos"

    def test_lists(self, snapshot):
        summary = build_dashboard_summary(
            *snapshot, as_of=AS_OF, expense_policy=ExpensePolicy.INCLUDE_INVESTMENT
        )
        assert [b.category for b in summary.upcoming_bills] == ["UTILITIES", "HOUSING"]
        assert summary.card_usage[0].available == Decimal("1750.00")
        assert summary.recent_transactions[0].date == date(2025, 6, 20)
        assert len(summary.recent_transactions) == 5

    def test_settings_override(self, snapshot):
        settings = EngineSettings(window_months=3, recent_transactions_limit=2)
        summary = build_dashboard_summary(
            *snapshot,
            as_of=AS_OF,
            expense_policy=ExpensePolicy.INCLUDE_INVESTMENT,
            settings=settings,
        )
        assert len(summary.cash_flow) == 3
        assert len(summary.recent_transactions) == 2


class TestDashboardHelpers:
    """Tests for dashboard list helpers."""

    def test_upcoming_bills_window(self, make_tx):
        transactions = [
            make_tx(date=date(2025, 6, 14)),
            make_tx(date=date(2025, 6, 15), description="today"),
            make_tx(date=date(2025, 6, 22), description="edge"),
            make_tx(date=date(2025, 6, 23)),
            make_tx(date=date(2025, 6, 16), is_paid=True),
            make_tx(type=TransactionType.INCOME, category="SALARY", date=date(2025, 6, 16)),
        ]
        bills = upcoming_bills(transactions, AS_OF, days=7, limit=10)
        assert [b.description for b in bills] == ["today", "edge"]

    def test_upcoming_bills_limit(self, make_tx):
        transactions = [make_tx(date=date(2025, 6, 15 + i)) for i in range(5)]
        assert len(upcoming_bills(transactions, AS_OF, days=7, limit=3)) == 3

    def test_card_usage(self):
        usage = card_usage([CreditCard(id="c", name="Visa", limit="1000", limit_used="1200")])
        assert usage[0].available == Decimal("-200.00")

    def test_recent_transactions(self, make_tx):
        transactions = [make_tx(date=date(2025, 1, d)) for d in (3, 1, 2)]
        assert [t.date.day for t in recent_transactions(transactions, 2)] == [3, 2]


class TestWeeklyForecast:
    """Tests for the weekly forecast series."""

    def test_week_start_is_monday(self):
        assert week_start(date(2025, 1, 8)) == date(2025, 1, 6)
        assert week_start(date(2025, 1, 6)) == date(2025, 1, 6)
        assert week_start(date(2025, 1, 12)) == date(2025, 1, 6)

    def test_series(self, make_tx):
        transactions = [
            make_tx(type=TransactionType.INCOME, category="SALARY", amount="1000", date=date(2025, 1, 6)),
            make_tx(amount="300", date=date(2025, 1, 12)),
            make_tx(amount="500", date=date(2025, 1, 13)),
        ]
        series = build_weekly_series(transactions, week_of=date(2025, 1, 8), weeks=3)

        assert [p.label for p in series] == ["06 jan", "13 jan", "20 jan"]
        assert series[0].end == date(2025, 1, 12)
        assert series[0].net_positive == Decimal("700.00")
        assert series[0].net_negative == Decimal("0.00")
        assert series[1].net_positive == Decimal("0.00")
        assert series[1].net_negative == Decimal("500.00")
        assert series[2].income == series[2].expense == Decimal("0.00")

    def test_default_weeks(self):
        assert len(build_weekly_series([], week_of=date(2025, 1, 8))) == 8

    def test_weeks_must_be_positive(self):
        with pytest.raises(ValueError):
            build_weekly_series([], week_of=date(2025, 1, 8), weeks=0)

    def test_summary(self, make_tx):
        transactions = [
            make_tx(type=TransactionType.INCOME, category="SALARY", amount="1000", is_paid=True),
            make_tx(type=TransactionType.INCOME, category="FREELANCE", amount="250"),
            make_tx(amount="300", is_paid=True),
            make_tx(amount="100"),
            make_tx(
                type=TransactionType.TRANSFER,
                category="TRANSFER",
                amount="999",
                destination_account_id="acc-2",
            ),
        ]
        summary = forecast_summary(transactions, overdue_net=Decimal("-42.00"))

        assert summary.receivable.title == "A Receber"
        assert summary.receivable.total == Decimal("1250.00")
        assert summary.receivable.pending == Decimal("250.00")
        assert summary.receivable.paid == Decimal("1000.00")
        assert summary.payable.count == 2
        assert summary.payable.pending == Decimal("100.00")
        assert summary.overdue_net == Decimal("-42.00")

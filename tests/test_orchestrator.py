"""
Integration tests for the submission and report flows.

The write path is exercised end to end: expand, check, confirm, apply,
and the duplicate guard on a confirmed resubmission.
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_engine.audit import AuditLogger, InMemoryAuditSink, create_correlation_id
from finance_engine.config import EngineSettings
from finance_engine.expansion import ExpansionError
from finance_engine.models import (
    AuditEventType,
    BalanceOutcome,
    Budget,
    EquityType,
    RecurrenceDefinition,
    RecurrenceFrequency,
    SubmissionStatus,
    TransactionCategory,
    TransactionType,
)
from finance_engine.orchestrator import LedgerReportFlow, TransactionSubmissionFlow
from finance_engine.reports.flows import ExpensePolicy


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def flow(sink):
    return TransactionSubmissionFlow(audit_logger=AuditLogger(sink=sink))


def event_types(sink):
    return [e.event_type for e in sink.events]


class TestSubmissionFlow:
    """Tests for TransactionSubmissionFlow.submit."""

    def test_single_expense_created(self, flow, make_intent, make_account):
        result = flow.submit(make_intent(amount="40"), [make_account()])

        assert result.status == SubmissionStatus.CREATED
        assert len(result.transactions) == 1
        assert result.transactions[0].amount == Decimal("40.00")
        assert result.updated_account.balance == Decimal("60.00")

    def test_insufficient_funds_then_confirm_applies_once(self, flow, sink, make_intent, make_account):
        """Test R$100 balance, R$150 expense: confirm once, balance -50.00 once."""
        intent = make_intent(amount="150.00", description="Aluguel")
        account = make_account(balance="100.00")

        first = flow.submit(intent, [account])
        assert first.status == SubmissionStatus.NEEDS_CONFIRMATION
        assert first.balance_check.outcome == BalanceOutcome.NEEDS_CONFIRMATION
        assert first.balance_check.current_balance == Decimal("100.00")
        assert first.balance_check.required_amount == Decimal("150.00")
        assert first.balance_check.final_balance == Decimal("-50.00")
        assert first.transactions == []
        assert first.updated_account is None

        confirmed = flow.submit(intent, [account], confirm_negative_balance=True)
        assert confirmed.status == SubmissionStatus.CREATED
        assert confirmed.updated_account.balance == Decimal("-50.00")
        assert len(confirmed.transactions) == 1

        # Double-click on the confirm button
        again = flow.submit(intent, [account], confirm_negative_balance=True)
        assert again.status == SubmissionStatus.DUPLICATE
        assert again.updated_account.balance == Decimal("-50.00")
        assert again.transactions[0].id == confirmed.transactions[0].id

        types = event_types(sink)
        assert types.count(AuditEventType.TRANSACTIONS_CREATED) == 1
        assert AuditEventType.CONFIRMATION_REQUESTED in types
        assert AuditEventType.NEGATIVE_BALANCE_CONFIRMED in types
        assert AuditEventType.DUPLICATE_SUBMISSION in types

    def test_submission_id_distinguishes_identical_purchases(self, flow, make_intent, make_account):
        intent = make_intent(amount="10")
        first = flow.submit(intent, [make_account()], submission_id="s-1")
        second = flow.submit(intent, [make_account()], submission_id="s-2")
        assert first.status == second.status == SubmissionStatus.CREATED

    def test_identical_unconfirmed_purchases_are_both_created(self, flow, make_intent, make_account):
        """Test that two identical coffees on the same day are two purchases."""
        intent = make_intent(amount="5.00")
        first = flow.submit(intent, [make_account()])
        second = flow.submit(intent, [first.updated_account])

        assert first.status == SubmissionStatus.CREATED
        assert second.status == SubmissionStatus.CREATED
        assert second.updated_account.balance == Decimal("90.00")
        assert second.transactions[0].id != first.transactions[0].id
        assert not flow.is_applied(first.balance_check.idempotency_key)

    def test_forget_allows_resubmission(self, flow, make_intent, make_account):
        intent = make_intent(amount="150")
        first = flow.submit(intent, [make_account()], confirm_negative_balance=True)
        assert flow.is_applied(first.balance_check.idempotency_key)

        flow.forget(first.balance_check.idempotency_key)
        again = flow.submit(intent, [make_account()], confirm_negative_balance=True)
        assert again.status == SubmissionStatus.CREATED

    def test_confirmed_memory_is_bounded(self, make_intent, make_account):
        """Test that the oldest confirmed submission is evicted first."""
        flow = TransactionSubmissionFlow(cache_size=2)
        keys = [
            flow.submit(
                make_intent(amount="150"), [make_account()],
                confirm_negative_balance=True, submission_id=f"s-{i}",
            ).balance_check.idempotency_key
            for i in range(3)
        ]
        assert not flow.is_applied(keys[0])
        assert flow.is_applied(keys[1])
        assert flow.is_applied(keys[2])

    def test_replay_refreshes_memory(self, make_intent, make_account):
        flow = TransactionSubmissionFlow(cache_size=2)

        def submit(sid):
            return flow.submit(
                make_intent(amount="150"), [make_account()],
                confirm_negative_balance=True, submission_id=sid,
            )

        first = submit("a")
        submit("b")
        assert submit("a").status == SubmissionStatus.DUPLICATE
        submit("c")

        assert flow.is_applied(first.balance_check.idempotency_key)
        assert submit("b").status == SubmissionStatus.CREATED

    def test_cache_size_from_settings(self, monkeypatch, make_intent, make_account):
        from finance_engine.config import get_settings

        monkeypatch.setenv("FINANCE_ENGINE_IDEMPOTENCY_CACHE_SIZE", "1")
        get_settings.cache_clear()
        flow = TransactionSubmissionFlow()

        first = flow.submit(make_intent(amount="150"), [make_account()],
                            confirm_negative_balance=True, submission_id="a")
        flow.submit(make_intent(amount="150"), [make_account()],
                    confirm_negative_balance=True, submission_id="b")
        assert not flow.is_applied(first.balance_check.idempotency_key)

    def test_invalid_cache_size(self):
        with pytest.raises(ValueError, match="cache_size"):
            TransactionSubmissionFlow(cache_size=0)

    def test_installments_check_first_installment(self, flow, make_intent, make_account):
        """Test that only the first installment is debited now."""
        result = flow.submit(make_intent(amount="1000.00"), [make_account()], installments=3)

        assert result.status == SubmissionStatus.NEEDS_CONFIRMATION
        assert result.balance_check.required_amount == Decimal("333.34")

        confirmed = flow.submit(
            make_intent(amount="1000.00"), [make_account()],
            installments=3, confirm_negative_balance=True,
        )
        assert [t.amount for t in confirmed.transactions] == [
            Decimal("333.34"), Decimal("333.33"), Decimal("333.33"),
        ]
        assert [t.date for t in confirmed.transactions] == [
            date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 15),
        ]
        assert confirmed.updated_account.balance == Decimal("-233.34")

    def test_recurrence(self, flow, make_intent, make_account):
        recurrence = RecurrenceDefinition(
            frequency=RecurrenceFrequency.MONTHLY,
            end_date=date(2025, 4, 15),
        )
        result = flow.submit(make_intent(amount="20"), [make_account()], recurrence=recurrence)

        assert result.status == SubmissionStatus.CREATED
        assert len(result.transactions) == 4
        assert len({t.recurring_transaction_id for t in result.transactions}) == 1
        assert result.updated_account.balance == Decimal("80.00")

    def test_installments_and_recurrence_are_exclusive(self, flow, make_intent, make_account):
        with pytest.raises(ExpansionError):
            flow.submit(
                make_intent(),
                [make_account()],
                installments=2,
                recurrence=RecurrenceDefinition(frequency=RecurrenceFrequency.MONTHLY),
            )

    def test_card_expense_leaves_account_untouched(self, flow, make_intent, make_account):
        result = flow.submit(
            make_intent(account_id=None, card_id="card-1", amount="5000"), [make_account()]
        )
        assert result.status == SubmissionStatus.CREATED
        assert result.updated_account is None

    def test_income_credits_account(self, flow, make_intent, make_account):
        intent = make_intent(type=TransactionType.INCOME, category="SALARY", amount="900")
        result = flow.submit(intent, [make_account()])
        assert result.status == SubmissionStatus.CREATED
        assert result.updated_account.balance == Decimal("1000.00")

    def test_unknown_account_is_blocked(self, flow, sink, make_intent):
        result = flow.submit(make_intent(account_id="ghost"), [])
        assert result.status == SubmissionStatus.BLOCKED
        assert result.transactions == []
        assert AuditEventType.SUBMISSION_BLOCKED in event_types(sink)

    def test_events_share_correlation_id(self, flow, sink, make_intent, make_account):
        correlation_id = create_correlation_id()
        flow.submit(make_intent(amount="10"), [make_account()], correlation_id=correlation_id)

        events = sink.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTIONS_EXPANDED,
            AuditEventType.BALANCE_CHECK_PASSED,
            AuditEventType.TRANSACTIONS_CREATED,
        ]

    def test_flow_without_audit_logger(self, make_intent, make_account):
        result = TransactionSubmissionFlow().submit(make_intent(), [make_account()])
        assert result.status == SubmissionStatus.CREATED


class TestReportFlow:
    """Tests for LedgerReportFlow."""

    @pytest.fixture
    def reports(self, sink):
        return LedgerReportFlow(
            settings=EngineSettings(window_months=3),
            audit_logger=AuditLogger(sink=sink),
        )

    def test_dashboard(self, reports, sink, make_account, make_tx):
        summary = reports.dashboard(
            [make_account()], [], [make_tx(date=date(2025, 6, 3))], [],
            as_of=date(2025, 6, 15),
            expense_policy=ExpensePolicy.EXCLUDE_INVESTMENT,
        )
        assert summary.current_expense == Decimal("10.00")
        assert len(summary.cash_flow) == 3
        assert event_types(sink) == [AuditEventType.REPORT_BUILT]

    def test_investment_workspace_filters_investments(self, reports, make_equity, make_tx):
        equities = [
            make_equity(value="1000", cost="800"),
            make_equity(value="50000", cost="40000", type=EquityType.REAL_ESTATE_HOUSE),
        ]
        transactions = [
            make_tx(category=TransactionCategory.INVESTMENT, amount="300", date=date(2025, 6, 1)),
        ]
        snapshot = reports.investment_workspace(equities, transactions, as_of=date(2025, 6, 30))

        assert len(snapshot.holdings) == 1
        assert snapshot.totals.current_value == Decimal("1000.00")
        assert snapshot.totals.average_contribution == Decimal("100.00")
        assert len(snapshot.flows) == 3

        everything = reports.investment_workspace(
            equities, transactions, as_of=date(2025, 6, 30), investments_only=False
        )
        assert len(everything.holdings) == 2

    def test_budgets(self, reports, make_tx):
        budget = Budget(id="b-1", name="Mercado", category="FOOD", amount="100", year=2025, month=1)
        comparisons, alerts = reports.budgets([budget], [make_tx(amount="120")])

        assert comparisons["b-1"].percent == 120.0
        assert len(alerts) == 1
        assert alerts[0].budget_id == "b-1"

    def test_forecast(self, reports, make_tx):
        series, summary = reports.forecast(
            [make_tx(date=date(2025, 1, 16))], week_of=date(2025, 1, 15)
        )
        assert len(series) == 8
        assert series[0].expense == Decimal("10.00")
        assert summary.payable.total == Decimal("10.00")

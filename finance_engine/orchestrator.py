"""
Main Orchestrator for the Finance Engine

This module ties the components together and defines the two flows:
1. Transaction submission (intent -> balance check -> expand -> drafts)
2. Reports (snapshots -> dashboard, investment workspace, budgets, forecast)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No draft leaves the engine without a balance check
- A negative final balance requires explicit confirmation
- A confirmed resubmission is applied exactly once
- Every step is audited

The engine never persists anything. The submission flow returns drafts
and the updated account for the persistence collaborator to store.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union
from uuid import UUID

import structlog

from finance_engine.audit import AuditLogger, create_correlation_id
from finance_engine.config import EngineSettings, get_settings
from finance_engine.expansion import ExpansionError, TransactionExpander
from finance_engine.models.audit import AuditEventBuilder
from finance_engine.models.records import (
    Account,
    Budget,
    CreditCard,
    Equity,
    RecurrenceDefinition,
    Transaction,
    TransactionIntent,
    TransactionType,
)
from finance_engine.models.views import (
    BalanceCheck,
    BalanceOutcome,
    BudgetAlert,
    BudgetComparison,
    DashboardSummary,
    ForecastSummary,
    InvestmentWorkspaceSnapshot,
    SubmissionResult,
    SubmissionStatus,
    WeeklyForecastPoint,
)
from finance_engine.reports import (
    BudgetComparator,
    InvestmentSnapshotBuilder,
    build_dashboard_summary,
    build_weekly_series,
    forecast_summary,
    investment_equities,
)
from finance_engine.reports.flows import PolicyArg
from finance_engine.validation import BalanceValidator, apply_credit, apply_debit


logger = structlog.get_logger(__name__)

Accounts = Union[Mapping[str, Account], Iterable[Account]]


class TransactionSubmissionFlow:
    """
    Orchestrates the transaction write path.

    Flow:
    1. Expand → one intent becomes 1..N concrete transactions
    2. Check → the first transaction's debit is validated against its account
    3. Confirm → a negative final balance pauses the flow (NEEDS_CONFIRMATION)
    4. Apply → drafts and the updated account are returned for persistence

    IMPORTANT: Only confirmed submissions (confirm_negative_balance=True)
    are remembered, keyed by their idempotency key. Replaying a confirmation
    that was already applied returns the original result with status
    DUPLICATE and does not debit the account again. Unconfirmed submissions
    are never deduplicated: two identical coffees are two purchases.
    The memory is an LRU bounded by settings.idempotency_cache_size.
    """

    def __init__(
        self,
        validator: Optional[BalanceValidator] = None,
        expander: Optional[TransactionExpander] = None,
        audit_logger: Optional[AuditLogger] = None,
        cache_size: Optional[int] = None,
    ):
        self._validator = validator or BalanceValidator()
        self._expander = expander or TransactionExpander()
        self._audit_logger = audit_logger
        if cache_size is None:
            cache_size = get_settings().idempotency_cache_size
        if cache_size < 1:
            raise ValueError(f"cache_size must be at least 1, got {cache_size}")
        self._cache_size = cache_size
        self._applied: OrderedDict[str, SubmissionResult] = OrderedDict()

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def expand(
        self,
        intent: TransactionIntent,
        installments: Optional[int] = None,
        recurrence: Optional[RecurrenceDefinition] = None,
    ) -> tuple[str, list[Transaction]]:
        """
        Expand an intent into concrete transactions.

        Returns:
            (mode, transactions) where mode is 'single', 'installments' or 'recurrence'

        Raises:
            ExpansionError: If both installments and recurrence are requested,
                            or the expander rejects the input
        """
        if installments is not None and recurrence is not None:
            raise ExpansionError("A transaction cannot be both installments and a recurrence")

        if installments is not None:
            return "installments", self._expander.expand_installments(intent, installments)

        if recurrence is not None:
            return "recurrence", self._expander.expand_recurrence(
                intent,
                recurrence.frequency,
                start_date=recurrence.start_date,
                end_date=recurrence.end_date,
            )

        return "single", [intent.to_transaction()]

    def submit(
        self,
        intent: TransactionIntent,
        accounts: Accounts,
        *,
        installments: Optional[int] = None,
        recurrence: Optional[RecurrenceDefinition] = None,
        confirm_negative_balance: bool = False,
        submission_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Submit a transaction intent.

        Args:
            intent: The draft from the entry wizard
            accounts: Account snapshot
            installments: Split into this many monthly installments
            recurrence: Repeat according to this definition
            confirm_negative_balance: The user accepted a negative final balance
            submission_id: Distinguishes two intentionally identical submissions
            correlation_id: Correlates the audit events of one user action

        Returns:
            SubmissionResult. Only status CREATED carries new drafts to persist.
        """
        correlation_id = correlation_id or create_correlation_id()
        if not isinstance(accounts, Mapping):
            accounts = {a.id: a for a in accounts}

        mode, transactions = self.expand(intent, installments, recurrence)
        self._audit(AuditEventBuilder.transactions_expanded(
            mode=mode,
            count=len(transactions),
            correlation_id=correlation_id,
            recurring_transaction_id=transactions[0].recurring_transaction_id,
        ))

        first = transactions[0]
        context = {
            "mode": mode,
            "installments": installments,
            "recurrence": recurrence.model_dump(mode="json") if recurrence else None,
            "submission_id": submission_id,
        }
        check = self._validator.validate_transaction(
            intent,
            accounts,
            confirm_negative_balance=confirm_negative_balance,
            amount=first.amount,
            context=context,
        )

        applied = self._replayed(check.idempotency_key) if confirm_negative_balance else None
        if applied is not None:
            self._audit(AuditEventBuilder.duplicate_submission(
                idempotency_key=check.idempotency_key,
                correlation_id=correlation_id,
            ))
            return applied.model_copy(update={
                "status": SubmissionStatus.DUPLICATE,
                "message": "Submission already applied",
            })

        if check.outcome == BalanceOutcome.BLOCKED:
            self._audit(AuditEventBuilder.submission_blocked(
                reason=check.reason or "blocked",
                correlation_id=correlation_id,
                account_id=check.account_id,
            ))
            return SubmissionResult(
                status=SubmissionStatus.BLOCKED,
                balance_check=check,
                message=check.reason or "",
            )

        if check.outcome == BalanceOutcome.NEEDS_CONFIRMATION:
            self._audit(AuditEventBuilder.confirmation_requested(
                account_id=check.account_id,
                current_balance=str(check.current_balance),
                required_amount=str(check.required_amount),
                final_balance=str(check.final_balance),
                correlation_id=correlation_id,
            ))
            return SubmissionResult(
                status=SubmissionStatus.NEEDS_CONFIRMATION,
                balance_check=check,
                message="Operation leaves the account with a negative balance",
            )

        result = SubmissionResult(
            status=SubmissionStatus.CREATED,
            balance_check=check,
            transactions=transactions,
            updated_account=self._updated_account(first, accounts, check),
        )
        if confirm_negative_balance:
            self._remember(check.idempotency_key, result)
        self._audit_created(check, transactions, correlation_id)
        return result

    def forget(self, idempotency_key: str) -> None:
        """Drop an applied submission, e.g. after the data store rejected it."""
        self._applied.pop(idempotency_key, None)

    def is_applied(self, idempotency_key: str) -> bool:
        return idempotency_key in self._applied

    def _replayed(self, idempotency_key: str) -> Optional[SubmissionResult]:
        applied = self._applied.get(idempotency_key)
        if applied is not None:
            self._applied.move_to_end(idempotency_key)
        return applied

    def _remember(self, idempotency_key: str, result: SubmissionResult) -> None:
        self._applied[idempotency_key] = result
        self._applied.move_to_end(idempotency_key)
        while len(self._applied) > self._cache_size:
            self._applied.popitem(last=False)

    def _updated_account(
        self,
        first: Transaction,
        accounts: Mapping[str, Account],
        check: BalanceCheck,
    ) -> Optional[Account]:
        account = accounts.get(first.account_id) if first.account_id else None
        if account is None:
            return None
        if first.type == TransactionType.INCOME:
            return apply_credit(account, first.amount)
        if check.required_amount > 0:
            return apply_debit(account, check.required_amount)
        return None

    def _audit_created(
        self,
        check: BalanceCheck,
        transactions: list[Transaction],
        correlation_id: UUID,
    ) -> None:
        if check.account_id and check.required_amount > 0:
            if check.goes_negative:
                self._audit(AuditEventBuilder.negative_balance_confirmed(
                    account_id=check.account_id,
                    final_balance=str(check.final_balance),
                    correlation_id=correlation_id,
                ))
            else:
                self._audit(AuditEventBuilder.balance_check_passed(
                    account_id=check.account_id,
                    final_balance=str(check.final_balance),
                    correlation_id=correlation_id,
                ))

        total = sum((tx.amount for tx in transactions), Decimal("0.00"))
        self._audit(AuditEventBuilder.transactions_created(
            transaction_ids=[tx.id for tx in transactions],
            total_amount=str(total),
            correlation_id=correlation_id,
        ))


class LedgerReportFlow:
    """
    Orchestrates the read path.

    Every method takes snapshots already fetched by the caller and
    returns view objects. Nothing here blocks or touches storage.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        snapshot_builder: Optional[InvestmentSnapshotBuilder] = None,
        budget_comparator: Optional[BudgetComparator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings()
        self._snapshot_builder = snapshot_builder or InvestmentSnapshotBuilder(
            window_size=self._settings.window_months,
            recent_limit=self._settings.recent_movements_limit,
        )
        self._budget_comparator = budget_comparator or BudgetComparator(
            alert_threshold=self._settings.budget_alert_threshold,
            critical_threshold=self._settings.budget_critical_threshold,
        )
        self._audit_logger = audit_logger

    def _audit_report(self, report: str, record_count: int) -> None:
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.report_built(
                report=report,
                record_count=record_count,
            ))

    def dashboard(
        self,
        accounts: Iterable[Account],
        cards: Iterable[CreditCard],
        transactions: Iterable[Transaction],
        equities: Iterable[Equity],
        *,
        as_of: date,
        expense_policy: PolicyArg,
    ) -> DashboardSummary:
        transactions = list(transactions)
        summary = build_dashboard_summary(
            accounts,
            cards,
            transactions,
            equities,
            as_of=as_of,
            expense_policy=expense_policy,
            settings=self._settings,
        )
        self._audit_report("dashboard", len(transactions))
        return summary

    def investment_workspace(
        self,
        equities: Iterable[Equity],
        transactions: Iterable[Transaction],
        *,
        as_of: date,
        investments_only: bool = True,
    ) -> InvestmentWorkspaceSnapshot:
        """
        Build the investment workspace.

        Args:
            investments_only: Restrict holdings to the Investimentos group
        """
        equities = list(equities)
        if investments_only:
            equities = investment_equities(equities)
        transactions = list(transactions)

        snapshot = self._snapshot_builder.build(equities, transactions, as_of=as_of)
        self._audit_report("investment_workspace", len(transactions))
        return snapshot

    def budgets(
        self,
        budgets: Iterable[Budget],
        transactions: Iterable[Transaction],
    ) -> tuple[dict[str, BudgetComparison], list[BudgetAlert]]:
        """Budget comparisons keyed by budget id, plus the active alerts."""
        budgets = list(budgets)
        transactions = list(transactions)

        comparisons = self._budget_comparator.compare_all(budgets, transactions)
        alerts = self._budget_comparator.alerts(budgets, comparisons)

        logger.info(
            "budgets_compared",
            budgets=len(budgets),
            alerts=len(alerts),
        )
        self._audit_report("budgets", len(transactions))
        return comparisons, alerts

    def forecast(
        self,
        transactions: Iterable[Transaction],
        *,
        week_of: date,
        overdue_net: Optional[Decimal] = None,
    ) -> tuple[list[WeeklyForecastPoint], ForecastSummary]:
        """Weekly series and receivable/payable summary of upcoming transactions."""
        transactions = list(transactions)
        series = build_weekly_series(
            transactions, week_of=week_of, weeks=self._settings.forecast_weeks
        )
        summary = forecast_summary(transactions, overdue_net=overdue_net)
        self._audit_report("forecast", len(transactions))
        return series, summary

"""
Derived View Models

Everything the engine returns to the presentation layer.
Snapshots are point-in-time values. They are never persisted.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from finance_engine.models.records import Account, Equity, Transaction


ZERO = Decimal("0.00")


# =============================================================================
# PERIODS AND FLOWS
# =============================================================================

class MonthBucket(BaseModel):
    """A calendar-month grouping of records."""

    month_label: str = Field(..., description="Short label, e.g. 'jan/25'")
    period_start: dt.date
    period_end: dt.date
    records: list[Any] = Field(default_factory=list)

    def contains(self, value: dt.date) -> bool:
        return self.period_start <= value <= self.period_end


class FlowTotals(BaseModel):
    """Income and expense totals of one record set."""

    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class CashFlowPoint(BaseModel):
    """One month of the cash-flow chart."""

    month_label: str
    period_start: dt.date
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO


class CategoryTotal(BaseModel):
    """One slice of the category pie."""

    category: str
    label: str
    total: Decimal = ZERO


# =============================================================================
# BALANCE VALIDATION
# =============================================================================

class BalanceOutcome(str, Enum):
    """
    Outcome of an insufficient-funds check.

    NEEDS_CONFIRMATION is a normal branch, not an error:
    the caller must show a prompt and resubmit with confirmation.
    """
    ALLOWED = "allowed"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"


class BalanceCheck(BaseModel):
    """Result of validating a proposed debit against an account."""

    outcome: BalanceOutcome
    account_id: Optional[str] = None
    current_balance: Decimal = ZERO
    required_amount: Decimal = ZERO
    final_balance: Decimal = ZERO
    confirmed: bool = Field(
        default=False,
        description="Was negative-balance confirmation supplied?"
    )
    reason: Optional[str] = Field(
        default=None,
        description="Why the operation was blocked, if it was"
    )
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Fingerprint of the payload, independent of the confirm flag"
    )

    @property
    def is_allowed(self) -> bool:
        return self.outcome == BalanceOutcome.ALLOWED

    @property
    def goes_negative(self) -> bool:
        return self.final_balance < 0


class SubmissionStatus(str, Enum):
    CREATED = "created"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"
    DUPLICATE = "duplicate"


class SubmissionResult(BaseModel):
    """Result of submitting a transaction intent on the write path."""

    status: SubmissionStatus
    balance_check: Optional[BalanceCheck] = None
    transactions: list[Transaction] = Field(default_factory=list)
    updated_account: Optional[Account] = None
    message: str = ""


# =============================================================================
# EQUITY / INVESTMENT WORKSPACE
# =============================================================================

class HoldingSummary(BaseModel):
    """The financial position of one equity."""

    id: str
    name: str
    type: str
    acquisition_date: dt.date
    current_value: Decimal
    invested: Decimal
    net_gain: Decimal
    net_gain_pct: float = 0.0


class WorkspaceTotals(BaseModel):
    current_value: Decimal = ZERO
    invested_capital: Decimal = ZERO
    net_gain: Decimal = ZERO
    net_gain_pct: float = 0.0
    average_ticket: Decimal = ZERO
    average_contribution: Decimal = ZERO


class AllocationSlice(BaseModel):
    label: str
    value: Decimal = ZERO


class InvestmentFlowPoint(BaseModel):
    month_label: str
    period_start: dt.date
    contributions: Decimal = ZERO
    withdrawals: Decimal = ZERO
    net: Decimal = ZERO


class InvestmentMovement(BaseModel):
    id: str
    description: str
    date: dt.date
    amount: Decimal
    type: str
    equity_id: Optional[str] = None


class InvestmentWorkspaceSnapshot(BaseModel):
    """Everything the investment workspace screen shows."""

    equities: list[Equity] = Field(default_factory=list)
    holdings: list[HoldingSummary] = Field(default_factory=list)
    totals: WorkspaceTotals = Field(default_factory=WorkspaceTotals)
    allocation: list[AllocationSlice] = Field(default_factory=list)
    flows: list[InvestmentFlowPoint] = Field(default_factory=list)
    recent_movements: list[InvestmentMovement] = Field(default_factory=list)


class EquityEvolutionPoint(BaseModel):
    """Net worth held in equities at the end of one month."""

    month_label: str
    period_end: dt.date
    value: Decimal = ZERO


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetComparison(BaseModel):
    """Budget vs actual for one budget."""

    budget_id: str
    budgeted: Decimal
    spent: Decimal = ZERO
    remaining: Decimal = Field(
        default=ZERO,
        description="budgeted - spent; negative when overspent"
    )
    percent: float = Field(
        default=0.0,
        ge=0.0,
        description="Percent of the budget consumed (0 when budgeted is 0)"
    )
    transaction_count: int = Field(default=0, ge=0)

    @property
    def is_exceeded(self) -> bool:
        return self.remaining < 0


class BudgetAlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"
    EXCEEDED = "exceeded"


class BudgetAlert(BaseModel):
    id: str
    budget_id: str
    budget_name: str
    category: str = ""
    budgeted: Decimal
    spent: Decimal
    percent: float
    severity: BudgetAlertSeverity
    message: str


# =============================================================================
# DASHBOARD AND FORECAST
# =============================================================================

class CardUsage(BaseModel):
    card_id: str
    name: str
    used: Decimal
    available: Decimal
    limit: Decimal


class DashboardSummary(BaseModel):
    """KPI cards and charts of the summary dashboard."""

    as_of: dt.date
    total_balance: Decimal = ZERO
    wallet_balance: Decimal = ZERO
    bank_balance: Decimal = ZERO

    current_income: Decimal = ZERO
    current_expense: Decimal = ZERO
    previous_income: Decimal = ZERO
    previous_expense: Decimal = ZERO
    income_change_pct: float = 0.0
    expense_change_pct: float = 0.0

    cash_flow: list[CashFlowPoint] = Field(default_factory=list)
    equity_evolution: list[EquityEvolutionPoint] = Field(default_factory=list)
    equity_composition: list[AllocationSlice] = Field(default_factory=list)
    card_usage: list[CardUsage] = Field(default_factory=list)
    upcoming_bills: list[Transaction] = Field(default_factory=list)
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)


class WeeklyForecastPoint(BaseModel):
    label: str
    start: dt.date
    end: dt.date
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net_positive: Decimal = ZERO
    net_negative: Decimal = ZERO


class ForecastSummaryLine(BaseModel):
    title: str
    total: Decimal = ZERO
    pending: Decimal = ZERO
    paid: Decimal = ZERO
    count: int = 0


class ForecastSummary(BaseModel):
    receivable: ForecastSummaryLine
    payable: ForecastSummaryLine
    overdue_net: Optional[Decimal] = None

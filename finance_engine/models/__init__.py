"""
Data Models Package

This package contains all Pydantic models used by the Finance Engine.
Every record the engine consumes and every view it returns conforms to these schemas.
"""

from finance_engine.models.records import (
    EQUITY_TYPE_INFO,
    Account,
    AccountType,
    Budget,
    BudgetPeriod,
    BudgetType,
    CreditCard,
    Equity,
    EquityGroup,
    EquityType,
    RecurrenceDefinition,
    RecurrenceFrequency,
    Transaction,
    TransactionCategory,
    TransactionIntent,
    TransactionType,
    new_id,
)
from finance_engine.models.views import (
    AllocationSlice,
    BalanceCheck,
    BalanceOutcome,
    BudgetAlert,
    BudgetAlertSeverity,
    BudgetComparison,
    CardUsage,
    CashFlowPoint,
    CategoryTotal,
    DashboardSummary,
    EquityEvolutionPoint,
    FlowTotals,
    ForecastSummary,
    ForecastSummaryLine,
    HoldingSummary,
    InvestmentFlowPoint,
    InvestmentMovement,
    InvestmentWorkspaceSnapshot,
    MonthBucket,
    SubmissionResult,
    SubmissionStatus,
    WeeklyForecastPoint,
    WorkspaceTotals,
)
from finance_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "EQUITY_TYPE_INFO",
    "Account",
    "AccountType",
    "Budget",
    "BudgetPeriod",
    "BudgetType",
    "CreditCard",
    "Equity",
    "EquityGroup",
    "EquityType",
    "RecurrenceDefinition",
    "RecurrenceFrequency",
    "Transaction",
    "TransactionCategory",
    "TransactionIntent",
    "TransactionType",
    "new_id",
    # Views
    "AllocationSlice",
    "BalanceCheck",
    "BalanceOutcome",
    "BudgetAlert",
    "BudgetAlertSeverity",
    "BudgetComparison",
    "CardUsage",
    "CashFlowPoint",
    "CategoryTotal",
    "DashboardSummary",
    "EquityEvolutionPoint",
    "FlowTotals",
    "ForecastSummary",
    "ForecastSummaryLine",
    "HoldingSummary",
    "InvestmentFlowPoint",
    "InvestmentMovement",
    "InvestmentWorkspaceSnapshot",
    "MonthBucket",
    "SubmissionResult",
    "SubmissionStatus",
    "WeeklyForecastPoint",
    "WorkspaceTotals",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

"""
Budget Comparator

Joins a budget definition with matching transactions:
spent, remaining and percent consumed.

IMPORTANT: Overspending is surfaced, never clamped. remaining goes
negative and percent goes above 100. A zero budget reports 0 percent
instead of dividing by zero.
"""

from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.config import get_settings
from finance_engine.models.records import Budget, BudgetType, Transaction, TransactionType
from finance_engine.models.views import (
    ZERO,
    BudgetAlert,
    BudgetAlertSeverity,
    BudgetComparison,
)
from finance_engine.reports.flows import is_investment_related


_SEVERITY_ORDER = {
    BudgetAlertSeverity.EXCEEDED: 0,
    BudgetAlertSeverity.CRITICAL: 1,
    BudgetAlertSeverity.WARNING: 2,
}


def _format_money(value: Decimal) -> str:
    text = f"{value:,.2f}"
    # pt-BR separators: 1.234,56
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")


def budget_percent(spent: Decimal, budgeted: Decimal) -> float:
    """Percent of the budget consumed, 0 when the budget is not positive."""
    if budgeted <= 0:
        return 0.0
    return round(float(spent / budgeted * 100), 2)


class BudgetComparator:
    """
    Compares budgets against transactions.

    Matching rules:
    - EXPENSE budgets match EXPENSE transactions
    - INCOME budgets match INCOME transactions
    - INVESTMENT budgets match investment-related EXPENSE transactions
    - a budget category, when set, must equal the transaction category
    - the transaction date must fall inside the budget period
    """

    def __init__(
        self,
        alert_threshold: Optional[float] = None,
        critical_threshold: Optional[float] = None,
    ):
        settings = get_settings()
        if alert_threshold is None:
            alert_threshold = settings.budget_alert_threshold
        if critical_threshold is None:
            critical_threshold = settings.budget_critical_threshold

        if alert_threshold <= 0:
            raise ValueError(f"alert_threshold must be positive, got {alert_threshold}")
        if critical_threshold < alert_threshold:
            raise ValueError("critical_threshold cannot be below alert_threshold")

        self._alert_threshold = alert_threshold
        self._critical_threshold = critical_threshold

    def matches(self, budget: Budget, transaction: Transaction) -> bool:
        """Does this transaction count against this budget?"""
        if budget.type == BudgetType.INVESTMENT:
            if transaction.type != TransactionType.EXPENSE:
                return False
            if not is_investment_related(transaction):
                return False
        elif transaction.type.value != budget.type.value:
            return False

        if budget.category is not None and transaction.category != budget.category:
            return False

        start, end = budget.period_bounds()
        return start <= transaction.date <= end

    def compare(
        self,
        budget: Budget,
        transactions: Iterable[Transaction],
    ) -> BudgetComparison:
        """Budget vs actual for one budget."""
        matching = [tx for tx in transactions if self.matches(budget, tx)]
        spent = sum((tx.amount for tx in matching), ZERO)

        return BudgetComparison(
            budget_id=budget.id,
            budgeted=budget.amount,
            spent=spent,
            remaining=budget.amount - spent,
            percent=budget_percent(spent, budget.amount),
            transaction_count=len(matching),
        )

    def compare_all(
        self,
        budgets: Iterable[Budget],
        transactions: Iterable[Transaction],
    ) -> dict[str, BudgetComparison]:
        """Comparisons keyed by budget id."""
        transactions = list(transactions)
        return {b.id: self.compare(b, transactions) for b in budgets}

    def alerts(
        self,
        budgets: Iterable[Budget],
        comparisons: dict[str, BudgetComparison],
    ) -> list[BudgetAlert]:
        """
        Alerts for expense budgets near or over their ceiling.

        Sorted by severity (exceeded, critical, warning), then by percent.
        Budgets without a comparison are skipped.
        """
        alerts = []

        for budget in budgets:
            if budget.type != BudgetType.EXPENSE:
                continue
            comparison = comparisons.get(budget.id)
            if comparison is None or budget.amount <= 0:
                continue

            # Severity from the unrounded ratio; comparison.percent is for display
            consumed = float(comparison.spent / budget.amount * 100)
            percent = comparison.percent
            if comparison.spent >= budget.amount:
                severity = BudgetAlertSeverity.EXCEEDED
                overspent = comparison.spent - budget.amount
                message = f"Orçamento de {budget.name} foi excedido em {_format_money(overspent)}"
            elif consumed >= self._alert_threshold:
                if consumed >= self._critical_threshold:
                    severity = BudgetAlertSeverity.CRITICAL
                else:
                    severity = BudgetAlertSeverity.WARNING
                message = f"{budget.name} está em {int(consumed)}% do limite"
            else:
                continue

            alerts.append(BudgetAlert(
                id=f"{budget.id}-{severity.value}",
                budget_id=budget.id,
                budget_name=budget.name,
                category=budget.category or "",
                budgeted=budget.amount,
                spent=comparison.spent,
                percent=percent,
                severity=severity,
                message=message,
            ))

        alerts.sort(key=lambda a: (_SEVERITY_ORDER[a.severity], -a.percent))
        return alerts

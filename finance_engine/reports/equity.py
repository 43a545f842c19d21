"""
Equity / Investment Snapshot Builder

Joins equities with their funding transactions to produce:
- holdings (current value vs invested cost per equity)
- totals (current value, invested capital, gain, average ticket and contribution)
- allocation by reporting group
- monthly contributions vs withdrawals
- recent investment movements

CRITICAL: An equity only counts toward a month of the evolution chart
when it was acquired on or before that month's last day. An asset cannot
contribute to net worth before it was bought.
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import structlog

from finance_engine.config import get_settings
from finance_engine.models.records import (
    Equity,
    EquityGroup,
    Transaction,
    TransactionType,
)
from finance_engine.models.views import (
    ZERO,
    AllocationSlice,
    EquityEvolutionPoint,
    HoldingSummary,
    InvestmentFlowPoint,
    InvestmentMovement,
    InvestmentWorkspaceSnapshot,
    WorkspaceTotals,
)
from finance_engine.normalization import CENT
from finance_engine.reports.flows import is_investment_related
from finance_engine.reports.periods import bucket_by_month, month_label, month_windows


logger = structlog.get_logger(__name__)


def gain_pct(net_gain: Decimal, invested: Decimal) -> float:
    """Gain as a percent of invested capital, 0 when nothing was invested."""
    if invested <= 0:
        return 0.0
    return round(float(net_gain / invested * 100), 2)


def _mean(total: Decimal, count: int) -> Decimal:
    if count <= 0:
        return ZERO
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


def _slices(totals: dict[str, Decimal]) -> list[AllocationSlice]:
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [AllocationSlice(label=label, value=value) for label, value in ranked]


def investment_equities(equities: Iterable[Equity]) -> list[Equity]:
    """Equities in the Investimentos reporting group."""
    return [e for e in equities if e.group == EquityGroup.INVESTMENTS]


def equity_composition(equities: Iterable[Equity]) -> list[AllocationSlice]:
    """Total value per reporting group, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for equity in equities:
        totals[equity.group.value] += equity.value
    return _slices(totals)


def investment_allocation(equities: Iterable[Equity]) -> list[AllocationSlice]:
    """Value per equity type label, investment equities only."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for equity in investment_equities(equities):
        totals[equity.type_label] += equity.value
    return _slices(totals)


def equity_evolution(
    equities: Iterable[Equity],
    reference_date: date,
    window_size: Optional[int] = None,
    group: Optional[EquityGroup] = None,
) -> list[EquityEvolutionPoint]:
    """
    Equity value held at the end of each month, oldest first.

    Args:
        equities: Equity snapshot
        reference_date: Any day of the newest month
        window_size: Number of months (defaults to settings.window_months)
        group: Only count equities of this reporting group
    """
    if window_size is None:
        window_size = get_settings().window_months

    selected = [e for e in equities if group is None or e.group == group]

    points = []
    for start, end in month_windows(reference_date, window_size):
        value = sum(
            (e.value for e in selected if e.acquisition_date <= end),
            ZERO,
        )
        points.append(EquityEvolutionPoint(
            month_label=month_label(start),
            period_end=end,
            value=value,
        ))
    return points


class InvestmentSnapshotBuilder:
    """
    Builds the investment workspace snapshot.

    Holdings are computed for every equity passed in. Callers that only
    want financial investments filter with investment_equities() first.
    """

    def __init__(
        self,
        window_size: Optional[int] = None,
        recent_limit: Optional[int] = None,
    ):
        settings = get_settings()
        if window_size is None:
            window_size = settings.window_months
        if recent_limit is None:
            recent_limit = settings.recent_movements_limit

        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        if recent_limit < 1:
            raise ValueError(f"recent_limit must be at least 1, got {recent_limit}")

        self._window_size = window_size
        self._recent_limit = recent_limit

    def holding(self, equity: Equity) -> HoldingSummary:
        """The financial position of one equity."""
        net_gain = equity.value - equity.cost
        return HoldingSummary(
            id=equity.id,
            name=equity.name,
            type=equity.type.value,
            acquisition_date=equity.acquisition_date,
            current_value=equity.value,
            invested=equity.cost,
            net_gain=net_gain,
            net_gain_pct=gain_pct(net_gain, equity.cost),
        )

    def flows(
        self,
        transactions: Iterable[Transaction],
        as_of: date,
    ) -> list[InvestmentFlowPoint]:
        """
        Monthly contributions vs withdrawals.

        Contributions are investment-related EXPENSE transactions.
        Withdrawals are investment-related INCOME transactions.
        """
        related = [tx for tx in transactions if is_investment_related(tx)]

        points = []
        for bucket in bucket_by_month(related, as_of, self._window_size):
            contributions = sum(
                (tx.amount for tx in bucket.records if tx.type == TransactionType.EXPENSE),
                ZERO,
            )
            withdrawals = sum(
                (tx.amount for tx in bucket.records if tx.type == TransactionType.INCOME),
                ZERO,
            )
            points.append(InvestmentFlowPoint(
                month_label=bucket.month_label,
                period_start=bucket.period_start,
                contributions=contributions,
                withdrawals=withdrawals,
                net=contributions - withdrawals,
            ))
        return points

    def recent_movements(
        self,
        transactions: Iterable[Transaction],
    ) -> list[InvestmentMovement]:
        """Most recent investment-related transactions, newest first."""
        related = [tx for tx in transactions if is_investment_related(tx)]
        related.sort(key=lambda tx: tx.date, reverse=True)

        return [
            InvestmentMovement(
                id=tx.id,
                description=tx.description,
                date=tx.date,
                amount=tx.amount,
                type=tx.type.value,
                equity_id=tx.equity_id,
            )
            for tx in related[:self._recent_limit]
        ]

    def build(
        self,
        equities: Iterable[Equity],
        transactions: Iterable[Transaction],
        *,
        as_of: date,
    ) -> InvestmentWorkspaceSnapshot:
        """
        Build the full workspace snapshot.

        Args:
            equities: Equities to report on
            transactions: Transaction snapshot (non-investment ones are ignored)
            as_of: Any day of the newest month in the flow chart
        """
        equities = list(equities)
        transactions = list(transactions)

        holdings = [self.holding(e) for e in equities]
        flows = self.flows(transactions, as_of)

        current_value = sum((h.current_value for h in holdings), ZERO)
        invested = sum((h.invested for h in holdings), ZERO)
        net_gain = current_value - invested
        contributed = sum((p.contributions for p in flows), ZERO)

        totals = WorkspaceTotals(
            current_value=current_value,
            invested_capital=invested,
            net_gain=net_gain,
            net_gain_pct=gain_pct(net_gain, invested),
            average_ticket=_mean(current_value, len(holdings)),
            average_contribution=_mean(contributed, len(flows)),
        )

        logger.debug(
            "investment_snapshot_built",
            equities=len(equities),
            transactions=len(transactions),
            current_value=str(current_value),
        )

        return InvestmentWorkspaceSnapshot(
            equities=equities,
            holdings=holdings,
            totals=totals,
            allocation=equity_composition(equities),
            flows=flows,
            recent_movements=self.recent_movements(transactions),
        )

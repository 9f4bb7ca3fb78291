"""
Performance tracker.

Statistics are recomputed wholesale from the trade ledger on every call, which
keeps them consistent with imported or restored ledgers.
"""

import math
from typing import Sequence

import structlog

from ..state.models import Trade
from .models import PerformanceSnapshot

logger = structlog.get_logger(__name__)


def equity_curve(trades: Sequence[Trade], starting_balance: float) -> list[float]:
    """
    Running equity after each trade, starting with the starting balance.

    Trades are ordered by entry time, the same order used for drawdown.
    """
    ordered = sorted(trades, key=lambda t: t.entry_time)
    curve = [starting_balance]
    equity = starting_balance
    for trade in ordered:
        equity += trade.pnl_amount
        curve.append(equity)
    return curve


def max_drawdown_percent(curve: Sequence[float]) -> float:
    """Largest peak-to-trough decline of an equity curve, in percent of the peak."""
    if not curve:
        return 0.0

    peak = curve[0]
    max_drawdown = 0.0
    for equity in curve:
        if equity > peak:
            peak = equity
        if peak > 0:
            drawdown = (peak - equity) / peak * 100
            max_drawdown = max(max_drawdown, drawdown)
    return max_drawdown


def compute_performance(trades: Sequence[Trade], starting_balance: float) -> PerformanceSnapshot:
    """
    Compute performance statistics for a trade ledger.

    A trade with ``pnl_amount >= 0`` counts as a win. Profit factor is
    ``math.inf`` when there is gross profit but no loss, and 0.0 when there
    are no trades or no profit.

    Args:
        trades: Completed trades, in any order
        starting_balance: Account balance before the first trade

    Returns:
        PerformanceSnapshot
    """
    if not trades:
        return PerformanceSnapshot()

    wins = [t for t in trades if t.pnl_amount >= 0]
    losses = [t for t in trades if t.pnl_amount < 0]

    gross_profit = sum(t.pnl_amount for t in wins)
    gross_loss = abs(sum(t.pnl_amount for t in losses))

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    total_hours = sum(
        (t.exit_time - t.entry_time).total_seconds() / 3600.0 for t in trades
    )

    return PerformanceSnapshot(
        total_trades=len(trades),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(trades) * 100,
        total_pnl=sum(t.pnl_amount for t in trades),
        max_drawdown_percent=max_drawdown_percent(equity_curve(trades, starting_balance)),
        profit_factor=profit_factor,
        average_trade_duration_hours=total_hours / len(trades),
    )


class PerformanceTracker:
    """Keeps the latest performance snapshot and equity curve for one account."""

    def __init__(self, starting_balance: float):
        self.starting_balance = starting_balance
        self.snapshot = PerformanceSnapshot()
        self.equity_curve: list[float] = [starting_balance]

    def update(self, trades: Sequence[Trade]) -> PerformanceSnapshot:
        """Recompute statistics from the full ledger."""
        self.snapshot = compute_performance(trades, self.starting_balance)
        self.equity_curve = equity_curve(trades, self.starting_balance)

        logger.debug(
            "Performance updated",
            total_trades=self.snapshot.total_trades,
            win_rate=self.snapshot.win_rate,
            total_pnl=self.snapshot.total_pnl,
            max_drawdown_percent=self.snapshot.max_drawdown_percent
        )
        return self.snapshot

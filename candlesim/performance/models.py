"""Data models for performance statistics"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Aggregate statistics derived from the trade ledger"""
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0                     # Percent, 0-100
    total_pnl: float = 0.0
    max_drawdown_percent: float = 0.0
    profit_factor: float = 0.0                # math.inf when there are no losses
    average_trade_duration_hours: float = 0.0

    @property
    def has_unbounded_profit_factor(self) -> bool:
        return math.isinf(self.profit_factor)

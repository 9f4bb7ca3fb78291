"""Default configuration parameters for the indicator, signal and position engine."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class SupertrendParams:
    """Supertrend band parameters."""
    enabled: bool = True
    period: int = 10                 # ATR period
    multiplier: float = 3.0          # Band width in ATRs


@dataclass(frozen=True)
class RSIParams:
    """RSI parameters."""
    enabled: bool = True
    period: int = 14
    overbought: float = 70.0
    oversold: float = 30.0


@dataclass(frozen=True)
class MACDParams:
    """MACD parameters."""
    enabled: bool = True
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


@dataclass(frozen=True)
class MovingAverageParams:
    """Close-price EMA periods attached to every frame."""
    ema_periods: tuple[int, ...] = (20, 50)


@dataclass(frozen=True)
class VolumeParams:
    """Volume analysis parameters."""
    ma_period: int = 20


@dataclass(frozen=True)
class SupportResistanceParams:
    """Rolling support/resistance window."""
    enabled: bool = True
    period: int = 20


@dataclass(frozen=True)
class SignalParams:
    """Weighted signal scoring parameters."""
    min_weighted_score: int = 4              # Score needed for a regular signal
    strong_margin: int = 2                   # Extra score for strong-* label
    min_atr_ratio: float = 0.001             # ATR/close volatility floor
    settle_buffer: int = 3                   # Candles skipped after warm-up
    volume_spike_multiplier: float = 1.4     # Volume vs volume MA

    # Supertrend-only override path
    override_enabled: bool = True
    override_min_score: int = 2
    override_atr_factor: float = 0.5         # Fraction of min_atr_ratio

    # Weights
    supertrend_weight: int = 4
    ema_cross_weight: int = 2
    macd_weight: int = 1
    rsi_weight: int = 1
    vwap_weight: int = 1
    pattern_weight: int = 1
    volume_weight: int = 1


@dataclass(frozen=True)
class RiskConfig:
    """Paper account risk, cost and sizing parameters."""
    stop_loss_percent: float = 0.40
    take_profit_percent: float = 0.80
    position_size_percent: float = 10.0       # % of balance per entry
    commission_rate: float = 0.001
    slippage_rate: float = 0.001              # Price sanity tolerance
    starting_balance: float = 25000.0
    quote_conversion_rate: float = 1.0        # P&L currency multiplier
    max_position_fraction: float = 0.90       # Hard cap on balance per entry


@dataclass(frozen=True)
class ExecutionParams:
    """Signal execution and exit handling parameters."""
    max_signal_age_seconds: Optional[float] = 60.0   # None disables staleness check
    partial_take_profit: bool = True
    partial_take_profit_step_pct: float = 1.0      # TP moved beyond exit price
    add_to_winners: bool = True


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    supertrend: SupertrendParams = field(default_factory=SupertrendParams)
    rsi: RSIParams = field(default_factory=RSIParams)
    macd: MACDParams = field(default_factory=MACDParams)
    moving_averages: MovingAverageParams = field(default_factory=MovingAverageParams)
    volume: VolumeParams = field(default_factory=VolumeParams)
    support_resistance: SupportResistanceParams = field(default_factory=SupportResistanceParams)
    signals: SignalParams = field(default_factory=SignalParams)
    risk: RiskConfig = field(default_factory=RiskConfig)
    execution: ExecutionParams = field(default_factory=ExecutionParams)


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig()

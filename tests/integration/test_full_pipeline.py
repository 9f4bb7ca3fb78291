"""Integration tests for the full candle-to-ledger pipeline."""

import pytest

from candlesim.config import ConfigLoader, build_config
from candlesim.engine import PaperTradingEngine
from candlesim.performance import compute_performance
from candlesim.persistence import (
    dumps_snapshot,
    export_trades_csv,
    import_trades_csv,
    load_state_or_default,
)
from candlesim.state.models import EventKind


def _as_rows(candles):
    return [
        {
            "time": int(c.ts.timestamp() * 1000),
            "open": c.open,
            "high": c.high,
            "low": c.low,
            "close": c.close,
            "volume": c.volume,
        }
        for c in candles
    ]


@pytest.fixture
def config():
    return build_config({"execution": {"max_signal_age_seconds": None}})


@pytest.mark.integration
class TestFullPipeline:
    """Integration tests for the complete refresh cycle."""

    def test_random_walk_invariants(self, config, random_walk_candles):
        """Test ledger and balance invariants over a noisy market."""
        engine = PaperTradingEngine("BTCUSDT", config)

        result = engine.run_cycle(_as_rows(random_walk_candles))

        assert result is not None
        state = result.state
        assert 25000.0 + sum(e.balance_delta for e in result.events) == pytest.approx(state.balance)
        for trade in state.trades:
            assert trade.exit_time >= trade.entry_time
            assert trade.size > 0
        opens = sum(1 for e in result.events if e.kind is EventKind.OPEN)
        closes = sum(1 for e in result.events if e.kind is EventKind.CLOSE)
        assert opens - closes == (1 if state.position is not None else 0)
        assert engine.performance == compute_performance(state.trades, 25000.0)

    def test_signals_only_after_warm_up(self, config, random_walk_candles):
        engine = PaperTradingEngine("BTCUSDT", config)

        result = engine.run_cycle(_as_rows(random_walk_candles))

        first_index = 29
        assert all(s is None for s in result.signals[:first_index])

    def test_snapshot_roundtrip_after_cycle(self, config, random_walk_candles):
        """Test the persisted snapshot restores the exact engine state."""
        engine = PaperTradingEngine("BTCUSDT", config)
        engine.run_cycle(_as_rows(random_walk_candles))

        state, performance = load_state_or_default(
            dumps_snapshot(engine.state, engine.performance), "BTCUSDT", config.risk
        )

        assert state == engine.state
        assert performance == engine.performance

    def test_ledger_roundtrip_preserves_statistics(self, config, random_walk_candles):
        engine = PaperTradingEngine("BTCUSDT", config)
        engine.run_cycle(_as_rows(random_walk_candles))

        imported = import_trades_csv(export_trades_csv(engine.state.trades))
        restored = compute_performance(imported.trades, 25000.0)

        assert restored.total_trades == engine.performance.total_trades
        assert restored.winning_trades + restored.losing_trades == restored.total_trades
        assert restored.total_pnl == pytest.approx(engine.performance.total_pnl, abs=0.01 * max(1, restored.total_trades))

    def test_instrument_overrides_reach_position_engine(self, random_walk_candles):
        """Test SOLUSDT's disabled partial take profit is honoured."""
        overrides = {"execution": {"max_signal_age_seconds": None}}
        engine = PaperTradingEngine("SOLUSDT", ConfigLoader.create().load("SOLUSDT", overrides))

        result = engine.run_cycle(_as_rows(random_walk_candles))

        assert engine.config.execution.partial_take_profit is False
        assert EventKind.PARTIAL_CLOSE not in [e.kind for e in result.events]

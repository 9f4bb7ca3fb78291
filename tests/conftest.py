"""Pytest configuration and shared fixtures."""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from candlesim.data.models import Candle
from candlesim.state.models import ExitReason, PositionSide, Trade

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _make_candle(minute: int, open_: float, high: float, low: float, close: float,
                 volume: float = 1000.0) -> Candle:
    return Candle(
        ts=BASE_TIME + timedelta(minutes=minute),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
    )


def _trend(count: int, start: float, step: float, start_minute: int = 0) -> list[Candle]:
    candles = []
    price = start
    for i in range(count):
        open_ = price
        close = price + step
        candles.append(_make_candle(
            start_minute + i,
            open_,
            max(open_, close) + 0.5,
            min(open_, close) - 0.5,
            close,
            1000.0 + (i % 5) * 100,
        ))
        price = close
    return candles


@pytest.fixture
def base_time() -> datetime:
    """Timestamp of candle 0 in all generated series."""
    return BASE_TIME


@pytest.fixture
def candle_factory() -> Callable[..., Candle]:
    """Factory building a candle ``minute`` minutes after the base time."""
    return _make_candle


@pytest.fixture
def uptrend_candles() -> list[Candle]:
    """40 candles rising by 1.0 per candle with a 2.0 range."""
    return _trend(40, 100.0, 1.0)


@pytest.fixture
def downtrend_candles() -> list[Candle]:
    """40 candles falling by 1.0 per candle with a 2.0 range."""
    return _trend(40, 200.0, -1.0)


@pytest.fixture
def breakout_candles() -> list[Candle]:
    """40 flat candles around 100 followed by one candle closing at 120 on its high."""
    candles = [_make_candle(i, 100.0, 100.5, 99.5, 100.0) for i in range(40)]
    candles.append(_make_candle(40, 100.0, 120.0, 100.0, 120.0))
    return candles


@pytest.fixture
def random_walk_candles() -> list[Candle]:
    """200 seeded random-walk candles with consistent OHLC."""
    rng = random.Random(42)
    candles = []
    price = 100.0
    for i in range(200):
        open_ = price
        close = max(1.0, open_ + rng.uniform(-2.0, 2.0))
        high = max(open_, close) + rng.uniform(0.0, 1.5)
        low = max(0.5, min(open_, close) - rng.uniform(0.0, 1.5))
        candles.append(_make_candle(i, open_, high, low, close, rng.uniform(500.0, 5000.0)))
        price = close
    return candles


@pytest.fixture
def raw_rally_batch() -> list[dict[str, Any]]:
    """Provider-style batch: 60 rising candles as dicts with epoch-ms times."""
    rows = []
    for candle in _trend(60, 100.0, 1.0):
        rows.append({
            "time": int(candle.ts.timestamp() * 1000),
            "open": candle.open,
            "high": candle.high,
            "low": candle.low,
            "close": candle.close,
            "volume": candle.volume,
        })
    return rows


def _make_trade(entry_minute: int, exit_minute: int, pnl: float,
                side: PositionSide = PositionSide.BUY,
                reason: ExitReason = ExitReason.SIGNAL,
                balance_after: float = 0.0) -> Trade:
    size = 10.0
    entry_price = 100.0
    move = pnl / size
    exit_price = entry_price + move if side is PositionSide.BUY else entry_price - move
    return Trade(
        side=side,
        entry_price=entry_price,
        exit_price=exit_price,
        size=size,
        entry_time=BASE_TIME + timedelta(minutes=entry_minute),
        exit_time=BASE_TIME + timedelta(minutes=exit_minute),
        pnl_amount=pnl,
        pnl_percent=pnl / (size * entry_price) * 100,
        exit_reason=reason,
        commissions=2.0,
        balance_after=balance_after,
    )


@pytest.fixture
def trade_factory() -> Callable[..., Trade]:
    """Factory building a 10-unit trade at 100 with the given P&L."""
    return _make_trade

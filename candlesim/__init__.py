"""
candlesim - Indicator, Signal and Paper Position Engine

Derives technical indicators from OHLCV candle batches, synthesizes weighted
directional signals, and replays them through a single-slot paper position
state machine with commission, risk and performance accounting.
"""

__version__ = "0.1.0"
__author__ = "candlesim Team"

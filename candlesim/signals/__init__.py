"""
Signal synthesis module.

Combines indicator confirmations into a weighted bullish/bearish score per
candle and emits at most one directional Signal per candle.
"""

from .generator import SignalDecision, SignalGenerator
from .models import Signal, SignalDirection

__all__ = ["Signal", "SignalDirection", "SignalDecision", "SignalGenerator"]

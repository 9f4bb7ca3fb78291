"""
Market data module.

Canonical candle and indicator frame records plus normalization of raw
provider batches into time-ascending, deduplicated candle sequences.
"""

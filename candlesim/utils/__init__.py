"""
Utility functions module.

Time Semantics:
- Candle timestamps from the market data provider are authoritative
- Wall-clock time is only used for the signal staleness window
- All timestamps are timezone-aware UTC datetimes
"""

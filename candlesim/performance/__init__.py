"""
Performance statistics over the completed trade ledger.
"""

from .models import PerformanceSnapshot
from .tracker import PerformanceTracker, compute_performance

__all__ = ["PerformanceSnapshot", "PerformanceTracker", "compute_performance"]

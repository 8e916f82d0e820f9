"""
Characterization pipeline: synchronize -> bucketize -> regress -> aggregate.

Every stage is a plain function over core objects; nothing here keeps
state between calls.
"""

from .synchronizer import SyncResult, synchronize, filter_acceleration
from .bucketizer import Buckets, bucketize, classify_velocity, velocity_thresholds, is_steady
from .regression import LeastSquaresSolver, numpy_lstsq, solve_bucket, feedback_gain
from .aggregator import analyze_channel, analyze_store


__all__ = [
    "SyncResult",
    "synchronize",
    "filter_acceleration",
    "Buckets",
    "bucketize",
    "classify_velocity",
    "velocity_thresholds",
    "is_steady",
    "LeastSquaresSolver",
    "numpy_lstsq",
    "solve_bucket",
    "feedback_gain",
    "analyze_channel",
    "analyze_store",
]

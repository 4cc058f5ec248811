"""Query API serving run comparisons."""

from vr_benchmark.server.aggregation import AverageAggregator, RunAssembler
from vr_benchmark.server.app import create_app

__all__ = [
    "AverageAggregator",
    "RunAssembler",
    "create_app",
]

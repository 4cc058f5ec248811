"""Client for the run comparison API."""

from vr_benchmark.api.client import ProfileAPIClient, QueryResult

__all__ = [
    "ProfileAPIClient",
    "QueryResult",
]

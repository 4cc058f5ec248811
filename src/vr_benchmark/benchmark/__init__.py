"""Run capture and persistence."""

from vr_benchmark.benchmark.storage import ProfileStore, RunPersister, RunSummaryIndex
from vr_benchmark.benchmark.device import QuestDevice
from vr_benchmark.benchmark.runner import ProfileRunner, CaptureResult

__all__ = [
    "ProfileStore",
    "RunPersister",
    "RunSummaryIndex",
    "QuestDevice",
    "ProfileRunner",
    "CaptureResult",
]

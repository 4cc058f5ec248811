"""
Sample model and per-run metric statistics.

All telemetry, whatever tool produced it, ends up as a MetricSeries:
metric name -> chronologically ordered samples for one run.
"""

import statistics
from dataclasses import dataclass
from typing import Optional

from vr_benchmark.errors import EmptySeriesError

TOTAL_FRAME_TIME = "Total Frame Time"
GPU_TIME = "GPU Time"
CPU_TIME = "CPU Time"

# Frame budget in milliseconds (72 Hz panel leaves ~13.9ms)
DEFAULT_TARGET_FRAME_TIME_MS = 13.0


@dataclass(frozen=True)
class Sample:
    """A single observation of a metric."""
    value: float
    timestamp: int  # milliseconds since unix epoch (UTC)


MetricSeries = dict[str, list[Sample]]


def average_samples(name: str, samples: list[Sample]) -> float:
    """Mean value of one series. Refuses to average nothing."""
    if not samples:
        raise EmptySeriesError(f"Metric '{name}' has no samples to average")
    return statistics.fmean(sample.value for sample in samples)


def compute_averages(metrics: MetricSeries) -> dict[str, float]:
    """
    Average every series of a run.

    Args:
        metrics: Series for one run.

    Returns:
        Metric name -> mean of that run's samples, in the same order.
    """
    return {name: average_samples(name, samples) for name, samples in metrics.items()}


class FrameTimeTargetEvaluator:
    """Decides whether a run stayed inside the frame time budget."""

    def __init__(self, target_ms: Optional[float] = None):
        self.target_ms = DEFAULT_TARGET_FRAME_TIME_MS if target_ms is None else target_ms

    def evaluate(self, averages: dict[str, float]) -> bool:
        """
        Check averaged metrics against the target.

        The target is inclusive: an average of exactly ``target_ms`` passes.
        """
        if TOTAL_FRAME_TIME not in averages:
            raise EmptySeriesError(f"No '{TOTAL_FRAME_TIME}' samples were captured")
        return averages[TOTAL_FRAME_TIME] <= self.target_ms

    def evaluate_series(self, metrics: MetricSeries) -> bool:
        """Evaluate raw series of a run."""
        return self.evaluate(compute_averages(metrics))

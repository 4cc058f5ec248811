"""
Derived metrics.

CPU time is not reported by the compositor; it is what is left of the
total frame time once the GPU time is taken out. Samples are paired by
position, so both inputs must come from the same pass over the log.
"""

from vr_benchmark.analysis.metrics import CPU_TIME, GPU_TIME, TOTAL_FRAME_TIME, MetricSeries, Sample
from vr_benchmark.errors import MisalignedSeriesError


def derive_cpu_time(total: list[Sample], gpu: list[Sample]) -> list[Sample]:
    """
    Subtract GPU time from total frame time, sample by sample.

    Raises:
        MisalignedSeriesError: The series differ in length.
    """
    if len(total) != len(gpu):
        raise MisalignedSeriesError(
            f"Cannot derive {CPU_TIME}: {len(total)} '{TOTAL_FRAME_TIME}' samples "
            f"vs {len(gpu)} '{GPU_TIME}' samples"
        )

    return [
        Sample(value=t.value - g.value, timestamp=t.timestamp)
        for t, g in zip(total, gpu)
    ]


def add_derived_metrics(metrics: MetricSeries) -> MetricSeries:
    """Add the CPU Time series to a run's metrics (in place) and return them."""
    metrics[CPU_TIME] = derive_cpu_time(
        metrics.get(TOTAL_FRAME_TIME, []),
        metrics.get(GPU_TIME, []),
    )
    return metrics

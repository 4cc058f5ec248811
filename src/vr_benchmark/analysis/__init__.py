"""Telemetry parsing and metric computation."""

from vr_benchmark.analysis.metrics import (
    Sample,
    MetricSeries,
    TOTAL_FRAME_TIME,
    GPU_TIME,
    CPU_TIME,
    compute_averages,
    FrameTimeTargetEvaluator,
)
from vr_benchmark.analysis.gpu_counters import GpuMetricParser, parse_gpu_metrics
from vr_benchmark.analysis.frame_timing import FrameTimingParser, parse_frame_timing
from vr_benchmark.analysis.derived import derive_cpu_time, add_derived_metrics

__all__ = [
    "Sample",
    "MetricSeries",
    "TOTAL_FRAME_TIME",
    "GPU_TIME",
    "CPU_TIME",
    "compute_averages",
    "FrameTimeTargetEvaluator",
    "GpuMetricParser",
    "parse_gpu_metrics",
    "FrameTimingParser",
    "parse_frame_timing",
    "derive_cpu_time",
    "add_derived_metrics",
]

"""
Tests for derived metrics, averaging and the frame time target.
"""

import pytest

from vr_benchmark.analysis.derived import add_derived_metrics, derive_cpu_time
from vr_benchmark.analysis.frame_timing import parse_frame_timing
from vr_benchmark.analysis.metrics import (
    CPU_TIME,
    GPU_TIME,
    TOTAL_FRAME_TIME,
    FrameTimeTargetEvaluator,
    Sample,
    compute_averages,
)
from vr_benchmark.errors import EmptySeriesError, MisalignedSeriesError


def samples(*values, start=1000):
    return [Sample(value=v, timestamp=start + i * 10) for i, v in enumerate(values)]


class TestDeriveCpuTime:
    """Tests for CPU time = total - GPU."""

    def test_pointwise_difference(self):
        total = samples(10.0, 12.0, 9.5)
        gpu = samples(4.0, 5.5, 9.5, start=5000)
        cpu = derive_cpu_time(total, gpu)
        assert [s.value for s in cpu] == pytest.approx([6.0, 6.5, 0.0])

    def test_uses_total_timestamps(self):
        """CPU samples take the timestamps of the total series."""
        total = samples(10.0, 12.0)
        gpu = samples(4.0, 5.0, start=5000)
        cpu = derive_cpu_time(total, gpu)
        assert [s.timestamp for s in cpu] == [s.timestamp for s in total]

    def test_empty_inputs(self):
        assert derive_cpu_time([], []) == []

    def test_length_mismatch_fails(self):
        """Mismatched inputs are rejected, never truncated."""
        with pytest.raises(MisalignedSeriesError):
            derive_cpu_time(samples(1.0, 2.0), samples(1.0))

    def test_from_log_line(self):
        """App=4.27ms, CPU&GPU=6.86ms gives 2.59ms of CPU time."""
        metrics = add_derived_metrics(parse_frame_timing(
            "         1668142546.002  3409  1858 I VrApi   : App=4.27ms,CPU&GPU=6.86ms"
        ))
        assert metrics[CPU_TIME][0].value == pytest.approx(2.59, abs=1e-6)
        assert metrics[CPU_TIME][0].timestamp == 1668142546002
        assert len(metrics[CPU_TIME]) == len(metrics[TOTAL_FRAME_TIME]) == len(metrics[GPU_TIME])

    def test_line_missing_field_fails(self):
        """A VrApi line carrying only one of the fields breaks alignment."""
        metrics = parse_frame_timing(
            "1668142546.002 1 2 I VrApi : App=4.27ms,CPU&GPU=6.86ms\n"
            "1668142547.002 1 2 I VrApi : App=4.00ms\n"
        )
        with pytest.raises(MisalignedSeriesError):
            add_derived_metrics(metrics)


class TestComputeAverages:
    """Tests for per-run averages."""

    def test_mean_per_metric(self):
        averages = compute_averages({"A": samples(1.0, 2.0, 3.0), "B": samples(10.0)})
        assert averages == {"A": pytest.approx(2.0), "B": pytest.approx(10.0)}

    def test_empty_series_fails(self):
        with pytest.raises(EmptySeriesError, match="B"):
            compute_averages({"A": samples(1.0), "B": []})


class TestFrameTimeTargetEvaluator:
    """Tests for the pass/fail result of a run."""

    def test_default_target(self):
        assert FrameTimeTargetEvaluator().target_ms == 13.0

    def test_under_target_passes(self):
        assert FrameTimeTargetEvaluator().evaluate({TOTAL_FRAME_TIME: 11.1}) is True

    def test_exactly_target_passes(self):
        """The target is inclusive."""
        assert FrameTimeTargetEvaluator().evaluate({TOTAL_FRAME_TIME: 13.0}) is True

    def test_over_target_fails(self):
        assert FrameTimeTargetEvaluator().evaluate({TOTAL_FRAME_TIME: 13.01}) is False

    def test_series_average_exactly_target(self):
        metrics = {TOTAL_FRAME_TIME: samples(12.0, 14.0), GPU_TIME: samples(5.0, 5.0)}
        assert FrameTimeTargetEvaluator().evaluate_series(metrics) is True

    def test_missing_total_frame_time(self):
        with pytest.raises(EmptySeriesError):
            FrameTimeTargetEvaluator().evaluate({GPU_TIME: 4.0})

    def test_custom_target(self):
        assert FrameTimeTargetEvaluator(target_ms=11.1).evaluate({TOTAL_FRAME_TIME: 12.0}) is False

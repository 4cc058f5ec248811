"""
Profile Runner.

Orchestrates one profiling run:
1. Enable compositor metrics
2. Launch the app and wait for focus
3. Record GPU counters for a fixed window, then the compositor log
4. Parse, derive CPU time, check the frame time target
5. Save the run
"""

import asyncio
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from vr_benchmark.analysis.derived import add_derived_metrics
from vr_benchmark.analysis.frame_timing import parse_frame_timing
from vr_benchmark.analysis.gpu_counters import parse_gpu_metrics
from vr_benchmark.analysis.metrics import FrameTimeTargetEvaluator, MetricSeries, compute_averages
from vr_benchmark.benchmark.device import QuestDevice
from vr_benchmark.benchmark.storage import ProfileStore, RunPersister
from vr_benchmark.config.settings import settings
from vr_benchmark.models import RunSummary


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def build_run_metrics(gpu_output: str, gpu_started_at: int, frame_timing_output: str) -> MetricSeries:
    """
    Turn raw captures into the full set of series for a run.

    Raises:
        ParseError: Either capture is malformed.
        MisalignedSeriesError: Frame timing lines lacked one of the fields.
    """
    metrics = parse_gpu_metrics(gpu_output, gpu_started_at)
    metrics.update(add_derived_metrics(parse_frame_timing(frame_timing_output)))
    return metrics


@dataclass
class CaptureResult:
    """Everything recorded during one run."""
    started_at: int  # epoch ms
    metrics: MetricSeries = field(default_factory=dict)
    averages: dict[str, float] = field(default_factory=dict)
    result: bool = False


class ProfileRunner:
    """Runs a profiling session against the device and stores it."""

    def __init__(
        self,
        device: Optional[QuestDevice] = None,
        store: Optional[ProfileStore] = None,
        duration: Optional[float] = None,
        target_frame_time: Optional[float] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize profile runner.

        Args:
            device: Device to profile. Defaults to a QuestDevice from settings.
            store: Storage for results. Defaults to Redis from settings.
            duration: Seconds of GPU profiling.
            target_frame_time: Frame time budget in ms.
            on_status: Callback for status messages.
        """
        self.device = device or QuestDevice()
        self.store = store
        self.duration = duration if duration is not None else settings.RUN_DURATION
        self.evaluator = FrameTimeTargetEvaluator(
            target_frame_time if target_frame_time is not None else settings.TARGET_FRAME_TIME
        )
        self.on_status = on_status or (lambda msg: None)

    def _log(self, message: str) -> None:
        """Log a status message."""
        self.on_status(message)

    def capture(self) -> CaptureResult:
        """Record and analyze a run without saving it."""
        started_at = now_ms()

        self._log("Enabling compositor metrics...")
        self.device.enable_metrics()
        try:
            self._log("Launching app...")
            pid = self.device.launch()
            self._log(f"App started (pid {pid}), waiting for focus...")
            self.device.wait_for_focused(pid)

            self._log(f"Profiling for {self.duration:g} seconds...")
            gpu_started_at = now_ms()
            gpu_output = self.device.capture_gpu_counters(self.duration)
            frame_timing_output = self.device.capture_frame_timing(pid, lines=math.ceil(self.duration))
        finally:
            self.device.stop()
            self.device.disable_metrics()

        self._log("Parsing profiler output...")
        metrics = build_run_metrics(gpu_output, gpu_started_at, frame_timing_output)
        averages = compute_averages(metrics)

        return CaptureResult(
            started_at=started_at,
            metrics=metrics,
            averages=averages,
            result=self.evaluator.evaluate(averages),
        )

    async def save(self, capture: CaptureResult, description: str) -> RunSummary:
        """Persist a captured run."""
        store = self.store or ProfileStore.from_url()
        try:
            return await RunPersister(store).persist(
                capture.metrics,
                description,
                capture.started_at,
                capture.result,
            )
        finally:
            if self.store is None:
                await store.close()

    def run(self, description: str) -> tuple[CaptureResult, RunSummary]:
        """Capture a run and save it. Nothing is saved if capture fails."""
        capture = self.capture()
        self._log("Saving profiler output...")
        summary = asyncio.run(self.save(capture, description))
        return capture, summary

"""
GPU Counter Parser.

Parses the text printed by ``ovrgpuprofiler -r`` while it runs. The tool
prints one block of ``name : value`` lines per second, blocks separated by
a blank line, and no timestamps at all:

    Clocks / Second                            :   427468384.000
    GPU % Bus Busy                             :          12.054

    Clocks / Second                            :   478906784.000
    GPU % Bus Busy                             :           9.189

Timestamps are therefore reconstructed from the capture start time and
the profiler's fixed sampling cadence.
"""

import logging
import re

from vr_benchmark.analysis.metrics import MetricSeries, Sample
from vr_benchmark.errors import ParseError

logger = logging.getLogger(__name__)

# ovrgpuprofiler samples at 1 Hz
SAMPLE_INTERVAL_MS = 1000

_BLOCK_SEPARATOR = re.compile(r"\n[ \t]*\n")


class GpuMetricParser:
    """Turns ovrgpuprofiler output into timestamped series."""

    def __init__(self, sample_interval_ms: int = SAMPLE_INTERVAL_MS):
        self.sample_interval_ms = sample_interval_ms

    def parse(self, output: str, capture_start_ms: int) -> MetricSeries:
        """
        Parse profiler output.

        Args:
            output: Raw stdout of the profiler.
            capture_start_ms: Wall clock time the capture started (epoch ms).
                The first block is stamped with exactly this time.

        Returns:
            Metric name -> samples, one per block that contains the metric.

        Raises:
            ParseError: A line has no value or a value that is not a number.
        """
        metrics: MetricSeries = {}

        # adb shell -tt turns every newline into \r\r\n
        text = output.replace("\r", "")
        blocks = [block for block in _BLOCK_SEPARATOR.split(text) if block.strip()]

        # Start one interval early so the first increment lands on the start time
        timestamp = capture_start_ms - self.sample_interval_ms
        for block_number, block in enumerate(blocks, 1):
            timestamp += self.sample_interval_ms
            for line in block.split("\n"):
                if not line.strip():
                    continue
                name, value = self._parse_line(line, block_number)
                metrics.setdefault(name, []).append(Sample(value=value, timestamp=timestamp))

        logger.debug("Parsed %d GPU counter blocks, %d metrics", len(blocks), len(metrics))
        return metrics

    def _parse_line(self, line: str, block_number: int) -> tuple[str, float]:
        """Split a ``name : value`` line."""
        name, separator, raw_value = line.partition(":")
        name = name.strip()
        raw_value = raw_value.strip()

        if not separator or not name or not raw_value:
            raise ParseError(f"GPU counter block {block_number}: expected 'name : value', got {line.strip()!r}")

        try:
            value = float(raw_value)
        except ValueError:
            raise ParseError(
                f"GPU counter block {block_number}: value of '{name}' is not a number: {raw_value!r}"
            ) from None

        return name, value


def parse_gpu_metrics(output: str, capture_start_ms: int) -> MetricSeries:
    """Parse ovrgpuprofiler output with the default 1 Hz cadence."""
    return GpuMetricParser().parse(output, capture_start_ms)

"""
VrApi Frame Timing Parser.

Parses compositor statistics from ``logcat -s VrApi -v epoch``. Relevant
lines look like:

    1668142546.002  3409  1858 I VrApi   : FPS=90/90,Prd=29ms,...,TW=1.90ms,App=4.27ms,GD=0.00ms,CPU&GPU=6.86ms,...

Only two fields are kept:
- CPU&GPU: total time spent on the frame
- App: the GPU time the application's own rendering took
"""

import logging

from vr_benchmark.analysis.metrics import GPU_TIME, TOTAL_FRAME_TIME, MetricSeries, Sample
from vr_benchmark.errors import ParseError

logger = logging.getLogger(__name__)

SOURCE_TAG = "VrApi"

# "1668142546.002" - epoch seconds with three fractional digits
TIMESTAMP_WIDTH = 14

# logcat field -> metric name
RETAINED_FIELDS = {
    "CPU&GPU": TOTAL_FRAME_TIME,
    "App": GPU_TIME,
}

UNIT_SUFFIX = "ms"


class FrameTimingParser:
    """Extracts frame timing series from VrApi log lines."""

    def parse(self, output: str) -> MetricSeries:
        """
        Parse logcat output.

        Lines without the VrApi tag are skipped.

        Returns:
            Both retained series, always present, aligned one-to-one by line
            as long as every line carries both fields.

        Raises:
            ParseError: A VrApi line is malformed.
        """
        metrics: MetricSeries = {name: [] for name in RETAINED_FIELDS.values()}

        line_count = 0
        for line_number, line in enumerate(output.splitlines(), 1):
            if SOURCE_TAG not in line:
                continue
            line_count += 1

            head, separator, data = line.partition(": ")
            if not separator:
                raise ParseError(f"VrApi line {line_number}: missing ': ' separator")

            timestamp = self._parse_timestamp(head.strip(), line_number)

            for field in data.strip().split(","):
                key, _, raw_value = field.strip().partition("=")
                name = RETAINED_FIELDS.get(key.strip())
                if name is None:
                    continue
                value = self._parse_value(key.strip(), raw_value, line_number)
                metrics[name].append(Sample(value=value, timestamp=timestamp))

        logger.debug("Parsed %d %s lines", line_count, SOURCE_TAG)
        return metrics

    def _parse_timestamp(self, head: str, line_number: int) -> int:
        """Turn the fixed width ``seconds.millis`` prefix into epoch ms."""
        prefix = head[:TIMESTAMP_WIDTH]
        digits = prefix.replace(".", "")
        if len(prefix) < TIMESTAMP_WIDTH or not (digits.isascii() and digits.isdigit()):
            raise ParseError(f"VrApi line {line_number}: bad timestamp prefix {prefix!r}")
        return int(digits)

    def _parse_value(self, key: str, raw_value: str, line_number: int) -> float:
        """Parse a value like ``4.27ms``."""
        number = raw_value.strip().split(UNIT_SUFFIX)[0]
        try:
            return float(number)
        except ValueError:
            raise ParseError(f"VrApi line {line_number}: {key} is not a number: {raw_value!r}") from None


def parse_frame_timing(output: str) -> MetricSeries:
    """Parse logcat output into Total Frame Time / GPU Time series."""
    return FrameTimingParser().parse(output)

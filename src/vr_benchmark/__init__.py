"""VR Benchmark - frame timing and GPU counter profiler for standalone VR apps."""

__version__ = "0.1.0"

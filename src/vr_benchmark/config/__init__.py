"""Configuration."""

from vr_benchmark.config.settings import Settings, settings

__all__ = ["Settings", "settings"]

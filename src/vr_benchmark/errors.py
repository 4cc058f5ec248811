"""
Profiler error taxonomy.

Every error carries a machine-readable ``kind`` and the HTTP status the
query API answers with, so the CLI and the server report failures the
same way.
"""


class ProfilerError(Exception):
    """Base class for all profiler failures."""

    kind = "profiler_error"
    status_code = 500


class ParseError(ProfilerError):
    """Captured telemetry text could not be parsed."""

    kind = "parse_error"
    status_code = 422


class MisalignedSeriesError(ProfilerError):
    """Two series that must be combined pointwise have different lengths."""

    kind = "misaligned_series"
    status_code = 422


class EmptySeriesError(ProfilerError):
    """A series has no samples to average."""

    kind = "empty_series"
    status_code = 422


class NotFoundError(ProfilerError):
    """A requested run does not exist."""

    kind = "not_found"
    status_code = 404


class StoreError(ProfilerError):
    """Communication with the storage backend failed."""

    kind = "store_error"
    status_code = 503


class AggregationError(ProfilerError):
    """A historical average query returned no data."""

    kind = "aggregation_error"
    status_code = 502


class DeviceError(ProfilerError):
    """adb failed or the device never reached the expected state."""

    kind = "device_error"
    status_code = 500

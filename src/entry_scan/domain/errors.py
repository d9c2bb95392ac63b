# entry_scan/domain/errors.py


class EntryScanError(Exception):
    """Base class for errors raised by the detection engine."""


class InvalidGeometry(EntryScanError, ValueError):
    """Polygon or coordinates are degenerate or structurally malformed."""


class DetectionTimeout(EntryScanError, TimeoutError):
    """A background detection run exceeded the caller's timeout."""


class DetectionFailed(EntryScanError, RuntimeError):
    """A background detection run reported an error and no fallback was allowed."""

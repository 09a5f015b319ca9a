"""
errors.py

Exception taxonomy shared by the engine and the application layer.

- OverlapError: interval insertion conflict. Logged, insert skipped.
- ParseError: malformed timestamp/duration/timezone in external data.
- LoadError: a flight or video could not be created at all.
- MediaTimeoutError: media metadata never became available.
- InvariantViolation: a programming error. Never caught.
"""


class FlightSyncError(Exception):
    """Base class for recoverable engine errors."""


class OverlapError(FlightSyncError):
    """Raised when an interval intersects one already held by an index."""

    def __init__(self, interval, existing):
        self.interval = interval
        self.existing = existing
        super().__init__(
            f"interval [{interval.start}, {interval.stop}) overlaps "
            f"[{existing.start}, {existing.stop}) of {_payload_name(existing.payload)}"
        )


class ParseError(FlightSyncError, ValueError):
    """Raised when a field of external metadata cannot be parsed."""


class LoadError(FlightSyncError):
    """Raised when a flight or video cannot be created."""


class MediaTimeoutError(LoadError):
    """Raised when a media element never reports its metadata."""


class InvariantViolation(AssertionError):
    """Internal consistency check failed; indicates a bug."""


def _payload_name(payload) -> str:
    if payload is None:
        return "<none>"
    return getattr(payload, "name", repr(payload))

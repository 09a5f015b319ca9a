"""
timeparse.py

Parsing of timestamps, durations and timezone offsets found in session
metadata. All times inside the engine are float seconds since the Unix
epoch (UTC).

Durations and timezones are data-quality fields: a bad value is logged
and treated as absent. Timestamps are required, so a bad one raises
ParseError to the caller.
"""

import logging
log = logging.getLogger(__name__)

import re
from datetime import datetime, timezone
from typing import Any, Optional

from flight_core.errors import ParseError

_CLOCK_RE = re.compile(r"^(\d+):([0-5]?\d)(?::([0-5]?\d(?:\.\d+)?))?$")
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def parse_timestamp(value: Any) -> float:
    """
    Convert a timestamp to epoch seconds.
    - int/float: epoch milliseconds (negative values clamp to the epoch)
    - datetime: naive values are taken as UTC
    - str: ISO 8601, with "Z" or an offset; naive strings are UTC
    """
    if isinstance(value, bool) or value is None:
        raise ParseError(f"invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return max(0.0, float(value)) / 1000.0
    if isinstance(value, datetime):
        return _as_utc(value).timestamp()
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ParseError(f"invalid timestamp: {value!r}") from exc
        return _as_utc(parsed).timestamp()
    raise ParseError(f"invalid timestamp: {value!r}")


def parse_duration(value: Any) -> Optional[float]:
    """Return a duration in seconds, or None when absent or unparseable."""
    if isinstance(value, bool):
        log.warning(f"Couldn't parse duration in metadata: {value!r}")
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not value:
        return None
    try:
        return _parse_clock(value)
    except ParseError as exc:
        log.warning(f"Couldn't parse duration in metadata: {exc}")
        return None


def parse_timezone(value: Any) -> float:
    """
    Return a timezone offset from UTC in seconds.
    - None/"" : the local machine offset
    - int/float: seconds
    - str: "+02:00", "-0530" or "Z"
    """
    if value is None or value == "":
        return local_utc_offset()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text in ("Z", "z"):
            return 0.0
        match = _OFFSET_RE.match(text)
        if match:
            sign, hours, minutes = match.groups()
            offset = int(hours) * 3600 + int(minutes) * 60
            return float(-offset if sign == "-" else offset)
    log.warning(f"Couldn't parse timezone in metadata: {value!r}, using local time")
    return local_utc_offset()


def local_utc_offset() -> float:
    offset = datetime.now().astimezone().utcoffset()
    return offset.total_seconds() if offset is not None else 0.0


def format_timestamp(seconds: float) -> str:
    """ISO 8601 UTC representation, e.g. 2024-05-01T10:00:00Z."""
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if moment.microsecond:
        text = moment.isoformat(timespec="milliseconds")
    else:
        text = moment.isoformat(timespec="seconds")
    return text.replace("+00:00", "Z")


def format_clock(seconds: float, offset: float = 0.0) -> str:
    """HH:MM:SS of `seconds` shifted by a timezone `offset`."""
    moment = datetime.fromtimestamp(seconds + offset, tz=timezone.utc)
    return moment.strftime("%H:%M:%S")


def _parse_clock(value: Any) -> float:
    if not isinstance(value, str):
        raise ParseError(repr(value))
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ParseError(repr(value))
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds or 0)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment

"""
model.py

Immutable records consumed by the engine and the sample type it produces.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import numpy as np


class EntityKind(Enum):
    """Discriminant carried by every interval payload."""

    FLIGHT = "flight"
    VIDEO = "video"


@dataclass(frozen=True)
class TrackFix:
    """
    One parsed flight-log fix.
    - timestamp: anything flight_core.timeparse.parse_timestamp accepts
    - latitude/longitude: degrees
    - altitude: GPS altitude in metres
    """
    timestamp: Any
    latitude: float
    longitude: float
    altitude: float


@dataclass(frozen=True)
class TrackRecord:
    """A parsed flight log: the pilot it belongs to and its fixes in time order."""
    pilot: str
    fixes: List[TrackFix] = field(default_factory=list)


@dataclass(frozen=True)
class VideoRecord:
    """
    Metadata describing a video or image clip.
    - filename: file name relative to the session folder
    - pilot: owning pilot name ("" for the any-pilot)
    - timestamp: start time of the clip
    - duration: seconds, "HH:MM:SS" string, or None to ask the media element
    - rate: playback rate multiplier (> 0)
    - latitude/longitude/altitude: optional explicit position
    """
    filename: str
    pilot: str = ""
    timestamp: Any = None
    duration: Any = None
    rate: Any = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None

    @property
    def has_position(self) -> bool:
        return bool(self.longitude or self.latitude or self.altitude)


@dataclass(frozen=True)
class Sample:
    """A (time, position) pair; position is an ECEF vector in metres."""
    time: float
    position: np.ndarray = field(compare=False)

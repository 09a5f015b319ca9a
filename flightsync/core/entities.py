"""
entities.py

Pilots and the payloads they own on the timeline: flights and videos.

Each payload carries `kind` (an EntityKind) so that pilots and the
session can route it to the right interval index without type checks.
"""

from __future__ import annotations

import logging
log = logging.getLogger(__name__)

from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

from flight_core.errors import InvariantViolation, LoadError, MediaTimeoutError, ParseError
from flight_core.geodesy import geodetic_to_cartesian, interpolate_position, is_valid_geodetic
from flight_core.intervals import Interval, IntervalIndex
from flight_core.model import EntityKind, Sample, TrackRecord, VideoRecord
from flight_core.smoothing import DEFAULT_WINDOW, sample_times, smooth_samples
from flight_core.timeparse import format_timestamp, parse_duration, parse_timestamp
from flightsync.core.media import MediaElement


class Pilot:
    """A named owner of flight and video intervals."""

    def __init__(self, name: str, ordinal: int, color: str):
        if not isinstance(name, str):
            raise InvariantViolation(f"pilot name must be a string, got {name!r}")
        self.name = name
        self.ordinal = ordinal
        self.color = color
        self.flights = IntervalIndex()
        self.videos = IntervalIndex()

    def __repr__(self) -> str:
        return f"Pilot({self.display_name!r})"

    @property
    def is_any(self) -> bool:
        return self.name == ""

    @property
    def display_name(self) -> str:
        return self.name or "Any pilot"

    def intervals_for(self, obj) -> IntervalIndex:
        return self.flights if obj.kind is EntityKind.FLIGHT else self.videos

    def add(self, obj) -> bool:
        """Index `obj`; safe to call again for an object already held."""
        if obj.interval is None or obj.interval.payload is not obj:
            raise InvariantViolation(f"{obj.name} has no interval of its own")
        intervals = self.intervals_for(obj)
        intervals.remove_by_payload(obj)
        added = intervals.insert(obj.interval)
        if not added:
            log.warning(f"{obj.name} overlaps another {obj.kind.value} of {self.display_name}")
        obj.owner = self
        return added

    def remove(self, obj) -> bool:
        removed = self.intervals_for(obj).remove_by_payload(obj)
        if obj.owner is self:
            obj.owner = None
        return removed


class PilotRegistry:
    """Pilots in creation order; the any-pilot ("") is always first."""

    def __init__(self, colors: Sequence[str]):
        self._colors = list(colors) or ["#ffffff"]
        self._pilots: Dict[str, Pilot] = {}
        self.any = self.ensure("")

    def __iter__(self) -> Iterator[Pilot]:
        return iter(list(self._pilots.values()))

    def __len__(self) -> int:
        return len(self._pilots)

    def __contains__(self, name: str) -> bool:
        return name in self._pilots

    def get(self, name: str) -> Optional[Pilot]:
        return self._pilots.get(name)

    def ensure(self, name: str) -> Pilot:
        pilot = self._pilots.get(name)
        if pilot is None:
            ordinal = len(self._pilots)
            pilot = Pilot(name, ordinal, self._colors[ordinal % len(self._colors)])
            self._pilots[name] = pilot
            log.debug(f"New pilot {pilot.display_name} ({pilot.color})")
        return pilot

    def next(self, pilot: Pilot) -> Pilot:
        ordered = list(self._pilots.values())
        return ordered[(pilot.ordinal + 1) % len(ordered)]

    def prev(self, pilot: Pilot) -> Pilot:
        ordered = list(self._pilots.values())
        return ordered[(pilot.ordinal - 1) % len(ordered)]

    def first_named(self) -> Optional[Pilot]:
        for pilot in self._pilots.values():
            if pilot.name:
                return pilot
        return None


class Flight:
    """A flight track: raw samples, the smoothed tracker samples, and its interval."""

    kind = EntityKind.FLIGHT

    def __init__(self, name: str, samples: Sequence[Sample], smoothed: Sequence[Sample]):
        if not samples:
            raise LoadError(f"Flight log {name} contains no fixes")
        if samples[0].time == samples[-1].time:
            raise LoadError(f"Flight log {name} spans no time")
        self.name = name
        self.samples: List[Sample] = list(samples)
        self.smoothed_samples: List[Sample] = list(smoothed)
        self._times = sample_times(self.samples)
        self._smoothed_times = sample_times(self.smoothed_samples)
        self.interval = Interval(self.samples[0].time, self.samples[-1].time, payload=self)
        self.owner: Optional[Pilot] = None

    def __repr__(self) -> str:
        return f"Flight({self.name!r})"

    @classmethod
    def from_record(
        cls,
        name: str,
        record: TrackRecord,
        *,
        window: int = DEFAULT_WINDOW,
        altitude_offset: float = 0.0,
    ) -> "Flight":
        samples: List[Sample] = []
        for fix in record.fixes:
            try:
                time = parse_timestamp(fix.timestamp)
            except ParseError as exc:
                raise LoadError(f"Flight log {name} has a bad fix timestamp: {exc}") from exc
            position = geodetic_to_cartesian(
                fix.longitude, fix.latitude, fix.altitude - altitude_offset
            )
            samples.append(Sample(time, position))

        if any(b.time < a.time for a, b in zip(samples, samples[1:])):
            log.warning(f"Flight log {name} has fixes out of order; sorting by time")
            samples.sort(key=lambda s: s.time)

        return cls(name, samples, smooth_samples(samples, window))

    @property
    def pilot(self) -> Optional[Pilot]:
        return self.owner

    def position_at(self, time: float) -> Optional[np.ndarray]:
        return interpolate_position(self.samples, time, self._times)

    def tracker_position_at(self, time: float) -> Optional[np.ndarray]:
        """Position on the smoothed trajectory the camera follows."""
        return interpolate_position(self.smoothed_samples, time, self._smoothed_times)

    def save(self) -> str:
        return self.name


class Video:
    """A video or still image placed on the timeline."""

    kind = EntityKind.VIDEO

    def __init__(self, record: VideoRecord, element: MediaElement, is_image: bool = False):
        self.record = record
        self.name = self.filename = record.filename
        self.element = element
        self.is_image = is_image
        self.rate = 1.0
        self.start: Optional[float] = None
        self.duration: Optional[float] = None
        self.interval: Optional[Interval] = None
        self.owner: Optional[Pilot] = None
        self.position: Optional[np.ndarray] = None
        self.explicit_position = False

    def __repr__(self) -> str:
        return f"Video({self.name!r})"

    @classmethod
    def create(
        cls,
        record: VideoRecord,
        element: MediaElement,
        pilot: Optional[Pilot] = None,
        *,
        is_image: bool = False,
        default_duration: float = 5.0,
        media_timeout: float = 10.0,
    ) -> "Video":
        """
        Build a video from its metadata, asking `element` for the duration
        when the metadata has none. Raises LoadError (MediaTimeoutError when
        the element never reports a duration).
        """
        video = cls(record, element, is_image)
        video.rate = _validated_rate(record.rate)

        try:
            video.start = parse_timestamp(record.timestamp)
        except ParseError as exc:
            raise LoadError(f"Invalid timestamp for video {video.name}: {exc}") from exc

        duration = parse_duration(record.duration)
        if not (is_image or record.duration):
            if not element.wait_for_metadata(media_timeout):
                raise MediaTimeoutError(f"Timeout finding duration of video: {video.name}")
            if not element.duration:
                raise MediaTimeoutError(f"Unable to find duration of video: {video.name}")
            duration = float(element.duration)

        video.duration = duration or default_duration
        video.interval = Interval(
            video.start, video.start + video.duration * video.rate, payload=video
        )
        video.position = video._resolve_position(pilot)
        return video

    @property
    def pilot(self) -> Optional[Pilot]:
        return self.owner

    def elapsed_at(self, time: float) -> float:
        """Media position (seconds) corresponding to timeline `time`."""
        return (time - self.interval.start) / self.rate

    def save(self) -> dict:
        data = {
            "filename": self.filename,
            "pilot": self.owner.name if self.owner is not None else self.record.pilot,
            "timestamp": format_timestamp(self.start),
            "duration": self.duration,
            "rate": self.rate,
        }
        if self.explicit_position:
            data["position"] = {
                "latitude": self.record.latitude or 0,
                "longitude": self.record.longitude or 0,
                "altitude": self.record.altitude or 0,
            }
        return data

    def _resolve_position(self, pilot: Optional[Pilot]) -> Optional[np.ndarray]:
        record = self.record
        if record.has_position:
            longitude = record.longitude or 0
            latitude = record.latitude or 0
            altitude = record.altitude or 0
            if is_valid_geodetic(longitude, latitude, altitude):
                self.explicit_position = True
                return geodetic_to_cartesian(longitude, latitude, altitude)
            log.warning(
                f"Invalid latitude/longitude/altitude position: {latitude} {longitude} {altitude}"
            )

        if pilot is None:
            return None
        # Borrow the position of the flight in the air when the clip starts.
        flight = pilot.flights.find_payload(self.start)
        if flight is not None:
            return flight.position_at(self.start)
        return None


def _validated_rate(rate) -> float:
    if rate is None or rate == "":
        return 1.0
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
        log.warning(f"Invalid rate for video: {rate!r}")
        return 1.0
    return float(rate)

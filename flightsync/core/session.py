"""
session.py

Everything loaded into one viewing session: pilots, their flights and
videos, and the merged global timeline.

The global timeline is never patched in place. Any change of membership
rebuilds it from the pilots' own indices (flights first, then videos, so
videos overlay flights), which keeps it free of stale entries.
"""

from __future__ import annotations

import json
import logging
log = logging.getLogger(__name__)

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from PyQt5 import QtCore

from flight_core.errors import LoadError
from flight_core.intervals import IntervalIndex, merge
from flight_core.model import EntityKind, TrackRecord, VideoRecord
from flight_core.timeparse import parse_duration, parse_timezone
from flightsync.core.clock import Clock
from flightsync.core.config import Config
from flightsync.core.config_store import ConfigModel
from flightsync.core.entities import Flight, PilotRegistry, Video
from flightsync.core.media import MediaElement, assume_file_type, default_element_factory
from flightsync.core.metadata import read_metadata, read_track_json, video_record_from_metadata

TrackReader = Callable[[Path], TrackRecord]
ElementFactory = Callable[[str, bool], MediaElement]


class Session(QtCore.QObject):
    """
    Signals:
      - warning(str): recoverable problem, show without blocking
      - failure(str): a load failed, show prominently
      - timeline_changed(IntervalIndex): the global timeline was rebuilt
    """
    warning = QtCore.pyqtSignal(str)
    failure = QtCore.pyqtSignal(str)
    timeline_changed = QtCore.pyqtSignal(object)

    def __init__(self, config: Optional[ConfigModel] = None):
        super().__init__()
        self._config = config or Config.current()
        self.pilots = PilotRegistry(self._config.colors)
        self.intervals = IntervalIndex()
        self.timezone = 0.0
        self.trailing: Optional[float] = None
        self.folder: Optional[Path] = None

    @property
    def config(self) -> ConfigModel:
        return self._config

    @config.setter
    def config(self, config: ConfigModel) -> None:
        # Applies to later loads; entities already on the timeline keep their settings
        self._config = config

    def path_for(self, filename: str) -> Path:
        if self.folder is not None:
            return self.folder / filename
        return Path(filename)

    # ------------------------------------------------------------------
    # Creation and removal
    # ------------------------------------------------------------------
    def create_flight(self, record: TrackRecord, name: str, *, rebuild: bool = True) -> Flight:
        cfg = self._config
        flight = Flight.from_record(
            name,
            record,
            window=cfg.tracker_window,
            altitude_offset=cfg.altitude_offset_m,
        )
        self._index(flight, record.pilot)
        if rebuild:
            self.rebuild()
        return flight

    def create_video(
        self,
        record: VideoRecord,
        element_factory: ElementFactory = default_element_factory,
        *,
        rebuild: bool = True,
    ) -> Video:
        cfg = self._config
        kind = assume_file_type(record.filename, cfg.image_extensions, cfg.video_extensions)
        if kind is None:
            log.warning(f"Unknown media type for {record.filename}, treating it as a video")
        is_image = kind is cfg.image_extensions
        element = element_factory(str(self.path_for(record.filename)), is_image)
        video = Video.create(
            record,
            element,
            self.pilots.get(record.pilot),
            is_image=is_image,
            default_duration=cfg.default_duration_s,
            media_timeout=cfg.media_timeout_s,
        )
        self._index(video, record.pilot)
        if rebuild:
            self.rebuild()
        return video

    def delete(self, obj: Union[Flight, Video]) -> None:
        pilot = obj.owner
        if pilot is not None:
            pilot.remove(obj)
        if obj.kind is EntityKind.VIDEO:
            obj.element.hide()
            if obj.element.playable:
                obj.element.pause()
        log.info(f"Deleted {obj.kind.value} {obj.name}")
        self.rebuild()

    def _index(self, obj: Union[Flight, Video], pilot_name: str) -> None:
        pilot = self.pilots.ensure(pilot_name)
        if not pilot.add(obj):
            self._warn(f"{obj.name} overlaps another {obj.kind.value} of {pilot.display_name}")

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------
    def rebuild(self) -> IntervalIndex:
        pilots = list(self.pilots)
        self.intervals = merge(
            *(pilot.flights for pilot in pilots),
            *(pilot.videos for pilot in pilots),
        )
        self.timeline_changed.emit(self.intervals)
        return self.intervals

    def loaded(self, clock: Clock, last: Optional[Union[Flight, Video]] = None) -> Optional[float]:
        """Rebuild, fit the clock to the timeline and park it on `last` (or the start)."""
        self.rebuild()
        current = None
        if len(self.intervals):
            clock.set_bounds(self.intervals.start, self.intervals.stop)
            current = self.intervals.start
        if last is not None and last.interval is not None:
            current = last.interval.start
        if current is not None:
            clock.current_time = current
        return current

    def payloads(self, kind: Optional[EntityKind] = None) -> List[Any]:
        found = []
        for pilot in self.pilots:
            for index in (pilot.flights, pilot.videos):
                for payload in index.payloads():
                    if kind is None or payload.kind is kind:
                        found.append(payload)
        return found

    # ------------------------------------------------------------------
    # Folder loading
    # ------------------------------------------------------------------
    def load_folder(
        self,
        folder: Union[str, Path],
        track_reader: TrackReader = read_track_json,
        element_factory: ElementFactory = default_element_factory,
    ) -> None:
        self.folder = Path(folder)
        metadata = read_metadata(self.folder)

        # Seconds to offset displayed timestamps, and flight trail length.
        self.timezone = parse_timezone(metadata.get("timezone"))
        self.trailing = parse_duration(metadata.get("trailing"))

        for name in _as_list(metadata.get("flights")):
            try:
                self.load_flight(str(name), track_reader, rebuild=False)
            except LoadError as exc:
                self._fail(f"Couldn't load flight {name}: {exc}")

        for entry in _as_list(metadata.get("videos")):
            try:
                self.create_video(video_record_from_metadata(entry), element_factory, rebuild=False)
            except LoadError as exc:
                self._fail(f"Couldn't load video {_entry_name(entry)}: {exc}")

        self.rebuild()

    def load_flight(
        self,
        filename: str,
        track_reader: TrackReader = read_track_json,
        *,
        rebuild: bool = True,
    ) -> Flight:
        if assume_file_type(filename, self._config.track_extensions) is None:
            log.warning(f"Unexpected extension for flight log {filename}")
        record = track_reader(self.path_for(filename))
        return self.create_flight(record, filename, rebuild=rebuild)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "flights": [],
            "videos": [],
            "timezone": self.timezone,
            "trailing": self.trailing,
        }
        for pilot in self.pilots:
            data["flights"].extend(flight.save() for flight in pilot.flights.payloads())
            data["videos"].extend(video.save() for video in pilot.videos.payloads())
        return data

    def snapshot_json(self) -> str:
        return json.dumps(self.snapshot(), indent=4)

    # ------------------------------------------------------------------
    # Surfaces
    # ------------------------------------------------------------------
    def _warn(self, message: str) -> None:
        log.warning(message)
        self.warning.emit(message)

    def _fail(self, message: str) -> None:
        log.error(message)
        self.failure.emit(message)


def _as_list(value) -> Iterable:
    if not value:
        return []
    if isinstance(value, list):
        return value
    log.warning(f"Expected a list in metadata, got {type(value).__name__}")
    return []


def _entry_name(entry) -> str:
    if isinstance(entry, dict):
        return str(entry.get("filename", "<unnamed>"))
    return repr(entry)

"""
engine.py

Wires the clock, session, resolver, seek engine and media synchronizer
into one object a front-end can drive.

Resolution flows clock tick -> resolver -> synchronizer; control flows
key press -> seek engine -> clock -> tick fan-out.
"""

from __future__ import annotations

import logging
log = logging.getLogger(__name__)

from pathlib import Path
from typing import Optional, Union

from flight_core.model import EntityKind, TrackRecord, VideoRecord
from flight_core.seek import Direction, SeekResult
from flightsync.core.clock import Clock, ClockDriver
from flightsync.core.config import Config
from flightsync.core.config_store import ConfigModel
from flightsync.core.entities import Flight, Video
from flightsync.core.media import default_element_factory
from flightsync.core.media_sync import MediaSynchronizer
from flightsync.core.metadata import read_track_json
from flightsync.core.resolver import ActiveEntityResolver
from flightsync.core.seek_engine import SeekEngine
from flightsync.core.session import ElementFactory, Session, TrackReader


class SyncEngine:
    """One session's timeline engine."""

    def __init__(
        self,
        config: Optional[ConfigModel] = None,
        *,
        element_factory: ElementFactory = default_element_factory,
        track_reader: TrackReader = read_track_json,
    ):
        cfg = config or Config.current()
        self.config = cfg
        self.element_factory = element_factory
        self.track_reader = track_reader

        self.clock = Clock(rate=cfg.default_rate)
        self.session = Session(cfg)
        self.resolver = ActiveEntityResolver(self.session.pilots)
        self.seeker = SeekEngine(
            self.clock,
            lambda: self.session.intervals,
            step_seconds=cfg.jump_seconds,
            epsilon=cfg.seek_epsilon_s,
        )
        self.synchronizer = MediaSynchronizer(
            self.clock,
            abs_tolerance=cfg.sync_abs_tolerance_s,
            rel_tolerance=cfg.sync_rel_tolerance,
            reverse_rate=cfg.reverse_creep_rate,
        )
        self.driver = ClockDriver(self.clock, cfg.tick_interval_ms)

        self.clock.ticked.connect(self.resolver.on_tick)
        self.resolver.video_changed.connect(self.synchronizer.on_video_changed)

        if config is None:
            # Follow the shared settings as they are saved
            Config.subscribe(self.apply_config)

    def apply_config(self, cfg: ConfigModel) -> None:
        """Adopt changed tunables; the clock keeps its current rate and position."""
        self.config = cfg
        self.session.config = cfg
        self.seeker.step_seconds = float(cfg.jump_seconds)
        self.seeker.epsilon = float(cfg.seek_epsilon_s)
        self.synchronizer.abs_tolerance = cfg.sync_abs_tolerance_s
        self.synchronizer.rel_tolerance = cfg.sync_rel_tolerance
        self.synchronizer.reverse_rate = cfg.reverse_creep_rate
        self.driver.set_interval(cfg.tick_interval_ms)
        log.info("Settings reloaded")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_folder(self, folder: Union[str, Path]) -> None:
        self.session.load_folder(folder, self.track_reader, self.element_factory)
        log.info(f"Loaded {folder}: {len(self.session.intervals)} timeline segments")
        first = self.session.pilots.first_named()
        if first is not None:
            self.resolver.change_pilot(first)
        self.loaded()

    def load_flight(self, record: TrackRecord, name: str) -> Flight:
        flight = self.session.create_flight(record, name)
        self.loaded(flight)
        return flight

    def load_video(self, record: VideoRecord) -> Video:
        video = self.session.create_video(record, self.element_factory)
        self.loaded(video)
        return video

    def loaded(self, last: Optional[Union[Flight, Video]] = None) -> None:
        self.session.loaded(self.clock, last)
        if last is not None and last.owner is not None:
            self.resolver.change_pilot(last.owner)
        self.clock.raise_tick()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def seek(self, direction: Direction, snap: bool = False) -> Optional[SeekResult]:
        return self.seeker.seek(direction, snap)

    def toggle_running(self) -> bool:
        running = self.clock.toggle_running()
        self.clock.raise_tick()
        return running

    def select(self, obj: Union[Flight, Video]) -> bool:
        """Bring `obj` on screen: switch to its pilot and jump into it if needed."""
        if obj is None or obj.interval is None or obj.owner is None:
            return False

        changed = False
        if self.resolver.active_pilot is not obj.owner:
            self.resolver.change_pilot(obj.owner)
            changed = True
        if not obj.interval.contains(self.clock.current_time):
            self.clock.current_time = obj.interval.start
            changed = True

        if changed:
            log.info(f"Selected {obj.kind.value} {obj.name} of {obj.owner.display_name}")
            self.clock.running = True
            self.clock.raise_tick()
        return changed

    def delete_active(self) -> Optional[Union[Flight, Video]]:
        """Delete the active video, or the active flight when no video is showing."""
        resolver = self.resolver
        if resolver.active_video is not None:
            target = resolver.active_video
            resolver.clear_video()
        elif resolver.active_flight is not None:
            target = resolver.active_flight
            resolver.clear_flight()
        else:
            return None
        self.session.delete(target)
        self.clock.raise_tick()
        return target

    def active_kind(self) -> Optional[EntityKind]:
        if self.resolver.active_video is not None:
            return EntityKind.VIDEO
        if self.resolver.active_flight is not None:
            return EntityKind.FLIGHT
        return None

"""
resolver.py

Decides, on every clock tick, which flight and which video are active
for the selected pilot, and announces transitions.

The active pilot's own videos win; when it has none at the current time
the any-pilot's videos are consulted. Payload identity is the only thing
compared, so re-confirming the same flight every tick is silent.
"""

from __future__ import annotations

import logging
log = logging.getLogger(__name__)

from dataclasses import dataclass
from typing import Optional

import numpy as np
from PyQt5 import QtCore

from flightsync.core.entities import Flight, Pilot, PilotRegistry, Video


@dataclass(frozen=True)
class ActiveEntities:
    flight: Optional[Flight] = None
    video: Optional[Video] = None


class ActiveEntityResolver(QtCore.QObject):
    """
    Signals:
      - flight_changed(old, new)
      - video_changed(old, new)
      - pilot_changed(old, new)
    """
    flight_changed = QtCore.pyqtSignal(object, object)
    video_changed = QtCore.pyqtSignal(object, object)
    pilot_changed = QtCore.pyqtSignal(object, object)

    def __init__(self, pilots: PilotRegistry):
        super().__init__()
        self._pilots = pilots
        self.active_pilot: Pilot = pilots.any
        self.active_flight: Optional[Flight] = None
        self.active_video: Optional[Video] = None
        self.tracked_position: Optional[np.ndarray] = None

    @property
    def pilots(self) -> PilotRegistry:
        return self._pilots

    def resolve_active(self, time: float, pilot: Optional[Pilot] = None) -> ActiveEntities:
        pilot = pilot or self.active_pilot
        flight = pilot.flights.find_payload(time)
        video = pilot.videos.find_payload(time)
        if video is None and pilot is not self._pilots.any:
            video = self._pilots.any.videos.find_payload(time)
        return ActiveEntities(flight, video)

    @QtCore.pyqtSlot(object)
    def on_tick(self, clock) -> None:
        now = clock.current_time
        active = self.resolve_active(now)

        if active.flight is not self.active_flight:
            self._change_flight(active.flight)
        if active.video is not self.active_video:
            self._change_video(active.video)

        if self.active_flight is not None:
            self.tracked_position = self.active_flight.tracker_position_at(now)

    # ------------------------------------------------------------------
    # Pilot navigation
    # ------------------------------------------------------------------
    def change_pilot(self, pilot: Pilot) -> None:
        """Select `pilot`; the next tick picks up its flight and video."""
        old = self.active_pilot
        if pilot is old:
            return
        self.active_pilot = pilot
        log.info(f"Pilot {old.display_name} -> {pilot.display_name}")
        self.pilot_changed.emit(old, pilot)

    def next_pilot(self) -> Pilot:
        self.change_pilot(self._pilots.next(self.active_pilot))
        return self.active_pilot

    def prev_pilot(self) -> Pilot:
        self.change_pilot(self._pilots.prev(self.active_pilot))
        return self.active_pilot

    def clear_flight(self) -> None:
        if self.active_flight is not None:
            self._change_flight(None)

    def clear_video(self) -> None:
        if self.active_video is not None:
            self._change_video(None)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _change_flight(self, flight: Optional[Flight]) -> None:
        old = self.active_flight
        self.active_flight = flight
        if flight is None:
            self.tracked_position = None
        log.info(f"Flight {_name(old)} -> {_name(flight)}")
        self.flight_changed.emit(old, flight)

    def _change_video(self, video: Optional[Video]) -> None:
        old = self.active_video
        self.active_video = video
        log.info(f"Video {_name(old)} -> {_name(video)}")
        self.video_changed.emit(old, video)


def _name(obj) -> Optional[str]:
    return obj.name if obj is not None else None

"""
media_sync.py

Keeps the active video's media element locked to the session clock.

While a video is active the clock runs at the video's own rate, so one
clock second is one media second (times the video rate). Media elements
cannot play backwards; when the clock runs in reverse the element creeps
forward slowly and is re-seeked whenever it drifts outside tolerance.
"""

from __future__ import annotations

import logging
log = logging.getLogger(__name__)

import math
from typing import Optional

from flightsync.core.clock import Clock
from flightsync.core.entities import Video


class MediaSynchronizer:
    def __init__(
        self,
        clock: Clock,
        *,
        abs_tolerance: float = 1.0,
        rel_tolerance: float = 0.1,
        reverse_rate: float = 0.1,
    ):
        self._clock = clock
        self.abs_tolerance = abs_tolerance
        self.rel_tolerance = rel_tolerance
        self.reverse_rate = reverse_rate
        self._video: Optional[Video] = None
        self._original_rate: Optional[float] = None
        self._connected = False

    @property
    def active(self) -> Optional[Video]:
        return self._video

    @property
    def original_rate(self) -> Optional[float]:
        return self._original_rate

    def on_video_changed(self, old: Optional[Video], new: Optional[Video]) -> None:
        if self._video is not None:
            self.deactivate()
        if new is not None:
            self.activate(new)

    def activate(self, video: Video) -> None:
        if self._video is not None:
            self.deactivate()
        clock = self._clock
        self._video = video
        self._original_rate = clock.rate
        clock.rate = video.rate * clock.direction
        log.info(f"Playing {video.name} at clock rate {clock.rate}")

        if video.element.playable:
            clock.ticked.connect(self.sync)
            self._connected = True
            self.sync()

        video.element.show()

    def deactivate(self) -> None:
        video = self._video
        if video is None:
            return
        clock = self._clock
        video.element.hide()
        if self._connected:
            clock.ticked.disconnect(self.sync)
            self._connected = False
        if video.element.playable:
            video.element.pause()

        clock.rate = abs(self._original_rate) * clock.direction
        log.info(f"Stopped {video.name}, clock rate back to {clock.rate}")
        self._video = None
        self._original_rate = None

    def sync(self, *_args) -> None:
        video = self._video
        if video is None:
            return
        clock = self._clock
        element = video.element

        at = video.elapsed_at(clock.current_time)
        if not math.isclose(
            at, element.current_position, rel_tol=self.rel_tolerance, abs_tol=self.abs_tolerance
        ):
            log.info(f"Syncing {video.name} {element.current_position} -> {at}")
            element.current_position = at

        playback_rate = self.reverse_rate if clock.rate < 0 else 1.0
        if element.playback_rate != playback_rate:
            element.playback_rate = playback_rate

        if clock.running and element.paused:
            element.play()
        elif not clock.running and not element.paused:
            element.pause()

"""Applies seek decisions to the session clock."""

from __future__ import annotations

import logging
log = logging.getLogger(__name__)

from typing import Callable, Optional

from flight_core.errors import InvariantViolation
from flight_core.intervals import IntervalIndex
from flight_core.seek import DEFAULT_EPSILON, Direction, SeekResult, compute_seek
from flightsync.core.clock import Clock


class SeekEngine:
    """Keyboard seeking over the global timeline."""

    def __init__(
        self,
        clock: Clock,
        timeline: Callable[[], IntervalIndex],
        step_seconds: float = 10.0,
        epsilon: float = DEFAULT_EPSILON,
    ):
        self._clock = clock
        self._timeline = timeline
        self.step_seconds = float(step_seconds)
        self.epsilon = float(epsilon)
        self._seeking = False

    def seek(self, direction: Direction, snap: bool = False) -> Optional[SeekResult]:
        """Move the clock and notify tick listeners before returning."""
        if self._seeking:
            raise InvariantViolation("seek re-entered from a tick handler")

        clock = self._clock
        result = compute_seek(
            self._timeline(),
            clock.current_time,
            clock.start_time,
            clock.stop_time,
            direction,
            snap,
            self.step_seconds,
            clock.rate,
            self.epsilon,
        )
        if result is None:
            log.debug("Seek ignored: timeline is empty")
            return None

        if snap and result.expanded:
            raise InvariantViolation("snap seek widened the timeline")
        if result.expanded:
            log.info(f"Expanding timeline to [{result.start_bound}, {result.stop_bound}]")

        self._seeking = True
        try:
            clock.set_bounds(result.start_bound, result.stop_bound)
            clock.current_time = result.target
            clock.raise_tick()
        finally:
            self._seeking = False
        return result

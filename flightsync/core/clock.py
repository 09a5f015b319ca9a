"""
clock.py

The single driving clock of a session and the timer that advances it.

Clock emits `ticked` (the clock itself) after every advance and whenever
a component asks for a manual tick. Handlers run synchronously, in
connection order, before tick() or raise_tick() returns.
"""

import logging
log = logging.getLogger(__name__)

import math
import time
from typing import Callable, Optional

from PyQt5 import QtCore

from flight_core.errors import InvariantViolation


class Clock(QtCore.QObject):
    """
    Logical session clock.
    - current_time/start_time/stop_time: epoch seconds
    - rate: signed multiplier; the sign is the playback direction
    - running: whether tick() advances time
    """
    ticked = QtCore.pyqtSignal(object)

    def __init__(self, rate: float = 1.0, start_time: float = 0.0, stop_time: float = 0.0):
        super().__init__()
        self._current_time = float(start_time)
        self._start_time = float(start_time)
        self._stop_time = float(stop_time)
        self.rate = float(rate)
        self.running = False

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        value = float(value)
        if not math.isfinite(value):
            raise InvariantViolation(f"clock time must be finite, got {value}")
        self._current_time = value

    @property
    def start_time(self) -> float:
        return self._start_time

    @property
    def stop_time(self) -> float:
        return self._stop_time

    @property
    def direction(self) -> int:
        return -1 if self.rate < 0 else 1

    def set_bounds(self, start_time: float, stop_time: float) -> None:
        if not start_time <= stop_time:
            raise InvariantViolation(f"clock bounds inverted: {start_time} > {stop_time}")
        self._start_time = float(start_time)
        self._stop_time = float(stop_time)

    def toggle_running(self) -> bool:
        self.running = not self.running
        log.info(f"Clock {'running' if self.running else 'paused'}")
        return self.running

    def tick(self, elapsed: float) -> None:
        """Advance by `elapsed` real seconds times the rate, clamped to the bounds."""
        if self.running and elapsed > 0:
            advanced = self._current_time + elapsed * self.rate
            self._current_time = min(max(advanced, self._start_time), self._stop_time)
        self.ticked.emit(self)

    def raise_tick(self) -> None:
        """Notify tick listeners without advancing time."""
        self.ticked.emit(self)


class ClockDriver(QtCore.QObject):
    """
    Advances a Clock from a QTimer using monotonic elapsed time.

    Usage:
      - driver = ClockDriver(clock, interval_ms)
      - driver.start() once the Qt event loop is running
      - driver.stop() before shutting down
    """

    def __init__(
        self,
        clock: Clock,
        interval_ms: int = 16,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self._clock = clock
        self._interval_ms = max(1, int(interval_ms))
        self._monotonic = monotonic
        self._timer: Optional[QtCore.QTimer] = None
        self._last: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._timer is not None

    @QtCore.pyqtSlot()
    def start(self):
        if self._timer is not None:
            return
        self._last = self._monotonic()
        self._timer = QtCore.QTimer()
        self._timer.setTimerType(QtCore.Qt.PreciseTimer)
        self._timer.setInterval(self._interval_ms)
        self._timer.timeout.connect(self._on_timeout)
        self._timer.start()

    @QtCore.pyqtSlot()
    def stop(self):
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None
        self._last = None

    @QtCore.pyqtSlot(int)
    def set_interval(self, ms: int):
        self._interval_ms = max(1, int(ms))
        if self._timer is not None:
            self._timer.setInterval(self._interval_ms)

    def _on_timeout(self):
        now = self._monotonic()
        elapsed = 0.0 if self._last is None else now - self._last
        self._last = now
        self._clock.tick(elapsed)

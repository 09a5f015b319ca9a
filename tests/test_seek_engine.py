from types import SimpleNamespace

import pytest

pytest.importorskip("PyQt5")

from flight_core.errors import InvariantViolation
from flight_core.intervals import Interval, IntervalIndex
from flight_core.seek import Direction
from flightsync.core.clock import Clock
from flightsync.core.seek_engine import SeekEngine


def _setup(current=25.0, rate=1.0):
    timeline = IntervalIndex(
        [
            Interval(10, 20, payload=SimpleNamespace(name="first")),
            Interval(30, 40, payload=SimpleNamespace(name="second")),
        ]
    )
    clock = Clock(rate=rate)
    clock.set_bounds(0.0, 50.0)
    clock.current_time = current
    return clock, SeekEngine(clock, lambda: timeline, step_seconds=10)


def test_seek_commits_time_and_raises_tick_before_returning():
    clock, engine = _setup()
    seen = []
    clock.ticked.connect(lambda c: seen.append(c.current_time))

    result = engine.seek(Direction.FORWARD, snap=True)

    assert result.target == 30
    assert clock.current_time == 30
    assert seen == [30]


def test_plain_seek_expands_clock_bounds():
    clock, engine = _setup(current=45.0)

    engine.seek(Direction.FORWARD)

    assert clock.current_time == 55
    assert clock.stop_time == 55
    assert clock.start_time == 0


def test_seek_on_empty_timeline_leaves_clock_alone():
    clock = Clock()
    clock.set_bounds(0.0, 10.0)
    clock.current_time = 3.0
    engine = SeekEngine(clock, IntervalIndex)
    ticks = []
    clock.ticked.connect(lambda c: ticks.append(c))

    assert engine.seek(Direction.BACK, snap=True) is None
    assert clock.current_time == 3.0
    assert ticks == []


def test_seek_from_tick_handler_is_rejected():
    clock, engine = _setup()
    errors = []

    def reenter(_clock):
        try:
            engine.seek(Direction.BACK)
        except InvariantViolation as exc:
            errors.append(exc)

    clock.ticked.connect(reenter)
    engine.seek(Direction.FORWARD, snap=True)

    assert len(errors) == 1
    # The guard is released once the outer seek returns.
    clock.ticked.disconnect(reenter)
    assert engine.seek(Direction.FORWARD, snap=True) is not None

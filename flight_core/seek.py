"""
seek.py

Decision tree for keyboard seeking across the global timeline.

Given the merged interval index and the clock's position and bounds,
compute where a left/right key press should land. Plain presses step by
a fixed number of seconds scaled by the clock rate; "snap" presses jump
to the nearest interval edge or timeline bound and never widen the
timeline. Edge comparisons use a fixed epsilon so that a clock parked on
an edge is treated as being just outside (or just inside) the interval,
depending on the direction of travel.
"""

import logging
log = logging.getLogger(__name__)

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flight_core.errors import InvariantViolation
from flight_core.intervals import Found, IntervalIndex, NotFound

DEFAULT_EPSILON = 1.0


class Direction(Enum):
    BACK = -1
    FORWARD = 1


@dataclass(frozen=True)
class SeekResult:
    """
    Outcome of a seek decision.
    - target: new clock time
    - start_bound/stop_bound: clock bounds after any expansion
    - reason: short description of the branch taken
    """
    target: float
    start_bound: float
    stop_bound: float
    reason: str

    @property
    def expanded(self) -> bool:
        return self.reason.endswith("(expanded)")


def compute_seek(
    index: IntervalIndex,
    current: float,
    start_bound: float,
    stop_bound: float,
    direction: Direction,
    snap: bool,
    step_seconds: float,
    rate: float,
    epsilon: float = DEFAULT_EPSILON,
) -> Optional[SeekResult]:
    """Return where the clock should go, or None when there is no timeline."""
    if not len(index):
        return None

    back = direction is Direction.BACK
    seconds = step_seconds * direction.value * abs(rate)

    def near(a: float, b: float) -> bool:
        return abs(a - b) <= epsilon

    def label(position: int) -> str:
        interval = index.get(position)
        if interval is None:
            return str(position)
        return getattr(interval.payload, "name", None) or str(position)

    located = index.find(current)

    # Parked on the edge we are moving away from: treat as outside.
    if located.found:
        interval = index[located.index]
        if back and near(current, interval.start):
            log.debug(f"Seek assuming before {label(located.index)}")
            located = NotFound(located.index)
        elif not back and near(current, interval.stop):
            log.debug(f"Seek assuming after {label(located.index)}")
            located = NotFound(located.index + 1)

    # Parked on the edge of the neighbour we are moving into: treat as inside.
    if not located.found:
        if back:
            neighbour = index.get(located.insertion - 1)
            if neighbour is not None and near(current, neighbour.stop):
                log.debug(f"Seek assuming within {label(located.insertion - 1)}")
                located = Found(located.insertion - 1)
        else:
            neighbour = index.get(located.insertion)
            if neighbour is not None and near(current, neighbour.start):
                log.debug(f"Seek assuming within {label(located.insertion)}")
                located = Found(located.insertion)

    target: Optional[float] = None
    reason = ""

    if located.found:
        position = located.index
        interval = index[position]
        if snap and back and position == 0 and near(current, interval.start):
            target, reason = start_bound, "beginning"
        elif snap and not back and position == len(index) - 1 and near(current, interval.stop):
            target, reason = stop_bound, "ending"
        elif snap:
            target = interval.start if back else interval.stop
            reason = f"{'start' if back else 'stop'} of {label(position)}"
        else:
            candidate = current + seconds
            landed = index.find(candidate)
            if landed.found and landed.index == position:
                target, reason = candidate, f"step within {label(position)}"
            else:
                log.debug(f"Seek step leaves {label(position)}")

    # Outside any interval, or a plain step that left the one we were in.
    if target is None:
        if not snap:
            target, reason = current + seconds, "step"
        elif back:
            previous = index.get(located.insertion - 1)
            if previous is not None:
                target, reason = previous.stop, "previous stop"
            else:
                target, reason = start_bound, "beginning"
        else:
            following = index.get(located.insertion)
            if following is not None:
                target, reason = following.start, "next start"
            else:
                target, reason = stop_bound, "ending"

    if target is None or not math.isfinite(target):
        raise InvariantViolation(f"seek produced no usable time from {current}")

    if snap:
        # Snap only visits existing edges; keep it inside the timeline.
        target = min(max(target, start_bound), stop_bound)
    elif back and target < start_bound:
        start_bound = target
        reason += " (expanded)"
    elif not back and target > stop_bound:
        stop_bound = target
        reason += " (expanded)"

    log.info(f"Seek {direction.name.lower()}{' snap' if snap else ''}: {reason} -> {target}")
    return SeekResult(target, start_bound, stop_bound, reason)


__all__ = ["DEFAULT_EPSILON", "Direction", "SeekResult", "compute_seek"]

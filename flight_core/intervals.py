"""
intervals.py

Ordered, non-overlapping collections of time intervals with payloads.

Each pilot owns one index for flights and one for videos; the global
timeline is a merged view rebuilt from all of them. Point lookups return
a tagged result so callers can recover the insertion point of a miss:

    result = index.find(t)
    if result.found:
        interval = index[result.index]
    else:
        after = index[result.insertion]   # first interval starting after t
"""

import logging
log = logging.getLogger(__name__)

from bisect import bisect_right
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, List, Optional, Union

from flight_core.errors import InvariantViolation, OverlapError


@dataclass
class Interval:
    """
    A time span [start, stop) with an attached payload.
    - stop_included: closes the span at stop
    - payload: the Flight/Video the interval describes (identity matters)
    """
    start: float
    stop: float
    stop_included: bool = False
    payload: Any = field(default=None, compare=False)

    def __post_init__(self):
        if not self.start <= self.stop:
            raise InvariantViolation(f"interval start {self.start} after stop {self.stop}")

    @property
    def is_empty(self) -> bool:
        return self.start == self.stop and not self.stop_included

    @property
    def duration(self) -> float:
        return self.stop - self.start

    def contains(self, time: float) -> bool:
        if time < self.start:
            return False
        if self.stop_included:
            return time <= self.stop
        return time < self.stop

    def overlaps(self, other: "Interval") -> bool:
        if self.is_empty or other.is_empty:
            return False
        return self.start < other.stop and other.start < self.stop

    def clone(self) -> "Interval":
        """Independent copy sharing the payload reference."""
        return replace(self)


@dataclass(frozen=True)
class Found:
    """Lookup hit: `index` is the position of the containing interval."""
    index: int
    found = True


@dataclass(frozen=True)
class NotFound:
    """Lookup miss: `insertion` is the position of the first interval after the time."""
    insertion: int
    found = False


FindResult = Union[Found, NotFound]


class IntervalIndex:
    """Intervals sorted by start; no two may overlap."""

    def __init__(self, intervals: Iterable[Interval] = ()):
        self._intervals: List[Interval] = []
        self._starts: List[float] = []
        for interval in intervals:
            self.insert(interval)

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(list(self._intervals))

    def __getitem__(self, position: int) -> Interval:
        return self._intervals[position]

    def __repr__(self) -> str:
        spans = ", ".join(f"[{i.start}, {i.stop})" for i in self._intervals)
        return f"IntervalIndex({spans})"

    @property
    def start(self) -> Optional[float]:
        return self._intervals[0].start if self._intervals else None

    @property
    def stop(self) -> Optional[float]:
        return self._intervals[-1].stop if self._intervals else None

    def get(self, position: int) -> Optional[Interval]:
        """Interval at `position`, or None when out of range (negative included)."""
        if 0 <= position < len(self._intervals):
            return self._intervals[position]
        return None

    def payloads(self) -> List[Any]:
        return [interval.payload for interval in self._intervals]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def find(self, time: float) -> FindResult:
        position = bisect_right(self._starts, time) - 1
        if position >= 0 and self._intervals[position].contains(time):
            return Found(position)
        return NotFound(position + 1)

    def find_interval(self, time: float) -> Optional[Interval]:
        result = self.find(time)
        return self._intervals[result.index] if result.found else None

    def find_payload(self, time: float) -> Any:
        interval = self.find_interval(time)
        return interval.payload if interval is not None else None

    def index_of_payload(self, payload: Any) -> Optional[int]:
        for position, interval in enumerate(self._intervals):
            if interval.payload is payload:
                return position
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def insert(self, interval: Interval) -> bool:
        """Add `interval`; conflicting or empty intervals are logged and skipped."""
        if interval.is_empty:
            log.warning(f"Skipping empty interval at {interval.start}")
            return False
        try:
            position = self._insertion_point(interval)
        except OverlapError as exc:
            log.warning(f"Skipping interval: {exc}")
            return False
        self._intervals.insert(position, interval)
        self._starts.insert(position, interval.start)
        return True

    def remove_by_payload(self, payload: Any) -> bool:
        position = self.index_of_payload(payload)
        if position is None:
            return False
        del self._intervals[position]
        del self._starts[position]
        return True

    def clear(self) -> None:
        self._intervals = []
        self._starts = []

    def _insertion_point(self, interval: Interval) -> int:
        position = bisect_right(self._starts, interval.start)
        # Sorted and disjoint: only the neighbours around the slot can collide.
        for neighbour in self._intervals[max(0, position - 1):position + 1]:
            if neighbour.overlaps(interval):
                raise OverlapError(interval, neighbour)
        return position

    def _overlay(self, interval: Interval) -> None:
        """Insert `interval`, trimming or splitting whatever it covers."""
        if interval.is_empty:
            return
        kept: List[Interval] = []
        for existing in self._intervals:
            if not existing.overlaps(interval):
                kept.append(existing)
                continue
            if existing.start < interval.start:
                kept.append(replace(existing, stop=interval.start, stop_included=False))
            if existing.stop > interval.stop:
                kept.append(replace(existing, start=interval.stop))
        kept.append(interval)
        kept.sort(key=lambda item: item.start)
        self._intervals = kept
        self._starts = [item.start for item in kept]


def merge(*indices: IntervalIndex) -> IntervalIndex:
    """
    Build a new index from clones of every interval in `indices`.

    Later sources overlay earlier ones, so the result stays disjoint: an
    earlier clone overlapped by a later interval is cut back to the parts
    outside it. The sources are left untouched.
    """
    merged = IntervalIndex()
    for index in indices:
        for interval in index:
            merged._overlay(interval.clone())
    return merged


__all__ = [
    "FindResult",
    "Found",
    "Interval",
    "IntervalIndex",
    "NotFound",
    "merge",
]

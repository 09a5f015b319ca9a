"""
smoothing.py

Causal sliding-window average used for the camera-tracking trajectory.

Raw GPS fixes are too noisy to derive an orientation from. The smoother
keeps the most recent `window` samples and a running vector sum; once the
window is more than half full every new sample emits the window average,
stamped with the time of the sample half a window back from the newest.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from flight_core.model import Sample

DEFAULT_WINDOW = 128


class TrajectorySmoother:
    """Streaming, one-pass smoother. Feed with push(), finish with flush()."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        window = int(window)
        if window <= 0 or window % 2:
            raise ValueError(f"smoothing window must be a positive even number, got {window}")
        self._window = window
        self._half = window // 2
        self._items: List[Sample] = []
        self._head = 0
        self._sum: Optional[np.ndarray] = None

    @property
    def window(self) -> int:
        return self._window

    def __len__(self) -> int:
        return len(self._items) - self._head

    def push(self, time: float, position) -> Optional[Sample]:
        """Add a raw sample; returns the smoothed sample it produced, if any."""
        vector = np.asarray(position, dtype=float)
        self._items.append(Sample(time, vector))
        self._sum = vector.copy() if self._sum is None else self._sum + vector

        if len(self) > self._window:
            self._pop_oldest()

        if len(self) > self._half:
            return self._average()
        return None

    def flush(self) -> List[Sample]:
        """Drain the window, emitting an average after each removal."""
        emitted: List[Sample] = []
        while len(self):
            self._pop_oldest()
            if len(self):
                emitted.append(self._average())
        self._items = []
        self._head = 0
        self._sum = None
        return emitted

    def _pop_oldest(self) -> Sample:
        oldest = self._items[self._head]
        self._head += 1
        self._sum = self._sum - oldest.position
        # Compact once the dead prefix outgrows the live window.
        if self._head > self._window:
            del self._items[:self._head]
            self._head = 0
        return oldest

    def _average(self) -> Sample:
        count = len(self)
        anchor = self._items[self._head + max(0, count - self._half)]
        return Sample(anchor.time, self._sum / count)


def smooth_samples(samples: Iterable[Sample], window: int = DEFAULT_WINDOW) -> List[Sample]:
    """Run a whole sample sequence through a fresh TrajectorySmoother."""
    smoother = TrajectorySmoother(window)
    smoothed: List[Sample] = []
    for sample in samples:
        emitted = smoother.push(sample.time, sample.position)
        if emitted is not None:
            smoothed.append(emitted)
    smoothed.extend(smoother.flush())
    return smoothed


def sample_times(samples: Sequence[Sample]) -> np.ndarray:
    return np.fromiter((s.time for s in samples), dtype=float, count=len(samples))

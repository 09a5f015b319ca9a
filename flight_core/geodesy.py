"""Geodetic conversion and position interpolation along sampled tracks."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Sequence

import numpy as np
import pyproj

from flight_core.model import Sample
from flight_core.smoothing import sample_times

# WGS84 geographic 3D (lon, lat, ellipsoidal height) and geocentric ECEF.
_GEOGRAPHIC_CRS = "EPSG:4979"
_GEOCENTRIC_CRS = "EPSG:4978"


@lru_cache(maxsize=1)
def _transformer() -> pyproj.Transformer:
    return pyproj.Transformer.from_crs(_GEOGRAPHIC_CRS, _GEOCENTRIC_CRS, always_xy=True)


def geodetic_to_cartesian(longitude: float, latitude: float, altitude: float = 0.0) -> np.ndarray:
    """Return the ECEF position (metres) of a WGS84 longitude/latitude/height."""
    x, y, z = _transformer().transform(float(longitude), float(latitude), float(altitude))
    return np.array([x, y, z], dtype=float)


def is_valid_geodetic(longitude, latitude, altitude) -> bool:
    for value in (longitude, latitude, altitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
    return abs(longitude) <= 180 and abs(latitude) <= 90 and altitude >= 0


def interpolate_position(
    samples: Sequence[Sample],
    time: float,
    times: Optional[np.ndarray] = None,
) -> Optional[np.ndarray]:
    """
    Linearly interpolate the position at `time`.

    Returns None outside the sampled range, matching the availability of
    the track the samples belong to. Pass `times` (the sample times as an
    array) when querying the same track repeatedly.
    """
    if not samples:
        return None
    if time < samples[0].time or time > samples[-1].time:
        return None

    if times is None:
        times = sample_times(samples)
    upper = int(np.searchsorted(times, time, side="right"))
    if upper >= len(samples):
        return samples[-1].position.copy()
    lower = samples[upper - 1]
    following = samples[upper]
    span = following.time - lower.time
    if span <= 0:
        return lower.position.copy()
    fraction = (time - lower.time) / span
    return lower.position + (following.position - lower.position) * fraction

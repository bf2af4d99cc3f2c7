"""
Great-circle distance (haversine) in miles.
"""

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Sequence

import numpy as np

EARTH_RADIUS_MILES = 3958.8


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points in miles.
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push a a hair past 1 for antipodal points
    return 2 * EARTH_RADIUS_MILES * asin(sqrt(min(1.0, a)))


def distances_miles(
    lat: float,
    lon: float,
    lats: Sequence[float] | np.ndarray,
    lons: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """
    Vectorized distance from one point to many points, in miles.

    Args:
        lat: Origin latitude
        lon: Origin longitude
        lats: Target latitudes
        lons: Target longitudes

    Returns:
        Array of distances aligned with ``lats``/``lons``
    """
    lat_r = np.radians(lat)
    lon_r = np.radians(lon)
    lats_r = np.radians(np.asarray(lats, dtype=float))
    lons_r = np.radians(np.asarray(lons, dtype=float))

    dlat = lats_r - lat_r
    dlon = lons_r - lon_r
    a = np.sin(dlat / 2) ** 2 + np.cos(lat_r) * np.cos(lats_r) * np.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))

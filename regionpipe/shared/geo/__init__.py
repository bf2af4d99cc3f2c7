"""
Regional Leaderboards - Geographic Utilities

Geographic processing utilities:
- Geohash cell encoding and decoding
- Distance calculations
"""

from regionpipe.shared.geo.distance import EARTH_RADIUS_MILES, distance_miles, distances_miles
from regionpipe.shared.geo.geohash import BASE32, GeohashBounds, bounds, encode, is_valid

__all__ = [
    "BASE32",
    "EARTH_RADIUS_MILES",
    "GeohashBounds",
    "bounds",
    "distance_miles",
    "distances_miles",
    "encode",
    "is_valid",
]

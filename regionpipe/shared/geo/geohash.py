"""
Geohash encoding.

Cells come from repeated bisection of latitude [-90, 90] and longitude
[-180, 180], alternating axes starting with longitude, five bits per
character. A 4-character cell spans 0.17578125 degrees of latitude by
0.3515625 degrees of longitude: roughly 12 x 24 miles at the equator, with
the east-west extent shrinking by cos(latitude) toward the poles. Cells are
not square and should not be treated as fixed-size areas.
"""

from __future__ import annotations

from dataclasses import dataclass

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE = {ch: i for i, ch in enumerate(BASE32)}


@dataclass(frozen=True)
class GeohashBounds:
    """Bounding box of a geohash cell."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_lat + self.max_lat) / 2, (self.min_lon + self.max_lon) / 2

    def contains(self, lat: float, lon: float) -> bool:
        # Upper edges belong to the neighbouring cell, except at +90 / +180.
        lat_ok = self.min_lat <= lat < self.max_lat or lat == self.max_lat == 90.0
        lon_ok = self.min_lon <= lon < self.max_lon or lon == self.max_lon == 180.0
        return lat_ok and lon_ok


def encode(lat: float, lon: float, precision: int = 4) -> str:
    """
    Encode a coordinate into a geohash string.

    A value exactly on a bisection midpoint is placed in the upper half.

    Args:
        lat: Latitude in [-90, 90]
        lon: Longitude in [-180, 180]
        precision: Number of output characters

    Returns:
        Geohash string of length ``precision``
    """
    if precision < 1:
        raise ValueError(f"precision must be >= 1, got {precision}")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"longitude out of range: {lon}")

    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    chars: list[str] = []
    idx = 0
    bit = 0
    even = True

    while len(chars) < precision:
        if even:
            mid = (lon_lo + lon_hi) / 2
            if lon >= mid:
                idx = (idx << 1) | 1
                lon_lo = mid
            else:
                idx <<= 1
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if lat >= mid:
                idx = (idx << 1) | 1
                lat_lo = mid
            else:
                idx <<= 1
                lat_hi = mid
        even = not even

        bit += 1
        if bit == 5:
            chars.append(BASE32[idx])
            bit = 0
            idx = 0

    return "".join(chars)


def bounds(geohash: str) -> GeohashBounds:
    """Decode a geohash into the bounding box of its cell."""
    if not geohash:
        raise ValueError("geohash must not be empty")

    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    even = True

    for ch in geohash:
        if ch not in _DECODE:
            raise ValueError(f"invalid geohash character {ch!r} in {geohash!r}")
        value = _DECODE[ch]
        for shift in range(4, -1, -1):
            upper = (value >> shift) & 1
            if even:
                mid = (lon_lo + lon_hi) / 2
                if upper:
                    lon_lo = mid
                else:
                    lon_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if upper:
                    lat_lo = mid
                else:
                    lat_hi = mid
            even = not even

    return GeohashBounds(min_lat=lat_lo, max_lat=lat_hi, min_lon=lon_lo, max_lon=lon_hi)


def is_valid(geohash: str, precision: int | None = None) -> bool:
    """Check that a string is a geohash, optionally of an exact length."""
    if not geohash or any(ch not in _DECODE for ch in geohash):
        return False
    return precision is None or len(geohash) == precision

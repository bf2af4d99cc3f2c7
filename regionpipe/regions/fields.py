"""
Location field mapping for legacy records.

Source records expose location under several historical field names
(``currentLatitude``, ``latitude``, ``location.latitude``, ...). A
LocationFieldMapping lists candidates per logical field in priority order and
turns a raw record into a LocationPoint in one place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from regionpipe.errors import MissingLocationData
from regionpipe.shared.config import LocationFieldsConfig


@dataclass(frozen=True)
class LocationPoint:
    """Normalized location attached to an entity being tagged."""

    latitude: float
    longitude: float
    city: str = ""
    state: str = ""


def get_path(data: dict[str, Any], path: str) -> Any:
    """Read a dotted path (``location.latitude``) from nested dicts."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class LocationFieldMapping:
    """Ordered candidate field names for each logical location field."""

    latitude: tuple[str, ...]
    longitude: tuple[str, ...]
    city: tuple[str, ...] = ()
    state: tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: LocationFieldsConfig) -> LocationFieldMapping:
        return cls(
            latitude=tuple(config.latitude),
            longitude=tuple(config.longitude),
            city=tuple(config.city),
            state=tuple(config.state),
        )

    @staticmethod
    def _first(data: dict[str, Any], candidates: tuple[str, ...]) -> Any:
        for name in candidates:
            value = get_path(data, name)
            if _present(value):
                return value
        return None

    def extract(self, data: dict[str, Any], require_state: bool = True) -> LocationPoint:
        """
        Normalize a raw record into a LocationPoint.

        Args:
            data: Raw record fields
            require_state: Treat a missing state as missing location data

        Returns:
            LocationPoint

        Raises:
            MissingLocationData: If coordinates (or state) are absent or unusable
        """
        lat = _to_float(self._first(data, self.latitude))
        lon = _to_float(self._first(data, self.longitude))
        city = self._first(data, self.city)
        state = self._first(data, self.state)

        missing = []
        if lat is None or not -90.0 <= lat <= 90.0:
            missing.append("latitude")
        if lon is None or not -180.0 <= lon <= 180.0:
            missing.append("longitude")
        if require_state and state is None:
            missing.append("state")
        if missing:
            raise MissingLocationData(
                f"Missing location fields: {', '.join(missing)}", missing_fields=missing
            )

        return LocationPoint(
            latitude=lat,
            longitude=lon,
            city=str(city).strip() if city is not None else "",
            state=str(state).strip() if state is not None else "",
        )

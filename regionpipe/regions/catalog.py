"""
Regional Leaderboards - Region Catalog

Static table of regions loaded once from YAML. Each region carries a display
name, a set of geohash cells it claims, a center point and a fallback flag.

Load-time invariants:
- region keys are unique
- every prefix is a geohash of exactly ``precision`` characters
- no prefix is claimed by two regions
- fallback regions claim no prefixes

Usage:
    from regionpipe.regions.catalog import load_catalog

    catalog = load_catalog("configs/regions.yaml")
    region = catalog.region_for_cell("dr5r")
    nearest = catalog.nearest(35.99, -78.90, limit=3, max_distance=100)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from regionpipe.errors import CatalogError
from regionpipe.shared.geo import distances_miles, is_valid

logger = logging.getLogger(__name__)

_FALLBACK_KEY = re.compile(r"^us_[a-z]{2}_misc$")


class CenterPoint(BaseModel):
    """Region center coordinate."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class Region(BaseModel):
    """A catalog region."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    display_name: str
    state: str = ""
    states: tuple[str, ...] = ()
    primary_city: str = ""
    major_cities: tuple[str, ...] = ()
    center_point: CenterPoint
    geohash_prefixes: frozenset[str] = frozenset()
    radius_miles: float = 0
    timezone: str | None = None
    is_fallback: bool = False

    @field_validator("state", mode="before")
    @classmethod
    def lower_state(cls, v: Any) -> str:
        return str(v or "").lower()

    @field_validator("states", mode="before")
    @classmethod
    def lower_states(cls, v: Any) -> tuple[str, ...]:
        return tuple(str(s).lower() for s in (v or ()))

    def covers_state(self, state: str) -> bool:
        state = state.lower()
        return self.state == state or state in self.states


class RegionCatalog:
    """
    Immutable, ordered collection of regions.

    Catalog order matters: a cell lookup returns the first claiming region.
    The load-time overlap check guarantees at most one claimant per cell, so
    the order only breaks ties for catalogs built with ``validate=False``.
    """

    def __init__(self, regions: Iterable[Region], precision: int = 4, validate: bool = True):
        self._regions: tuple[Region, ...] = tuple(regions)
        self.precision = precision
        if validate:
            self._validate()

        self._by_key = {r.key: r for r in self._regions}
        self._by_cell: dict[str, Region] = {}
        for region in self._regions:
            if region.is_fallback:
                continue
            for prefix in region.geohash_prefixes:
                self._by_cell.setdefault(prefix, region)

        self._claimed = tuple(r for r in self._regions if not r.is_fallback)

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate(self) -> None:
        problems: list[str] = []
        seen_keys: set[str] = set()
        owners: dict[str, str] = {}

        for region in self._regions:
            if region.key in seen_keys:
                problems.append(f"duplicate region key '{region.key}'")
            seen_keys.add(region.key)

            if region.is_fallback and region.geohash_prefixes:
                problems.append(f"fallback region '{region.key}' claims geohash prefixes")

            for prefix in sorted(region.geohash_prefixes):
                if not is_valid(prefix, self.precision):
                    problems.append(
                        f"region '{region.key}' has invalid prefix '{prefix}' "
                        f"(expected {self.precision} geohash characters)"
                    )
                    continue
                if prefix in owners:
                    problems.append(
                        f"prefix '{prefix}' claimed by both '{owners[prefix]}' and '{region.key}'"
                    )
                else:
                    owners[prefix] = region.key

        if problems:
            raise CatalogError(
                f"Region catalog failed validation ({len(problems)} problems): "
                + "; ".join(problems)
            )

    # =========================================================================
    # Lookups
    # =========================================================================

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Region | None:
        return self._by_key.get(key)

    def claimed_regions(self) -> tuple[Region, ...]:
        """Non-fallback regions, in catalog order."""
        return self._claimed

    def region_for_cell(self, cell: str) -> Region | None:
        """Return the region claiming a geohash cell, if any."""
        return self._by_cell.get(cell)

    def nearest(
        self,
        lat: float,
        lon: float,
        limit: int = 1,
        max_distance: float | None = None,
    ) -> list[tuple[Region, float]]:
        """
        Find the non-fallback regions whose centers are closest to a point.

        Args:
            lat: Latitude
            lon: Longitude
            limit: Number of regions to return
            max_distance: Optional cutoff in miles (inclusive)

        Returns:
            List of (region, distance_miles) sorted by distance; ties keep
            catalog order
        """
        if not self._claimed or limit < 1:
            return []

        distances = distances_miles(
            lat,
            lon,
            [r.center_point.lat for r in self._claimed],
            [r.center_point.lon for r in self._claimed],
        )
        ranked = sorted(range(len(self._claimed)), key=lambda i: (distances[i], i))

        result = []
        for i in ranked[:limit]:
            distance = float(distances[i])
            if max_distance is not None and distance > max_distance:
                break
            result.append((self._claimed[i], distance))
        return result

    def by_state(self, state: str) -> list[Region]:
        """All regions in a state, including multi-state metros touching it."""
        return [r for r in self._regions if r.covers_state(state)]

    def search(self, query: str) -> list[Region]:
        """Case-insensitive match on display name, primary city and major cities."""
        q = query.lower()
        return [
            r
            for r in self._regions
            if q in r.display_name.lower()
            or q in r.primary_city.lower()
            or any(q in city.lower() for city in r.major_cities)
        ]

    def display_name(self, key: str) -> str:
        region = self.get(key)
        return region.display_name if region else key

    def is_fallback_key(self, key: str) -> bool:
        """True for catalog fallback regions and synthesized state keys."""
        region = self.get(key)
        if region is not None:
            return region.is_fallback
        return bool(_FALLBACK_KEY.match(key))


# =============================================================================
# Loading
# =============================================================================


def parse_regions(entries: list[dict[str, Any]]) -> list[Region]:
    """Validate raw catalog entries into Region models."""
    regions = []
    for i, entry in enumerate(entries):
        try:
            regions.append(Region(**entry))
        except (TypeError, ValidationError) as e:
            key = entry.get("key", f"#{i}") if isinstance(entry, dict) else f"#{i}"
            raise CatalogError(f"Invalid region entry {key}: {e}") from e
    return regions


def load_catalog(path: str | Path, precision: int = 4) -> RegionCatalog:
    """
    Load and validate the region catalog from a YAML file.

    Args:
        path: Path to the YAML file (top-level ``regions`` list)
        precision: Expected geohash prefix length

    Returns:
        Validated RegionCatalog

    Raises:
        CatalogError: If the file is missing, malformed or fails validation
    """
    path = Path(path)
    logger.info(f"Loading region catalog from {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise CatalogError(f"Region catalog not found: {path}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Region catalog is not valid YAML: {e}") from e

    entries = raw.get("regions") if isinstance(raw, dict) else None
    if not entries:
        raise CatalogError(f"Region catalog {path} has no 'regions' entries")

    catalog = RegionCatalog(parse_regions(entries), precision=precision)
    fallback_count = sum(1 for r in catalog if r.is_fallback)

    logger.info(
        f"Loaded {len(catalog)} regions ({fallback_count} fallback)",
        extra={"catalog_path": str(path), "regions": len(catalog)},
    )
    return catalog

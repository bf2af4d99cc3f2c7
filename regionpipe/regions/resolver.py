"""
Regional Leaderboards - Region Resolver

Assigns a region key to a location with a three-tier decision procedure:

1. Cell match: the point's geohash cell is claimed by a catalog region.
2. Nearest center: the closest non-fallback region center is within the
   configured radius (100 miles by default).
3. State fallback: a key synthesized from the state code, e.g. ``us_wy_misc``.

Usage:
    resolver = RegionResolver.from_config(config)
    key = resolver.assign(point, catalog)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from regionpipe.errors import MissingLocationData
from regionpipe.regions.catalog import RegionCatalog
from regionpipe.regions.fields import LocationPoint
from regionpipe.shared.config import Settings
from regionpipe.shared.geo import encode

logger = logging.getLogger(__name__)


class ResolutionTier(StrEnum):
    """Which tier of the resolver produced the region key."""

    CELL = "cell"
    NEAREST = "nearest"
    STATE = "state"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one location."""

    region_key: str
    tier: ResolutionTier
    cell: str
    distance_miles: float | None = None


class RegionResolver:
    """Resolves LocationPoints to region keys against an injected catalog."""

    def __init__(
        self,
        precision: int = 4,
        radius_miles: float = 100.0,
        fallback_template: str = "us_{state}_misc",
    ):
        self.precision = precision
        self.radius_miles = radius_miles
        self.fallback_template = fallback_template

    @classmethod
    def from_config(cls, config: Settings) -> RegionResolver:
        return cls(
            precision=config.catalog.geohash_precision,
            radius_miles=config.catalog.nearest_radius_miles,
            fallback_template=config.catalog.fallback_key_template,
        )

    def resolve(self, point: LocationPoint, catalog: RegionCatalog) -> Resolution:
        """
        Resolve a location, reporting which tier matched.

        Raises:
            MissingLocationData: If no region matched and the point has no state
        """
        cell = encode(point.latitude, point.longitude, self.precision)

        region = catalog.region_for_cell(cell)
        if region is not None:
            logger.debug(f"Cell {cell} claimed by {region.key}")
            return Resolution(region_key=region.key, tier=ResolutionTier.CELL, cell=cell)

        nearest = catalog.nearest(point.latitude, point.longitude, limit=1)
        if nearest:
            region, distance = nearest[0]
            if distance <= self.radius_miles:
                logger.debug(f"Nearest region {region.key} at {distance:.1f} mi")
                return Resolution(
                    region_key=region.key,
                    tier=ResolutionTier.NEAREST,
                    cell=cell,
                    distance_miles=distance,
                )

        state = (point.state or "").strip().lower()
        if not state:
            raise MissingLocationData(
                f"No region within {self.radius_miles:g} mi of "
                f"({point.latitude}, {point.longitude}) and no state to fall back on",
                missing_fields=["state"],
            )

        key = self.fallback_template.format(state=state)
        logger.debug(f"No region within {self.radius_miles:g} mi, using state fallback {key}")
        return Resolution(
            region_key=key,
            tier=ResolutionTier.STATE,
            cell=cell,
            distance_miles=nearest[0][1] if nearest else None,
        )

    def assign(self, point: LocationPoint, catalog: RegionCatalog) -> str:
        """Resolve a location to its region key."""
        return self.resolve(point, catalog).region_key

"""
Regional Leaderboards - Regions

Region catalog, location normalization and the region resolver.
"""

from regionpipe.regions.catalog import CenterPoint, Region, RegionCatalog, load_catalog
from regionpipe.regions.fields import LocationFieldMapping, LocationPoint
from regionpipe.regions.resolver import RegionResolver, Resolution, ResolutionTier

__all__ = [
    "CenterPoint",
    "LocationFieldMapping",
    "LocationPoint",
    "Region",
    "RegionCatalog",
    "RegionResolver",
    "Resolution",
    "ResolutionTier",
    "load_catalog",
]

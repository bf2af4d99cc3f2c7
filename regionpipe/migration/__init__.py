"""
Regional Leaderboards - Region Migration

Per-entity region assignment phases. The orchestrator lives in
``regionpipe.migration.migrator``:

    from regionpipe.migration.migrator import BatchMigrator
"""

from regionpipe.migration.base import (
    REGION_KEY_FIELD,
    REGION_UPDATED_FIELD,
    BasePhase,
    MigrationContext,
    PhaseResult,
    PhaseStatus,
)
from regionpipe.migration.lookups import build_lookup, normalize_id
from regionpipe.migration.phases import (
    ActivityPhase,
    LocationPhase,
    PeoplePhase,
    SecondaryContentPhase,
    VenuePhase,
)

__all__ = [
    "REGION_KEY_FIELD",
    "REGION_UPDATED_FIELD",
    "ActivityPhase",
    "BasePhase",
    "LocationPhase",
    "MigrationContext",
    "PeoplePhase",
    "PhaseResult",
    "PhaseStatus",
    "SecondaryContentPhase",
    "VenuePhase",
    "build_lookup",
    "normalize_id",
]

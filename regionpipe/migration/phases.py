"""
Regional Leaderboards - Region Assignment Phases

- PeoplePhase: resolve each person's region from their location
- VenuePhase: resolve each venue's region from its location
- ActivityPhase: inherit the region of the venue an activity was played at
- SecondaryContentPhase: inherit the region of the content's owner
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

from regionpipe.errors import LookupMiss
from regionpipe.migration.base import (
    REGION_KEY_FIELD,
    BasePhase,
    MigrationContext,
    PhaseResult,
)
from regionpipe.migration.lookups import build_lookup, normalize_id
from regionpipe.regions.fields import LocationFieldMapping
from regionpipe.shared.config import LocationFieldsConfig, Settings
from regionpipe.store.base import Record


class LocationPhase(BasePhase):
    """Phase that resolves regions from each record's own location."""

    def __init__(self, config: Settings | None = None):
        super().__init__(config)
        self.field_mapping = LocationFieldMapping.from_config(self.get_field_config())
        self.tier_counts: dict[str, int] = {}

    @abstractmethod
    def get_field_config(self) -> LocationFieldsConfig:
        """Get the legacy location field names for this entity class."""
        pass

    def prepare(self, context: MigrationContext) -> None:
        self.tier_counts = {}

    def build_update(self, record: Record, context: MigrationContext) -> dict[str, Any]:
        point = self.field_mapping.extract(record.data)
        resolution = context.resolver.resolve(point, context.catalog)
        tier = resolution.tier.value
        self.tier_counts[tier] = self.tier_counts.get(tier, 0) + 1
        return {REGION_KEY_FIELD: resolution.region_key}

    def run(self, context: MigrationContext) -> PhaseResult:
        result = super().run(context)
        result.metadata["tiers"] = dict(self.tier_counts)
        return result


class PeoplePhase(LocationPhase):
    """Assign regions to people."""

    name = "people"

    def get_collection(self) -> str:
        return self.config.store.collections.people

    def get_field_config(self) -> LocationFieldsConfig:
        return self.config.migration.field_mappings.people

    def describe(self, record: Record) -> str:
        return record.get("displayName") or record.id


class VenuePhase(LocationPhase):
    """Assign regions to venues."""

    name = "venues"

    def get_collection(self) -> str:
        return self.config.store.collections.venues

    def get_field_config(self) -> LocationFieldsConfig:
        return self.config.migration.field_mappings.venues

    def describe(self, record: Record) -> str:
        return record.get("course_name") or record.get("courseName") or record.id


class ActivityPhase(BasePhase):
    """Copy the venue's region onto each activity record."""

    name = "activity"

    def __init__(self, config: Settings | None = None):
        super().__init__(config)
        self.venues: dict[str, dict[str, Any]] = {}

    def get_collection(self) -> str:
        return self.config.store.collections.activity

    def prepare(self, context: MigrationContext) -> None:
        venue_collection = self.config.store.collections.venues
        id_field = self.config.migration.venue_id_field
        self.venues = build_lookup(
            context.store.stream(venue_collection),
            key_fn=lambda r: r.get(id_field, r.id),
            overlay=context.assigned_in(venue_collection),
            label="venues",
            warn_threshold=self.config.migration.lookup_warn_threshold,
        )

    def build_update(self, record: Record, context: MigrationContext) -> dict[str, Any]:
        venue_id = record.get(self.config.migration.activity_venue_field)
        venue = self.venues.get(normalize_id(venue_id))
        if venue is None:
            raise LookupMiss("venue", venue_id)
        if not venue.get(REGION_KEY_FIELD):
            raise LookupMiss("venue", venue_id, "has no regionKey")

        fields: dict[str, Any] = {REGION_KEY_FIELD: venue[REGION_KEY_FIELD]}

        defaults = self.config.migration.activity_defaults
        if defaults.enabled and not record.get("tees"):
            fields["tees"] = defaults.tees
            fields["teePar"] = record.get("par") or defaults.par
            fields["teeYardage"] = defaults.tee_yardage

        return fields

    def describe(self, record: Record) -> str:
        return f"Activity {record.id}"


class SecondaryContentPhase(BasePhase):
    """Copy the owner's region onto secondary content (posts, thoughts)."""

    name = "secondary"

    def __init__(self, config: Settings | None = None):
        super().__init__(config)
        self.profiles: dict[str, dict[str, Any]] = {}

    def get_collection(self) -> str:
        return self.config.store.collections.secondary

    def prepare(self, context: MigrationContext) -> None:
        people_collection = self.config.store.collections.people
        self.profiles = build_lookup(
            context.store.stream(people_collection),
            key_fn=lambda r: r.id,
            overlay=context.assigned_in(people_collection),
            label="profiles",
            warn_threshold=self.config.migration.lookup_warn_threshold,
        )

    def build_update(self, record: Record, context: MigrationContext) -> dict[str, Any]:
        owner_id = record.get(self.config.migration.owner_field)
        owner = self.profiles.get(normalize_id(owner_id))
        if owner is None:
            raise LookupMiss("owner", owner_id)
        if not owner.get(REGION_KEY_FIELD):
            raise LookupMiss("owner", owner_id, "has no regionKey")
        return {REGION_KEY_FIELD: owner[REGION_KEY_FIELD]}

    def describe(self, record: Record) -> str:
        return f"Content {record.id}"

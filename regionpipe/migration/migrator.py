"""
Regional Leaderboards - Batch Migrator

Runs the region assignment phases in dependency order:

    people -> venues -> activity -> secondary -> leaderboards

Usage:
    migrator = BatchMigrator.from_config(config, store)
    run = migrator.run(["activity", "venues"], preview=True)
    print(run.summary_frame())
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import pandas as pd

from regionpipe.leaderboards.phase import LeaderboardPhase
from regionpipe.migration.base import (
    REGION_KEY_FIELD,
    MigrationContext,
    PhaseResult,
    PhaseStatus,
)
from regionpipe.migration.phases import (
    ActivityPhase,
    PeoplePhase,
    SecondaryContentPhase,
    VenuePhase,
)
from regionpipe.regions.catalog import RegionCatalog, load_catalog
from regionpipe.regions.resolver import RegionResolver
from regionpipe.shared.config import Settings, get_catalog_path, get_config
from regionpipe.store.base import RecordStore

logger = logging.getLogger(__name__)

PHASE_ORDER = ("people", "venues", "activity", "secondary", "leaderboards")

DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "people": (),
    "venues": (),
    "activity": ("venues",),
    "secondary": ("people",),
    "leaderboards": ("people", "venues", "activity"),
}

PHASES = {
    "people": PeoplePhase,
    "venues": VenuePhase,
    "activity": ActivityPhase,
    "secondary": SecondaryContentPhase,
    "leaderboards": LeaderboardPhase,
}


@dataclass
class MigrationRun:
    """Results of one migrator invocation, keyed by phase name in run order."""

    results: dict[str, PhaseResult] = field(default_factory=dict)
    preview: bool = False

    @property
    def success(self) -> bool:
        return all(result.status != PhaseStatus.FAILED for result in self.results.values())

    @property
    def failed_phases(self) -> list[str]:
        return [name for name, r in self.results.items() if r.status == PhaseStatus.FAILED]

    @property
    def blocked_phases(self) -> list[str]:
        return [name for name, r in self.results.items() if r.status == PhaseStatus.PENDING]

    @property
    def total_errors(self) -> int:
        return sum(result.errors for result in self.results.values())

    def summary_frame(self) -> pd.DataFrame:
        """One row of counters per phase."""
        rows = [result.counters() for result in self.results.values()]
        return pd.DataFrame(
            rows, columns=["phase", "status", "processed", "updated", "skipped", "errors"]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "preview": self.preview,
            "success": self.success,
            "total_errors": self.total_errors,
            "phases": {name: result.to_dict() for name, result in self.results.items()},
        }


@dataclass
class MigrationStatus:
    """Assignment progress for one entity collection."""

    phase: str
    collection: str
    total: int = 0
    assigned: int = 0

    @property
    def unassigned(self) -> int:
        return self.total - self.assigned


class BatchMigrator:
    """Orchestrates the region assignment phases over a record store."""

    def __init__(
        self,
        store: RecordStore,
        catalog: RegionCatalog,
        config: Settings | None = None,
        resolver: RegionResolver | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config or get_config()
        self.store = store
        self.catalog = catalog
        self.resolver = resolver or RegionResolver.from_config(self.config)
        self.clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_config(cls, config: Settings, store: RecordStore) -> BatchMigrator:
        """
        Load the catalog and verify the store before any phase runs.

        Raises:
            CatalogError: If the catalog is missing or invalid
            StoreError: If the store is unreachable
        """
        catalog_path = get_catalog_path(config)
        catalog = load_catalog(catalog_path, precision=config.catalog.geohash_precision)
        logger.info(f"Loaded {len(catalog)} regions from {catalog_path}")

        store.ping()
        logger.info("Record store reachable")

        return cls(store, catalog, config=config)

    @staticmethod
    def select(phases: Iterable[str] | None = None) -> list[str]:
        """Order a phase selection by dependency; ``None`` selects every phase."""
        if phases is None:
            return list(PHASE_ORDER)
        requested = set(phases)
        unknown = requested - set(PHASE_ORDER)
        if unknown:
            raise ValueError(f"Unknown phases: {sorted(unknown)}. Valid: {list(PHASE_ORDER)}")
        return [name for name in PHASE_ORDER if name in requested]

    def run(self, phases: Iterable[str] | None = None, preview: bool = False) -> MigrationRun:
        """
        Run the selected phases.

        A phase whose selected dependency FAILED earlier in this run is not
        started and stays PENDING.

        Args:
            phases: Phase names to run (default: all)
            preview: Resolve and log everything without writing

        Returns:
            MigrationRun with one PhaseResult per selected phase
        """
        selected = self.select(phases)
        context = MigrationContext(
            store=self.store,
            catalog=self.catalog,
            resolver=self.resolver,
            preview=preview,
            clock=self.clock,
        )
        run = MigrationRun(preview=preview)

        logger.info(
            f"Starting migration: {', '.join(selected)}" + (" [preview]" if preview else ""),
            extra={"phases": selected, "preview": preview},
        )

        for name in selected:
            phase = PHASES[name](self.config)
            failed_deps = [
                dep
                for dep in DEPENDENCIES[name]
                if dep in run.results and run.results[dep].status == PhaseStatus.FAILED
            ]
            if failed_deps:
                result = PhaseResult(
                    phase=name, collection=phase.get_collection(), preview=preview
                )
                result.error_message = f"Blocked: dependency {', '.join(failed_deps)} failed"
                logger.warning(f"Phase {name} not started: {result.error_message}")
                run.results[name] = result
                continue

            run.results[name] = phase.run(context)

        if run.success:
            logger.info(f"Migration finished with {run.total_errors} entity errors")
        else:
            logger.error(
                f"Migration finished with failed phases: {run.failed_phases}",
                extra=run.to_dict(),
            )
        return run

    def status(self) -> list[MigrationStatus]:
        """Count assigned and unassigned records per entity collection. Writes nothing."""
        collections = self.config.store.collections
        statuses = []
        for name, collection in (
            ("people", collections.people),
            ("venues", collections.venues),
            ("activity", collections.activity),
            ("secondary", collections.secondary),
        ):
            status = MigrationStatus(phase=name, collection=collection)
            for record in self.store.stream(collection):
                status.total += 1
                if record.get(REGION_KEY_FIELD):
                    status.assigned += 1
            logger.info(
                f"{collection}: {status.assigned}/{status.total} assigned, "
                f"{status.unassigned} remaining"
            )
            statuses.append(status)
        return statuses

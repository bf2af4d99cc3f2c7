"""
Regional Leaderboards - Base Migration Phase

Abstract base class for migration phases. Provides a consistent per-entity
loop with:
- Idempotent skip of records that already carry a region key
- Per-entity error isolation (one bad record never aborts the batch)
- Preview mode (full resolution and logging, no writes)
- Structured result reporting through an explicit state machine

Usage:
    class PeoplePhase(BasePhase):
        name = "people"

        def get_collection(self) -> str:
            return self.config.store.collections.people

        def build_update(self, record, context) -> dict[str, Any]:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from regionpipe.errors import LookupMiss, MissingLocationData, WriteFailure
from regionpipe.regions.catalog import RegionCatalog
from regionpipe.regions.resolver import RegionResolver
from regionpipe.shared.config import Settings, get_config
from regionpipe.store.base import Record, RecordStore

logger = logging.getLogger(__name__)

REGION_KEY_FIELD = "regionKey"
REGION_UPDATED_FIELD = "regionUpdatedAt"


class PhaseStatus(StrEnum):
    """Lifecycle of a migration phase."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    PhaseStatus.PENDING: {PhaseStatus.RUNNING},
    PhaseStatus.RUNNING: {PhaseStatus.COMPLETED, PhaseStatus.FAILED},
    PhaseStatus.COMPLETED: set(),
    PhaseStatus.FAILED: set(),
}


@dataclass
class PhaseResult:
    """Result of a migration phase."""

    phase: str
    collection: str
    status: PhaseStatus = PhaseStatus.PENDING
    preview: bool = False
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)
    error_reasons: dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status == PhaseStatus.COMPLETED

    def transition(self, status: PhaseStatus) -> None:
        """Move to a new status, rejecting transitions the lifecycle does not allow."""
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(f"Phase {self.phase}: cannot move from {self.status} to {status}")
        self.status = status

    def skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def error(self, reason: str) -> None:
        self.errors += 1
        self.error_reasons[reason] = self.error_reasons.get(reason, 0) + 1

    def counters(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "status": self.status.value,
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "phase": self.phase,
            "collection": self.collection,
            "status": self.status.value,
            "preview": self.preview,
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "skip_reasons": self.skip_reasons,
            "error_reasons": self.error_reasons,
            "duration_seconds": self.duration_seconds,
            "error_message": self.error_message,
            "metadata": self.metadata,
        }


@dataclass
class MigrationContext:
    """Shared, read-only inputs of one migration run plus its assignment overlay."""

    store: RecordStore
    catalog: RegionCatalog
    resolver: RegionResolver
    preview: bool = False
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(UTC))
    # collection -> doc id -> region key assigned earlier in this run
    assigned: dict[str, dict[str, str]] = field(default_factory=dict)

    def record_assignment(self, collection: str, doc_id: str, region_key: str) -> None:
        self.assigned.setdefault(collection, {})[doc_id] = region_key

    def assigned_in(self, collection: str) -> dict[str, str]:
        return self.assigned.get(collection, {})

    def timestamp(self) -> str:
        return self.clock().isoformat()


class BasePhase(ABC):
    """
    Abstract base class for region assignment phases.

    Subclasses must implement:
    - get_collection(): Return the collection the phase walks
    - build_update(): Return the fields to persist for one record

    ``build_update`` signals a non-fatal skip with MissingLocationData and a
    counted error with LookupMiss.
    """

    name: str = ""

    def __init__(self, config: Settings | None = None):
        """
        Initialize the phase.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    @abstractmethod
    def get_collection(self) -> str:
        """
        Get the collection this phase processes.

        Returns:
            Collection name (e.g., "users", "courses")
        """
        pass

    @abstractmethod
    def build_update(self, record: Record, context: MigrationContext) -> dict[str, Any]:
        """
        Compute the fields to write for one record.

        Args:
            record: Record without a region key
            context: Migration context

        Returns:
            Fields to persist; must include ``regionKey``
        """
        pass

    def prepare(self, context: MigrationContext) -> None:
        """Build lookup maps before the per-entity loop. Override when needed."""
        return None

    def describe(self, record: Record) -> str:
        """Human-readable label for log lines."""
        return record.id

    def run(self, context: MigrationContext) -> PhaseResult:
        """
        Run the phase over every record in its collection.

        Args:
            context: Migration context

        Returns:
            PhaseResult with counters and final status
        """
        collection = self.get_collection()
        result = PhaseResult(phase=self.name, collection=collection, preview=context.preview)
        result.transition(PhaseStatus.RUNNING)
        start_time = time.time()

        logger.info(
            f"Starting phase {self.name} on {collection}",
            extra={"phase": self.name, "collection": collection, "preview": context.preview},
        )

        try:
            self.prepare(context)
            for record in context.store.stream(collection):
                self._process(record, collection, context, result)
        except Exception as e:
            result.duration_seconds = time.time() - start_time
            result.error_message = str(e)
            result.transition(PhaseStatus.FAILED)
            logger.error(
                f"Phase {self.name} failed: {e}",
                extra={"phase": self.name, "error": str(e)},
                exc_info=True,
            )
            return result

        result.duration_seconds = time.time() - start_time
        result.transition(PhaseStatus.COMPLETED)

        logger.info(
            f"Phase {self.name} complete: {result.processed} processed, "
            f"{result.updated} updated, {result.skipped} skipped, {result.errors} errors",
            extra=result.to_dict(),
        )
        return result

    def _process(
        self,
        record: Record,
        collection: str,
        context: MigrationContext,
        result: PhaseResult,
    ) -> None:
        result.processed += 1
        label = self.describe(record)

        existing = record.get(REGION_KEY_FIELD)
        if existing:
            logger.debug(f"{label}: already has regionKey {existing}")
            result.skip("already_assigned")
            return

        try:
            fields = self.build_update(record, context)
        except MissingLocationData as e:
            logger.info(f"{label}: {e}, skipping")
            result.skip("missing_location")
            return
        except LookupMiss as e:
            logger.warning(f"{label}: {e}, skipping", extra={"doc_id": record.id})
            result.error(f"missing_{e.kind}")
            return
        except Exception as e:
            logger.error(
                f"{label}: region assignment failed: {e}",
                extra={"doc_id": record.id, "collection": collection},
                exc_info=True,
            )
            result.error("unexpected")
            return

        region_key = fields[REGION_KEY_FIELD]
        fields[REGION_UPDATED_FIELD] = context.timestamp()

        if context.preview:
            logger.info(f"{label} -> {region_key} [preview, not written]")
        else:
            try:
                context.store.update(collection, record.id, fields)
            except WriteFailure as e:
                logger.error(f"{label}: {e}", extra={"doc_id": record.id, "collection": collection})
                result.error("write_failure")
                return
            except Exception as e:
                logger.error(
                    f"{label}: write failed: {e}",
                    extra={"doc_id": record.id, "collection": collection},
                    exc_info=True,
                )
                result.error("write_failure")
                return
            logger.info(f"{label} -> {region_key}")

        result.updated += 1
        context.record_assignment(collection, record.id, region_key)

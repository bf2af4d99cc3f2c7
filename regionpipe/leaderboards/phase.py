"""
Regional Leaderboards - Leaderboard Phase

Rebuilds every leaderboard document from the activity collection. Each
document is replaced wholesale; on committing runs, leaderboard documents the
build no longer produces are deleted.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from regionpipe.errors import WriteFailure
from regionpipe.leaderboards.builder import LeaderboardBuilder
from regionpipe.migration.base import (
    REGION_KEY_FIELD,
    MigrationContext,
    PhaseResult,
    PhaseStatus,
)
from regionpipe.migration.lookups import build_lookup
from regionpipe.shared.config import Settings, get_config
from regionpipe.store.base import Record

logger = logging.getLogger(__name__)


class LeaderboardPhase:
    """Build and persist regional leaderboards."""

    name = "leaderboards"

    def __init__(self, config: Settings | None = None):
        self.config = config or get_config()
        self.builder = LeaderboardBuilder(self.config)

    def get_collection(self) -> str:
        return self.config.store.collections.leaderboards

    def _activity_records(self, context: MigrationContext) -> list[Record]:
        collection = self.config.store.collections.activity
        overlay = context.assigned_in(collection)
        records = []
        for record in context.store.stream(collection):
            if not record.get(REGION_KEY_FIELD) and record.id in overlay:
                record.data[REGION_KEY_FIELD] = overlay[record.id]
            records.append(record)
        return records

    def run(self, context: MigrationContext) -> PhaseResult:
        """
        Rebuild all leaderboards.

        Counters: processed = activity records considered, updated = leaderboard
        documents written, skipped = excluded records, errors = unassigned
        records, missing owners and failed writes.
        """
        collection = self.get_collection()
        collections = self.config.store.collections
        migration = self.config.migration
        result = PhaseResult(phase=self.name, collection=collection, preview=context.preview)
        result.transition(PhaseStatus.RUNNING)
        start_time = time.time()

        logger.info(f"Starting phase {self.name}", extra={"preview": context.preview})

        try:
            profiles = build_lookup(
                context.store.stream(collections.people),
                key_fn=lambda r: r.id,
                overlay=context.assigned_in(collections.people),
                label="profiles",
                warn_threshold=migration.lookup_warn_threshold,
            )
            venues = build_lookup(
                context.store.stream(collections.venues),
                key_fn=lambda r: r.get(migration.venue_id_field, r.id),
                overlay=context.assigned_in(collections.venues),
                label="venues",
                warn_threshold=migration.lookup_warn_threshold,
            )
            records = self._activity_records(context)
            existing = {record.id for record in context.store.stream(collection)}

            outcome = self.builder.build(records, profiles, venues, context.timestamp())
            result.processed = outcome.records_seen
            result.skipped = outcome.skipped
            result.errors = outcome.errors
            result.skip_reasons = dict(outcome.skip_reasons)
            result.error_reasons = dict(outcome.error_reasons)

            built = set()
            for entry in outcome.entries:
                if entry.doc_id in built:
                    logger.error(
                        f"Leaderboard {entry.doc_id}: id already used by another "
                        f"region/venue pair, not written",
                        extra={"region_key": entry.region_key, "venue_id": entry.venue_id},
                    )
                    result.error("doc_id_collision")
                    continue
                built.add(entry.doc_id)
                if self._write(context, collection, entry.doc_id, entry.to_document(), result):
                    result.updated += 1

            stale = sorted(existing - built)
            deleted = 0
            for doc_id in stale:
                if self._delete(context, collection, doc_id, result):
                    deleted += 1
        except Exception as e:
            result.duration_seconds = time.time() - start_time
            result.error_message = str(e)
            result.transition(PhaseStatus.FAILED)
            logger.error(f"Phase {self.name} failed: {e}", exc_info=True)
            return result

        result.metadata = {"leaderboards_built": len(outcome.entries), "stale_deleted": deleted}
        result.duration_seconds = time.time() - start_time
        result.transition(PhaseStatus.COMPLETED)

        logger.info(
            f"Phase {self.name} complete: {len(outcome.entries)} leaderboards, "
            f"{deleted} stale removed, {result.errors} errors",
            extra=result.to_dict(),
        )
        return result

    def _write(
        self,
        context: MigrationContext,
        collection: str,
        doc_id: str,
        document: dict[str, Any],
        result: PhaseResult,
    ) -> bool:
        if context.preview:
            logger.info(
                f"Leaderboard {doc_id}: {len(document['topEntries'])} entries, "
                f"best {document['bestNetScore']} [preview, not written]"
            )
            return True
        try:
            context.store.set(collection, doc_id, document)
        except WriteFailure as e:
            logger.error(f"Leaderboard {doc_id}: {e}", extra={"doc_id": doc_id})
            result.error("write_failure")
            return False
        logger.debug(f"Leaderboard {doc_id} written")
        return True

    def _delete(
        self, context: MigrationContext, collection: str, doc_id: str, result: PhaseResult
    ) -> bool:
        if context.preview:
            logger.info(f"Leaderboard {doc_id} is stale [preview, not deleted]")
            return True
        try:
            context.store.delete(collection, doc_id)
        except WriteFailure as e:
            logger.error(f"Stale leaderboard {doc_id}: {e}", extra={"doc_id": doc_id})
            result.error("delete_failure")
            return False
        logger.info(f"Deleted stale leaderboard {doc_id}")
        return True

"""
Regional Leaderboards - Leaderboard Builder

Groups activity records by (regionKey, venueId) and keeps the best net scores
of each group with the owner's display fields denormalized in.

Ordering inside a group: netScore ascending, then earliest createdAt (records
without one last), then record id.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from regionpipe.errors import LookupMiss
from regionpipe.migration.base import REGION_KEY_FIELD
from regionpipe.migration.lookups import normalize_id
from regionpipe.shared.config import Settings, get_config
from regionpipe.store.base import Record

logger = logging.getLogger(__name__)

SORT_COLUMNS = ["region_key", "venue_key", "net_score", "created_sort", "record_id"]


@dataclass
class TopEntry:
    """One denormalized row of a leaderboard."""

    record_id: str
    owner_id: Any
    owner_name: str | None
    owner_avatar: str | None
    gross_score: Any
    net_score: Any
    par: Any = None
    tees: Any = None
    tee_par: Any = None
    tee_yardage: Any = None
    created_at: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "recordId": self.record_id,
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
            "ownerAvatar": self.owner_avatar,
            "grossScore": self.gross_score,
            "netScore": self.net_score,
            "par": self.par,
            "tees": self.tees,
            "teePar": self.tee_par,
            "teeYardage": self.tee_yardage,
            "createdAt": self.created_at,
        }


@dataclass
class LeaderboardEntry:
    """Aggregate leaderboard for one venue within one region."""

    region_key: str
    venue_id: Any
    venue_name: str | None
    top_entries: list[TopEntry] = field(default_factory=list)
    total_entries: int = 0
    last_built: str | None = None

    @property
    def doc_id(self) -> str:
        return f"{self.region_key}_{normalize_id(self.venue_id)}"

    @property
    def best_net_score(self) -> Any:
        return self.top_entries[0].net_score if self.top_entries else None

    def to_document(self) -> dict[str, Any]:
        return {
            "regionKey": self.region_key,
            "venueId": self.venue_id,
            "venueName": self.venue_name,
            "topEntries": [entry.to_dict() for entry in self.top_entries],
            "bestNetScore": self.best_net_score,
            "totalEntries": self.total_entries,
            "lastBuilt": self.last_built,
        }


@dataclass
class BuildOutcome:
    """Leaderboards produced by one build plus what was left out and why."""

    entries: list[LeaderboardEntry] = field(default_factory=list)
    records_seen: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)
    error_reasons: dict[str, int] = field(default_factory=dict)

    @property
    def skipped(self) -> int:
        return sum(self.skip_reasons.values())

    @property
    def errors(self) -> int:
        return sum(self.error_reasons.values())

    def skip(self, reason: str) -> None:
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def error(self, reason: str) -> None:
        self.error_reasons[reason] = self.error_reasons.get(reason, 0) + 1


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _created_sort_key(value: Any) -> pd.Timestamp:
    """Convert a createdAt value to a UTC timestamp; unparseable values become NaT."""
    if value is None or isinstance(value, bool):
        return pd.NaT
    try:
        if isinstance(value, dict) and "seconds" in value:
            return pd.Timestamp(value["seconds"], unit="s", tz="UTC")
        if isinstance(value, (int, float)):
            # epoch milliseconds
            return pd.Timestamp(value, unit="ms", tz="UTC")
        return pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError, pd.errors.OutOfBoundsDatetime):
        return pd.NaT


class LeaderboardBuilder:
    """
    Pure leaderboard computation.

    ``build`` reads nothing from the store and writes nothing; the leaderboard
    phase supplies the records and lookups and persists the result.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or get_config()
        self.settings = self.config.leaderboards
        self.venue_field = self.config.migration.activity_venue_field
        self.owner_field = self.config.migration.owner_field

    def build(
        self,
        records: Iterable[Record],
        profiles: dict[str, dict[str, Any]],
        venues: dict[str, dict[str, Any]],
        built_at: str,
    ) -> BuildOutcome:
        """
        Build leaderboards from activity records.

        Args:
            records: Activity records
            profiles: Owner id -> profile fields
            venues: Venue id -> venue fields
            built_at: ISO timestamp stamped as ``lastBuilt``

        Returns:
            BuildOutcome with entries ordered by (regionKey, venueId)
        """
        outcome = BuildOutcome()
        rows = []

        for record in records:
            outcome.records_seen += 1
            try:
                row = self._eligible_row(record, profiles, outcome)
            except LookupMiss as e:
                logger.warning(f"Activity {record.id}: {e}, not ranked")
                outcome.error(f"missing_{e.kind}")
                continue
            if row is not None:
                rows.append(row)

        if not rows:
            logger.info("No eligible records for leaderboards")
            return outcome

        df = pd.DataFrame(
            {
                "row": range(len(rows)),
                "region_key": [r["region_key"] for r in rows],
                "venue_key": [r["venue_key"] for r in rows],
                "net_score": [r["net_score"] for r in rows],
                "created_sort": pd.to_datetime(
                    [r["created_sort"] for r in rows], utc=True
                ),
                "record_id": [r["entry"].record_id for r in rows],
            }
        )
        df = df.sort_values(SORT_COLUMNS, na_position="last", kind="mergesort")

        for (region_key, venue_key), group in df.groupby(
            ["region_key", "venue_key"], sort=True
        ):
            group_rows = [rows[i] for i in group["row"]]
            top = [r["entry"] for r in group_rows[: self.settings.top_n]]
            outcome.entries.append(
                LeaderboardEntry(
                    region_key=region_key,
                    venue_id=group_rows[0]["venue_id"],
                    venue_name=self._venue_name(venue_key, venues, group_rows[0]["record"]),
                    top_entries=top,
                    total_entries=len(group_rows),
                    last_built=built_at,
                )
            )

        logger.info(
            f"Built {len(outcome.entries)} leaderboards from {len(rows)} eligible records "
            f"({outcome.skipped} skipped, {outcome.errors} errors)"
        )
        return outcome

    def _eligible_row(
        self,
        record: Record,
        profiles: dict[str, dict[str, Any]],
        outcome: BuildOutcome,
    ) -> dict[str, Any] | None:
        region_key = record.get(REGION_KEY_FIELD)
        venue_id = record.get(self.venue_field)
        venue_key = normalize_id(venue_id)
        if not region_key or venue_key is None:
            logger.warning(f"Activity {record.id}: no regionKey or venue, not ranked")
            outcome.error("unassigned")
            return None

        if record.get(self.settings.excluded_flag_field) is True:
            outcome.skip("excluded_flag")
            return None

        owner_id = record.get(self.owner_field)
        owner = profiles.get(normalize_id(owner_id))
        if owner is None:
            raise LookupMiss("owner", owner_id)

        if owner.get(self.settings.owner_type_field) in self.settings.excluded_owner_types:
            outcome.skip("excluded_owner_type")
            return None

        net_score = _to_number(record.get("netScore"))
        if net_score is None:
            outcome.skip("missing_score")
            return None

        created_at = record.get("createdAt")
        entry = TopEntry(
            record_id=record.id,
            owner_id=owner_id,
            owner_name=owner.get("displayName"),
            owner_avatar=owner.get("photoURL") or owner.get("avatar"),
            gross_score=record.get("grossScore"),
            net_score=record.get("netScore"),
            par=record.get("par"),
            tees=record.get("tees"),
            tee_par=record.get("teePar"),
            tee_yardage=record.get("teeYardage"),
            created_at=created_at,
        )
        return {
            "region_key": region_key,
            "venue_key": venue_key,
            "venue_id": venue_id,
            "net_score": net_score,
            "created_sort": _created_sort_key(created_at),
            "record": record,
            "entry": entry,
        }

    def _venue_name(
        self, venue_key: str, venues: dict[str, dict[str, Any]], record: Record
    ) -> str | None:
        venue = venues.get(venue_key, {})
        for name_field in self.settings.venue_name_fields:
            if venue.get(name_field):
                return venue[name_field]
        for name_field in self.settings.venue_name_fields:
            if record.get(name_field):
                return record.get(name_field)
        return None

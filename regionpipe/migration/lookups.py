"""
In-memory lookup maps (venue-by-id, profile-by-id) built once per phase.

Maps are fully materialized, so their size is bounded only by the collection
size. Crossing ``lookup_warn_threshold`` logs a warning instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from regionpipe.migration.base import REGION_KEY_FIELD
from regionpipe.store.base import Record

logger = logging.getLogger(__name__)


def normalize_id(value: Any) -> str | None:
    """Normalize ids so ``123``, ``123.0`` and ``"123"`` meet in one map."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def build_lookup(
    records: Iterable[Record],
    key_fn: Callable[[Record], Any],
    overlay: dict[str, str] | None = None,
    label: str = "records",
    warn_threshold: int | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Build an id -> fields map.

    Args:
        records: Records to index
        key_fn: Extracts the lookup key from a record
        overlay: doc id -> region key assigned earlier in the run; fills in
                 records the store does not show as assigned yet (preview runs)
        label: Name used in log lines
        warn_threshold: Log a warning when the map grows past this size

    Returns:
        Dictionary keyed by normalized id
    """
    overlay = overlay or {}
    lookup: dict[str, dict[str, Any]] = {}

    for record in records:
        key = normalize_id(key_fn(record))
        if key is None:
            continue
        data = dict(record.data)
        if not data.get(REGION_KEY_FIELD) and record.id in overlay:
            data[REGION_KEY_FIELD] = overlay[record.id]
        lookup[key] = data

    logger.info(f"Loaded {len(lookup)} {label} for lookup")

    if warn_threshold is not None and len(lookup) > warn_threshold:
        logger.warning(
            f"{label} lookup holds {len(lookup)} entries (threshold {warn_threshold}); "
            "lookup maps are held fully in memory and bound how far this migration scales",
            extra={"lookup": label, "size": len(lookup), "threshold": warn_threshold},
        )

    return lookup

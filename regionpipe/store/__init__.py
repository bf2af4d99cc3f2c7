"""
Regional Leaderboards - Record Stores

The Firestore store is imported lazily so tests and local runs against the
in-memory store do not need google-cloud-firestore credentials.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from regionpipe.store.base import Record, RecordStore
from regionpipe.store.memory import InMemoryRecordStore, WriteOp

if TYPE_CHECKING:
    from regionpipe.shared.config import Settings


def create_store(config: Settings, snapshot: str | Path | None = None) -> RecordStore:
    """
    Build the record store selected by ``config.store.backend``.

    A JSON snapshot path forces an in-memory store seeded from that file.
    """
    if snapshot is not None:
        return InMemoryRecordStore.from_json(snapshot)
    if config.store.backend == "memory":
        return InMemoryRecordStore()

    from regionpipe.store.firestore import FirestoreRecordStore

    return FirestoreRecordStore(config)


__all__ = [
    "InMemoryRecordStore",
    "Record",
    "RecordStore",
    "WriteOp",
    "create_store",
]

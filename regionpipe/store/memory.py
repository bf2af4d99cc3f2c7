"""
In-memory record store.

Used by tests and for local preview runs against a JSON snapshot. Keeps a
write log so callers can assert exactly which writes happened.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from regionpipe.errors import StoreError, WriteFailure
from regionpipe.store.base import Record, RecordStore


@dataclass(frozen=True)
class WriteOp:
    """One write applied to the store."""

    op: str
    collection: str
    doc_id: str
    fields: dict[str, Any] | None = None


class InMemoryRecordStore(RecordStore):
    """Dict-backed RecordStore."""

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(collections or {})
        self.writes: list[WriteOp] = []
        # doc ids whose writes should be rejected, per collection
        self.reject_writes: dict[str, set[str]] = {}
        self.unreadable: set[str] = set()

    @classmethod
    def from_json(cls, path: str | Path) -> InMemoryRecordStore:
        """Load a ``{collection: {doc_id: fields}}`` snapshot."""
        try:
            with open(path) as f:
                return cls(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot load snapshot {path}: {e}") from e

    def _check_writable(self, collection: str, doc_id: str) -> None:
        if doc_id in self.reject_writes.get(collection, set()):
            raise WriteFailure(collection, doc_id, RuntimeError("write rejected"))

    def stream(self, collection: str) -> Iterator[Record]:
        if collection in self.unreadable:
            raise StoreError(f"Collection {collection} is unreadable")
        docs = self._collections.get(collection, {})
        for doc_id in list(docs):
            yield Record(id=doc_id, data=copy.deepcopy(docs[doc_id]))

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self._check_writable(collection, doc_id)
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise WriteFailure(collection, doc_id, KeyError("no such document"))
        docs[doc_id].update(copy.deepcopy(fields))
        self.writes.append(WriteOp("update", collection, doc_id, dict(fields)))

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._check_writable(collection, doc_id)
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self.writes.append(WriteOp("set", collection, doc_id, dict(data)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._check_writable(collection, doc_id)
        self._collections.get(collection, {}).pop(doc_id, None)
        self.writes.append(WriteOp("delete", collection, doc_id))

    def ping(self) -> None:
        return None

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        return copy.deepcopy(self._collections)

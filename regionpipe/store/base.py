"""
Regional Leaderboards - Record Store Interface

Document-store abstraction the migration depends on: enumerate a collection,
read fields, write specific fields back, replace or delete a document.

Implementations must raise WriteFailure when a write is rejected and
StoreError when a collection cannot be read.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from regionpipe.regions.fields import get_path


@dataclass
class Record:
    """A document read from the store."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, path: str, default: Any = None) -> Any:
        value = get_path(self.data, path)
        return default if value is None else value


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Subclasses must implement:
    - stream(): Enumerate every record in a collection
    - update(): Merge specific fields into an existing record
    - set(): Replace a record wholesale
    - delete(): Remove a record
    - ping(): Verify the store is reachable
    """

    @abstractmethod
    def stream(self, collection: str) -> Iterator[Record]:
        """
        Enumerate all records in a collection.

        Raises:
            StoreError: If the collection cannot be read
        """
        pass

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """
        Write specific fields onto an existing record.

        Raises:
            WriteFailure: If the store rejects the write
        """
        pass

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """
        Create or fully replace a record.

        Raises:
            WriteFailure: If the store rejects the write
        """
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """
        Delete a record.

        Raises:
            WriteFailure: If the store rejects the delete
        """
        pass

    @abstractmethod
    def ping(self) -> None:
        """
        Check connectivity.

        Raises:
            StoreError: If the store is unreachable
        """
        pass

    def read_all(self, collection: str) -> list[Record]:
        """Materialize a whole collection."""
        return list(self.stream(collection))

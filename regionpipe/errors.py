"""
Regional Leaderboards - Error Taxonomy

Per-entity errors (MissingLocationData, LookupMiss, WriteFailure) are caught at
the entity boundary by the migration phases and only move counters.
StoreError and CatalogError are fatal when raised during startup.
"""

from __future__ import annotations


class RegionPipelineError(Exception):
    """Base class for all region pipeline errors."""


class MissingLocationData(RegionPipelineError):
    """Required coordinate or state fields are absent on the source entity."""

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class LookupMiss(RegionPipelineError):
    """A referenced venue or owner profile is missing or not yet assigned."""

    def __init__(self, kind: str, ref_id: object, reason: str = "not found"):
        super().__init__(f"{kind} {ref_id} {reason}")
        self.kind = kind
        self.ref_id = ref_id
        self.reason = reason


class WriteFailure(RegionPipelineError):
    """The backing store rejected a persistence call."""

    def __init__(self, collection: str, doc_id: str, cause: Exception | None = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Write to {collection}/{doc_id} failed{detail}")
        self.collection = collection
        self.doc_id = doc_id
        self.cause = cause


class StoreError(RegionPipelineError):
    """The backing store is unreachable or a collection could not be read."""


class CatalogError(RegionPipelineError):
    """The region catalog is missing or violates a load-time invariant."""

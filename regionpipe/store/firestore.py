"""
Regional Leaderboards - Firestore Record Store

RecordStore backed by Google Cloud Firestore.

Usage:
    from regionpipe.store.firestore import FirestoreRecordStore

    store = FirestoreRecordStore(config)
    store.ping()
    for record in store.stream("users"):
        ...
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from typing import Any

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import firestore

from regionpipe.errors import StoreError, WriteFailure
from regionpipe.shared.config import Settings, get_config
from regionpipe.store.base import Record, RecordStore

logger = logging.getLogger(__name__)


class FirestoreRecordStore(RecordStore):
    """Firestore-backed record store."""

    def __init__(self, config: Settings | None = None, client: Any | None = None):
        """
        Initialize the store.

        Args:
            config: Configuration object (uses default if not provided)
            client: Pre-built Firestore client (skips client construction)
        """
        self.config = config or get_config()
        self.client = client if client is not None else self._build_client()

    def _build_client(self) -> firestore.Client:
        try:
            return self._create_client()
        except DefaultCredentialsError as e:
            raise StoreError(f"No Firestore credentials available: {e}") from e

    def _create_client(self) -> firestore.Client:
        store_config = self.config.store

        if store_config.emulator.enabled:
            os.environ["FIRESTORE_EMULATOR_HOST"] = store_config.emulator.host
            logger.info(f"Using Firestore emulator at {store_config.emulator.host}")
            return firestore.Client(project=self.config.gcp_project_id or "test-project")

        if store_config.credentials_file:
            return firestore.Client.from_service_account_json(
                store_config.credentials_file, project=self.config.gcp_project_id
            )

        return firestore.Client(project=self.config.gcp_project_id)

    def stream(self, collection: str) -> Iterator[Record]:
        try:
            for snapshot in self.client.collection(collection).stream():
                yield Record(id=snapshot.id, data=snapshot.to_dict() or {})
        except (GoogleAPICallError, RetryError) as e:
            raise StoreError(f"Failed to read collection {collection}: {e}") from e

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            self.client.collection(collection).document(doc_id).update(fields)
        except (GoogleAPICallError, RetryError) as e:
            raise WriteFailure(collection, doc_id, e) from e

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            self.client.collection(collection).document(doc_id).set(data)
        except (GoogleAPICallError, RetryError) as e:
            raise WriteFailure(collection, doc_id, e) from e

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.collection(collection).document(doc_id).delete()
        except (GoogleAPICallError, RetryError) as e:
            raise WriteFailure(collection, doc_id, e) from e

    def ping(self) -> None:
        people = self.config.store.collections.people
        try:
            list(self.client.collection(people).limit(1).stream())
        except (GoogleAPICallError, RetryError) as e:
            raise StoreError(f"Firestore unreachable: {e}") from e

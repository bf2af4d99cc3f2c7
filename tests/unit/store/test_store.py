"""
Tests for the record stores
"""

import json
import os

import pytest
from google.api_core.exceptions import NotFound, ServiceUnavailable

from regionpipe.errors import StoreError, WriteFailure
from regionpipe.store import InMemoryRecordStore, Record, WriteOp, create_store
from regionpipe.store.firestore import FirestoreRecordStore

# ─── Record ───────────────────────────────────────────────────────────────────


class TestRecord:
    def test_dotted_get(self):
        record = Record("c1", {"location": {"state": "NC"}})
        assert record.get("location.state") == "NC"
        assert record.get("location.city", "unknown") == "unknown"


# ─── In-memory store ──────────────────────────────────────────────────────────


class TestInMemoryRecordStore:
    def test_stream_returns_copies(self, memory_store):
        record = next(iter(memory_store.stream("users")))
        record.data["displayName"] = "changed"
        assert memory_store.get("users", record.id)["displayName"] != "changed"

    def test_update_merges_and_logs(self, memory_store):
        memory_store.update("users", "u1", {"regionKey": "piedmont"})
        doc = memory_store.get("users", "u1")
        assert doc["regionKey"] == "piedmont"
        assert doc["displayName"] == "Ana"
        assert memory_store.writes == [
            WriteOp("update", "users", "u1", {"regionKey": "piedmont"})
        ]

    def test_update_missing_document(self, memory_store):
        with pytest.raises(WriteFailure):
            memory_store.update("users", "nobody", {"regionKey": "x"})

    def test_set_and_delete(self, memory_store):
        memory_store.set("leaderboards", "a_1", {"totalEntries": 1})
        assert memory_store.get("leaderboards", "a_1") == {"totalEntries": 1}
        memory_store.delete("leaderboards", "a_1")
        assert memory_store.get("leaderboards", "a_1") is None
        assert [w.op for w in memory_store.writes] == ["set", "delete"]

    def test_rejected_writes(self, memory_store):
        memory_store.reject_writes["users"] = {"u1"}
        with pytest.raises(WriteFailure, match="users/u1"):
            memory_store.update("users", "u1", {"regionKey": "x"})
        assert memory_store.writes == []

    def test_unreadable_collection(self, memory_store):
        memory_store.unreadable.add("scores")
        with pytest.raises(StoreError):
            list(memory_store.stream("scores"))

    def test_missing_collection_is_empty(self, memory_store):
        assert memory_store.read_all("nothing") == []

    def test_from_json(self, tmp_path, sample_collections):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(sample_collections))
        store = InMemoryRecordStore.from_json(path)
        assert len(store.read_all("users")) == 4

    def test_from_json_missing_file(self, tmp_path):
        with pytest.raises(StoreError, match="Cannot load snapshot"):
            InMemoryRecordStore.from_json(tmp_path / "nope.json")

    def test_from_json_malformed(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")
        with pytest.raises(StoreError, match="Cannot load snapshot"):
            InMemoryRecordStore.from_json(path)


class TestCreateStore:
    def test_snapshot_wins(self, tmp_path, test_config):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"users": {"u1": {}}}))
        store = create_store(test_config, snapshot=path)
        assert isinstance(store, InMemoryRecordStore)
        assert store.get("users", "u1") == {}

    def test_memory_backend(self, test_config):
        config = test_config.model_copy(
            update={"store": test_config.store.model_copy(update={"backend": "memory"})}
        )
        assert isinstance(create_store(config), InMemoryRecordStore)


# ─── Firestore store ──────────────────────────────────────────────────────────


class TestFirestoreRecordStore:
    def test_emulator_client(self, test_config, mock_firestore_client, monkeypatch):
        monkeypatch.delenv("FIRESTORE_EMULATOR_HOST", raising=False)
        store = FirestoreRecordStore(test_config)
        assert store.client is mock_firestore_client
        assert os.environ["FIRESTORE_EMULATOR_HOST"] == "localhost:8080"

    def test_stream(self, test_config, mocker):
        client = mocker.MagicMock()
        snapshot = mocker.MagicMock()
        snapshot.id = "u1"
        snapshot.to_dict.return_value = {"displayName": "Ana"}
        client.collection.return_value.stream.return_value = [snapshot]

        records = list(FirestoreRecordStore(test_config, client=client).stream("users"))

        client.collection.assert_called_with("users")
        assert records == [Record("u1", {"displayName": "Ana"})]

    def test_stream_failure_is_store_error(self, test_config, mocker):
        client = mocker.MagicMock()
        client.collection.return_value.stream.side_effect = ServiceUnavailable("down")
        with pytest.raises(StoreError, match="users"):
            list(FirestoreRecordStore(test_config, client=client).stream("users"))

    def test_update(self, test_config, mocker):
        client = mocker.MagicMock()
        FirestoreRecordStore(test_config, client=client).update(
            "users", "u1", {"regionKey": "piedmont"}
        )
        client.collection.return_value.document.assert_called_with("u1")
        client.collection.return_value.document.return_value.update.assert_called_once_with(
            {"regionKey": "piedmont"}
        )

    def test_update_failure_is_write_failure(self, test_config, mocker):
        client = mocker.MagicMock()
        client.collection.return_value.document.return_value.update.side_effect = NotFound(
            "gone"
        )
        with pytest.raises(WriteFailure) as exc_info:
            FirestoreRecordStore(test_config, client=client).update("users", "u1", {})
        assert exc_info.value.doc_id == "u1"

    def test_set_and_delete(self, test_config, mocker):
        client = mocker.MagicMock()
        store = FirestoreRecordStore(test_config, client=client)
        store.set("leaderboards", "a_1", {"totalEntries": 1})
        store.delete("leaderboards", "a_1")
        doc = client.collection.return_value.document.return_value
        doc.set.assert_called_once_with({"totalEntries": 1})
        doc.delete.assert_called_once_with()

    def test_ping_failure(self, test_config, mocker):
        client = mocker.MagicMock()
        client.collection.return_value.limit.return_value.stream.side_effect = (
            ServiceUnavailable("down")
        )
        with pytest.raises(StoreError, match="unreachable"):
            FirestoreRecordStore(test_config, client=client).ping()

"""
Tests for blob store adapters.
"""

import pytest

from snapshot_scheduler.adapters.credentials import BlobCredentialStore
from snapshot_scheduler.adapters.local_storage import InMemoryBlobStore, LocalBlobStore
from snapshot_scheduler.core.ports.storage import (
    InvalidBlobError,
    KeyNotFoundError,
    StorageError,
    read_json,
    write_json,
)


@pytest.fixture
def local_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "data")


class TestLocalBlobStore:
    def test_put_get(self, local_store: LocalBlobStore) -> None:
        local_store.put("completed/2024-06-15.json", b"[]")

        assert local_store.get("completed/2024-06-15.json") == b"[]"
        assert local_store.exists("completed/2024-06-15.json")

    def test_missing_key(self, local_store: LocalBlobStore) -> None:
        with pytest.raises(KeyNotFoundError):
            local_store.get("schedule.json")

    def test_overwrite(self, local_store: LocalBlobStore) -> None:
        local_store.put("schedule.json", b"{}")
        local_store.put("schedule.json", b'{"a--b": {}}')

        assert local_store.get("schedule.json") == b'{"a--b": {}}'

    def test_list_keys_by_prefix(self, local_store: LocalBlobStore) -> None:
        local_store.put("registered/b--c.json", b"{}")
        local_store.put("registered/a--b.json", b"{}")
        local_store.put("schedule.json", b"{}")

        assert local_store.list_keys("registered/") == [
            "registered/a--b.json",
            "registered/b--c.json",
        ]

    def test_no_temp_files_left(self, local_store: LocalBlobStore) -> None:
        local_store.put("schedule.json", b"{}")

        assert local_store.list_keys() == ["schedule.json"]

    def test_path_traversal_rejected(self, local_store: LocalBlobStore) -> None:
        with pytest.raises(StorageError):
            local_store.put("../escape.json", b"{}")

    def test_delete(self, local_store: LocalBlobStore) -> None:
        local_store.put("x.json", b"{}")

        assert local_store.delete("x.json") is True
        assert local_store.delete("x.json") is False


class TestJsonHelpers:
    def test_round_trip(self) -> None:
        store = InMemoryBlobStore()

        write_json(store, "k.json", {"a": [1, 2]})

        assert read_json(store, "k.json") == {"a": [1, 2]}
        assert store.writes["k.json"] == 1

    def test_invalid_json(self) -> None:
        store = InMemoryBlobStore({"k.json": b"{not json"})

        with pytest.raises(InvalidBlobError):
            read_json(store, "k.json")


class TestBlobCredentialStore:
    def test_put_get(self) -> None:
        creds = BlobCredentialStore(InMemoryBlobStore())

        creds.put_credential("org--site--apiKey", "secret")

        assert creds.get_credential("org--site--apiKey") == "secret"

    def test_missing_or_blank_is_none(self) -> None:
        creds = BlobCredentialStore(InMemoryBlobStore({"blank": b"  \n"}))

        assert creds.get_credential("absent") is None
        assert creds.get_credential("blank") is None

"""
Credential Store Adapters.

BlobCredentialStore keeps each tenant credential as a raw blob in a store
separate from the scheduling data (e.g. a LocalBlobStore rooted in a secrets
directory).
"""

from __future__ import annotations

from snapshot_scheduler.core.ports.storage import BlobStorePort, KeyNotFoundError


class BlobCredentialStore:
    """CredentialStorePort backed by a dedicated blob store."""

    def __init__(self, store: BlobStorePort) -> None:
        self._store = store

    def get_credential(self, ref: str) -> str | None:
        try:
            value = self._store.get(ref).decode("utf-8").strip()
        except KeyNotFoundError:
            return None
        return value or None

    def put_credential(self, ref: str, credential: str) -> None:
        self._store.put(ref, credential.encode("utf-8"), "text/plain")

"""
Blob Store Interface.

Protocol-based interface for key/blob storage.
Implementations: local filesystem, in-memory (dev/test).

Key requirements:
- get() on a missing key raises KeyNotFoundError
- put() overwrites the whole blob; there is no partial patch primitive
- No conditional writes: concurrent writers resolve as last-writer-wins
"""

from __future__ import annotations

import json
from typing import Any, Protocol


class BlobStorePort(Protocol):
    """
    Blob store port interface.

    Keys are slash-separated paths such as "completed/2025-01-02.json".
    """

    def get(self, key: str) -> bytes:
        """
        Retrieve blob bytes by key.

        Raises:
            KeyNotFoundError: If key doesn't exist
            StorageError: If the backend fails
        """
        ...

    def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        """
        Store blob bytes under the given key, replacing any existing blob.

        Raises:
            StorageError: If the backend fails
        """
        ...

    def exists(self, key: str) -> bool:
        """Check if key exists in storage."""
        ...

    def delete(self, key: str) -> bool:
        """
        Delete blob by key.

        Returns:
            True if deleted, False if key didn't exist
        """
        ...

    def list_keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix, sorted."""
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class KeyNotFoundError(StorageError):
    """Raised when key doesn't exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class InvalidBlobError(StorageError):
    """Raised when a blob exists but does not hold the expected JSON shape."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid blob at {key}: {reason}")


# --- JSON helpers ---


def read_json(store: BlobStorePort, key: str) -> Any:
    """
    Load and decode a JSON blob.

    Raises:
        KeyNotFoundError: If key doesn't exist
        InvalidBlobError: If the blob is not valid JSON
    """
    raw = store.get(key)
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidBlobError(key, str(e)) from e


def write_json(store: BlobStorePort, key: str, value: Any) -> None:
    """Encode and store a JSON blob (pretty-printed, two-space indent)."""
    store.put(key, json.dumps(value, indent=2).encode("utf-8"), "application/json")

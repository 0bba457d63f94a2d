"""
Blob Store Adapters.

Implements BlobStorePort on the local filesystem and in memory.

- LocalBlobStore: one file per key under base_path; writes go through a
  temporary file and os.replace so readers never see a torn blob
- InMemoryBlobStore: dict-backed, for dev runs and tests
"""

from __future__ import annotations

import os
import tempfile
import threading
from pathlib import Path

from snapshot_scheduler.core.ports.storage import KeyNotFoundError, StorageError


class LocalBlobStore:
    """
    Local filesystem implementation of BlobStorePort.

    Example key: "completed/2025-01-02.json" -> {base_path}/completed/2025-01-02.json
    """

    def __init__(self, base_path: str | Path, *, create_dirs: bool = True) -> None:
        self.base_path = Path(base_path).resolve()

        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, key: str) -> Path:
        # Prevent traversal
        target = (self.base_path / key.lstrip("/")).resolve()
        if target != self.base_path and self.base_path not in target.parents:
            raise StorageError(f"Path traversal attempt detected: {key}")
        return target

    def get(self, key: str) -> bytes:
        target = self._safe_path(key)
        try:
            with open(target, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise KeyNotFoundError(key) from None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        target = self._safe_path(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return self._safe_path(key).is_file()

    def delete(self, key: str) -> bool:
        target = self._safe_path(key)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for path in self.base_path.rglob("*"):
            if not path.is_file() or path.name.startswith("."):
                continue
            key = path.relative_to(self.base_path).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)


class InMemoryBlobStore:
    """In-memory BlobStorePort for dev/test. Counts reads and writes per key."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self._blobs: dict[str, bytes] = dict(blobs or {})
        self._lock = threading.Lock()
        self.reads: dict[str, int] = {}
        self.writes: dict[str, int] = {}

    def get(self, key: str) -> bytes:
        with self._lock:
            self.reads[key] = self.reads.get(key, 0) + 1
            if key not in self._blobs:
                raise KeyNotFoundError(key)
            return self._blobs[key]

    def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        with self._lock:
            self.writes[key] = self.writes.get(key, 0) + 1
            self._blobs[key] = bytes(data)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._blobs.pop(key, None) is not None

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._blobs if k.startswith(prefix))

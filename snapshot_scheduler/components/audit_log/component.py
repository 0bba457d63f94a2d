"""
AuditLog - append-only daily logs of completed and failed jobs.

Records are appended to "<prefix>/<YYYY-MM-DD>.json", a JSON array keyed by
the UTC date of the write. Entries are never mutated or removed.

Key behaviors:
- one read-modify-write per append() call, whatever the batch size
- a missing bucket starts a fresh list
- a bucket that is not a JSON array is an error (never overwritten)
- not a query layer: read_bucket() exists for operators and tests
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from snapshot_scheduler.core.ports.storage import (
    BlobStorePort,
    InvalidBlobError,
    KeyNotFoundError,
    read_json,
    write_json,
)
from snapshot_scheduler.core.ports.time import TimePort
from snapshot_scheduler.core.timeutil import day_bucket

logger = logging.getLogger(__name__)

COMPLETED_PREFIX = "completed"
FAILED_PREFIX = "failed"


def bucket_key(prefix: str, when: datetime) -> str:
    return f"{prefix.rstrip('/')}/{day_bucket(when)}.json"


class AuditLog:
    """Daily-bucketed append-only log under one prefix."""

    def __init__(self, store: BlobStorePort, prefix: str, clock: TimePort) -> None:
        self._store = store
        self._prefix = prefix
        self._clock = clock

    @property
    def prefix(self) -> str:
        return self._prefix

    def _load_bucket(self, key: str) -> list[Any]:
        try:
            existing = read_json(self._store, key)
        except KeyNotFoundError:
            logger.info("No existing bucket %s, starting fresh", key)
            return []

        if not isinstance(existing, list):
            raise InvalidBlobError(key, "log bucket is not a JSON array")
        return existing

    def append(self, records: Sequence[BaseModel | dict[str, Any]]) -> str | None:
        """
        Append records to today's bucket in a single read-modify-write.

        Returns:
            The bucket key written, or None if records was empty

        Raises:
            StorageError: If the bucket cannot be read, is malformed, or cannot be saved
        """
        if not records:
            return None

        key = bucket_key(self._prefix, self._clock.now_utc())
        entries = self._load_bucket(key)

        for record in records:
            if isinstance(record, BaseModel):
                entries.append(record.model_dump(by_alias=True, exclude_none=True))
            else:
                entries.append(dict(record))

        write_json(self._store, key, entries)
        logger.info("Appended %d records to %s", len(records), key)
        return key

    def read_bucket(self, day: datetime) -> list[dict[str, Any]]:
        """Return all entries for the UTC date of `day` (empty if none)."""
        return self._load_bucket(bucket_key(self._prefix, day))


def create_completed_log(
    store: BlobStorePort,
    clock: TimePort,
    prefix: str = COMPLETED_PREFIX,
) -> AuditLog:
    return AuditLog(store, prefix, clock)


def create_failed_log(
    store: BlobStorePort,
    clock: TimePort,
    prefix: str = FAILED_PREFIX,
) -> AuditLog:
    return AuditLog(store, prefix, clock)

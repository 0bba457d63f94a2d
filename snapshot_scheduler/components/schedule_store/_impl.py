"""
ScheduleStore - durable mapping of tenant -> pending jobs.

The whole schedule is one JSON blob. The blob store has no partial update,
so every mutation is load -> mutate in memory -> save, and concurrent
mutators resolve as last-writer-wins. To bound those races, callers pass a
whole batch of removals so each invocation performs one load and one save.

Invariants:
- a tenant key present in a saved document maps to a non-empty job map
- removing an absent job (or tenant) is a logged no-op, never an error
- a missing schedule blob means "no jobs scheduled"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from snapshot_scheduler.core.entities import ScheduleDocument, TenantKey
from snapshot_scheduler.core.ports.storage import (
    BlobStorePort,
    InvalidBlobError,
    KeyNotFoundError,
    read_json,
    write_json,
)

from .models import JobRef, RemovalResult

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_KEY = "schedule.json"


# --- Pure document operations ---


def remove_jobs(doc: ScheduleDocument, jobs: Iterable[JobRef]) -> RemovalResult:
    """
    Remove jobs from doc in place.

    Absent tenants or job ids are skipped with a warning; a tenant whose job
    map becomes empty is deleted.
    """
    removed = 0
    missing: list[JobRef] = []

    for job in jobs:
        tenant_key = str(job.tenant)
        tenant_jobs = doc.get(tenant_key)

        if not isinstance(tenant_jobs, dict) or job.job_id not in tenant_jobs:
            logger.warning("Job %s not found in schedule for %s", job.job_id, tenant_key)
            missing.append(job)
            continue

        del tenant_jobs[job.job_id]
        removed += 1

        if not tenant_jobs:
            del doc[tenant_key]

    return RemovalResult(
        removed=removed,
        skipped=len(missing),
        saved=False,
        missing=tuple(missing),
    )


def upsert_job(doc: ScheduleDocument, tenant: TenantKey, job_id: str, scheduled_at: str) -> None:
    """Insert or overwrite doc[tenant][job_id] in place."""
    tenant_key = str(tenant)
    tenant_jobs = doc.get(tenant_key)
    if not isinstance(tenant_jobs, dict):
        tenant_jobs = {}
        doc[tenant_key] = tenant_jobs
    tenant_jobs[job_id] = scheduled_at


# --- ScheduleStore ---


class ScheduleStore:
    """Read-modify-write access to the schedule document."""

    def __init__(self, store: BlobStorePort, key: str = DEFAULT_SCHEDULE_KEY) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> ScheduleDocument:
        """
        Load the schedule document.

        Returns an empty document when none exists.

        Raises:
            InvalidBlobError: If the blob is not a JSON object
            StorageError: If the backend fails
        """
        try:
            doc = read_json(self._store, self._key)
        except KeyNotFoundError:
            logger.info("No schedule data found at %s", self._key)
            return {}

        if not isinstance(doc, dict):
            raise InvalidBlobError(self._key, "schedule is not a JSON object")
        return doc

    def save(self, doc: ScheduleDocument) -> None:
        """Overwrite the whole schedule document."""
        write_json(self._store, self._key, doc)

    def remove_batch(self, jobs: Iterable[JobRef]) -> RemovalResult:
        """
        Remove a batch of jobs with one load and at most one save.

        The save is skipped when nothing was removed.
        """
        jobs = tuple(jobs)
        if not jobs:
            return RemovalResult(removed=0, skipped=0, saved=False)

        doc = self.load()
        result = remove_jobs(doc, jobs)

        if result.removed == 0:
            logger.info("No scheduled jobs to remove (%d already absent)", result.skipped)
            return result

        self.save(doc)
        logger.info("Batch removed %d/%d jobs from %s", result.removed, len(jobs), self._key)
        return RemovalResult(
            removed=result.removed,
            skipped=result.skipped,
            saved=True,
            missing=result.missing,
        )

    def upsert(self, tenant: TenantKey, job_id: str, scheduled_at: str) -> None:
        """Schedule job_id for tenant at scheduled_at, replacing any earlier time."""
        doc = self.load()
        upsert_job(doc, tenant, job_id, scheduled_at)
        self.save(doc)
        logger.info("Scheduled %s for %s at %s", job_id, tenant, scheduled_at)

    def get_tenant_jobs(self, tenant: TenantKey) -> dict[str, str]:
        jobs = self.load().get(str(tenant))
        if not isinstance(jobs, dict):
            return {}
        return dict(jobs)


def create_schedule_store(
    store: BlobStorePort,
    key: str = DEFAULT_SCHEDULE_KEY,
) -> ScheduleStore:
    """Create a ScheduleStore."""
    return ScheduleStore(store, key)

"""
Schedule store component - pending job bookkeeping.

Invariants:
- One load and at most one save per batch removal
- Removal of absent entries is idempotent
- Empty tenants are never persisted
"""

from __future__ import annotations

from snapshot_scheduler.core.ports.storage import BlobStorePort

from ._impl import DEFAULT_SCHEDULE_KEY, ScheduleStore
from .models import (
    GetTenantJobsInput,
    RemovalResult,
    RemoveJobsInput,
    TenantJobsOutput,
    UpsertJobInput,
)


def run_remove_batch(
    inp: RemoveJobsInput,
    *,
    store: BlobStorePort,
    key: str = DEFAULT_SCHEDULE_KEY,
) -> RemovalResult:
    """
    Remove all jobs in the batch from the schedule.

    Raises:
        StorageError: If the schedule cannot be loaded or saved
    """
    return ScheduleStore(store, key).remove_batch(inp.jobs)


def run_upsert(
    inp: UpsertJobInput,
    *,
    store: BlobStorePort,
    key: str = DEFAULT_SCHEDULE_KEY,
) -> None:
    """Insert or re-time one job."""
    ScheduleStore(store, key).upsert(inp.tenant, inp.job_id, inp.scheduled_at)


def run_get_tenant_jobs(
    inp: GetTenantJobsInput,
    *,
    store: BlobStorePort,
    key: str = DEFAULT_SCHEDULE_KEY,
) -> TenantJobsOutput:
    """Return the tenant's pending jobs (empty when none)."""
    jobs = ScheduleStore(store, key).get_tenant_jobs(inp.tenant)
    return TenantJobsOutput(tenant=inp.tenant, jobs=jobs)

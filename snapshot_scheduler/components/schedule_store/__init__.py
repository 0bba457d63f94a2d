"""
Schedule store component - pending job bookkeeping on a single JSON document.
"""

from ._impl import (
    DEFAULT_SCHEDULE_KEY,
    ScheduleStore,
    create_schedule_store,
    remove_jobs,
    upsert_job,
)
from .component import run_get_tenant_jobs, run_remove_batch, run_upsert
from .models import (
    GetTenantJobsInput,
    JobRef,
    RemovalResult,
    RemoveJobsInput,
    TenantJobsOutput,
    UpsertJobInput,
)

__all__ = [
    # Entry points
    "run_get_tenant_jobs",
    "run_remove_batch",
    "run_upsert",
    # Models
    "GetTenantJobsInput",
    "JobRef",
    "RemovalResult",
    "RemoveJobsInput",
    "TenantJobsOutput",
    "UpsertJobInput",
    # Service
    "DEFAULT_SCHEDULE_KEY",
    "ScheduleStore",
    "create_schedule_store",
    "remove_jobs",
    "upsert_job",
]

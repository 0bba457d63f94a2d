"""
Schedule store component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from snapshot_scheduler.core.entities import TenantKey

# --- Job Reference ---


@dataclass(frozen=True)
class JobRef:
    """Identifies one scheduled job."""

    organization: str
    site: str
    job_id: str

    @property
    def tenant(self) -> TenantKey:
        return TenantKey(self.organization, self.site)


# --- Input Models ---


@dataclass(frozen=True)
class RemoveJobsInput:
    """Input for removing a batch of jobs in one load/save cycle."""

    jobs: tuple[JobRef, ...]


@dataclass(frozen=True)
class UpsertJobInput:
    """Input for inserting or re-timing a job."""

    tenant: TenantKey
    job_id: str
    scheduled_at: str


@dataclass(frozen=True)
class GetTenantJobsInput:
    """Input for reading a tenant's pending jobs."""

    tenant: TenantKey


# --- Output Models ---


@dataclass(frozen=True)
class RemovalResult:
    """Outcome of a batch removal."""

    removed: int
    skipped: int
    saved: bool
    missing: tuple[JobRef, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TenantJobsOutput:
    """A tenant's pending jobs (job id -> scheduled timestamp)."""

    tenant: TenantKey
    jobs: dict[str, str] = field(default_factory=dict)

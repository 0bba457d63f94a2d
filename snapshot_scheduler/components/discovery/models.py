"""
Discovery component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from snapshot_scheduler.core.entities import JobRecord, TenantPollMessage

# --- Due Job ---


@dataclass(frozen=True)
class DueJob:
    """A job within the lookahead window and the delay it is enqueued with."""

    record: JobRecord
    delay_seconds: int


# --- Input Models ---


@dataclass(frozen=True)
class ScanInput:
    """Input for one schedule scan (strategy A)."""

    lookahead_seconds: int | None = None


@dataclass(frozen=True)
class EnqueueTenantsInput:
    """Input for fanning out one poll message per registered tenant (strategy B)."""


@dataclass(frozen=True)
class PollTenantInput:
    """Input for polling one tenant's remote job list (strategy B)."""

    message: TenantPollMessage
    lookahead_seconds: int | None = None


# --- Output Models ---


@dataclass(frozen=True)
class ScanOutput:
    """Output for a schedule scan."""

    dispatched: tuple[DueJob, ...] = field(default_factory=tuple)
    failed_sends: tuple[DueJob, ...] = field(default_factory=tuple)
    skipped_entries: int = 0

    @property
    def success(self) -> bool:
        return not self.failed_sends


@dataclass(frozen=True)
class EnqueueTenantsOutput:
    """Output for tenant fan-out."""

    enqueued: int = 0
    failed: int = 0

    @property
    def success(self) -> bool:
        return self.failed == 0


@dataclass(frozen=True)
class PollTenantOutput:
    """Output for polling one tenant."""

    dispatched: tuple[DueJob, ...] = field(default_factory=tuple)
    skipped_jobs: int = 0
    requeued: bool = False
    dropped: bool = False

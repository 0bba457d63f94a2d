"""
Publisher component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol

from snapshot_scheduler.components.schedule_store.models import JobRef, RemovalResult
from snapshot_scheduler.core.entities import TenantKey


class CredentialResolverPort(Protocol):
    """Resolves a tenant's remote API credential."""

    def get_credential(self, tenant: TenantKey) -> str | None:
        """Credential for tenant, or None if unregistered."""
        ...


class PublishTargetPort(Protocol):
    """Remote publish operations."""

    def publish(self, tenant: TenantKey, job_id: str, credential: str) -> None:
        """Publish a job. Raises on failure."""
        ...

    def update_manifest(
        self,
        tenant: TenantKey,
        job_id: str,
        manifest: dict[str, Any],
        credential: str,
    ) -> None:
        """Replace a job manifest. Raises on failure."""
        ...


class ScheduleRemoverPort(Protocol):
    """Batch removal from the schedule."""

    def remove_batch(self, jobs: Iterable[JobRef]) -> RemovalResult:
        """Remove all jobs in one load/save cycle."""
        ...


class CompletionLogPort(Protocol):
    """Append-only completion log."""

    def append(self, records: Sequence[Any]) -> str | None:
        """Append records in one read-modify-write; returns the bucket key."""
        ...


class TimePort(Protocol):
    """Time port."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

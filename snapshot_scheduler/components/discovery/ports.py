"""
Discovery component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from snapshot_scheduler.core.entities import ScheduleDocument, TenantKey


class ScheduleReaderPort(Protocol):
    """Read access to the schedule document."""

    def load(self) -> ScheduleDocument:
        """Load the whole schedule (empty when none exists)."""
        ...


class QueuePort(Protocol):
    """Producer side of a delivery queue."""

    def send(self, body: dict[str, Any], delay_seconds: int = 0) -> None:
        """Enqueue a message body with a delay."""
        ...


class TenantDirectoryPort(Protocol):
    """Registered tenants and their credentials."""

    def list_tenants(self) -> list[TenantKey]:
        """List all registered tenants."""
        ...

    def get_credential(self, tenant: TenantKey) -> str | None:
        """Credential for tenant, or None if unregistered."""
        ...


class JobSourcePort(Protocol):
    """Remote job listing used by per-tenant polling."""

    def list_jobs(self, tenant: TenantKey, credential: str) -> list[str]:
        """List job ids for a tenant."""
        ...

    def get_manifest(self, tenant: TenantKey, job_id: str, credential: str) -> dict[str, Any]:
        """Fetch one job manifest."""
        ...


class TimePort(Protocol):
    """Time port."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

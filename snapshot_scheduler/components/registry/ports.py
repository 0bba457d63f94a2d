"""
Registry component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from snapshot_scheduler.core.entities import TenantKey, TenantRegistration


class TenantRegistryPort(Protocol):
    """Registered tenants and their credentials."""

    def register(self, tenant: TenantKey, api_key: str) -> bool:
        """Store credential and registration; True when newly created."""
        ...

    def get(self, tenant: TenantKey) -> TenantRegistration | None:
        ...


class ManifestSourcePort(Protocol):
    """Remote manifest lookup on behalf of the calling user."""

    def get_manifest_for_caller(
        self, tenant: TenantKey, job_id: str, authorization: str
    ) -> dict[str, Any]:
        """Fetch a manifest, forwarding the caller's Authorization header value."""
        ...


class ScheduleWriterPort(Protocol):
    """Schedule store access used by the registry."""

    def upsert(self, tenant: TenantKey, job_id: str, scheduled_at: str) -> None:
        ...

    def get_tenant_jobs(self, tenant: TenantKey) -> dict[str, str]:
        ...


class TimePort(Protocol):
    """Time port."""

    def now_utc(self) -> datetime:
        ...

"""
Registry component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from snapshot_scheduler.core.entities import TenantKey

# --- Validation Error ---


@dataclass(frozen=True)
class RegistryValidationError:
    """Registry validation error."""

    code: str
    message: str
    field_name: str | None = None


# Error codes
TENANT_INVALID = "tenant_invalid"
CREDENTIAL_MISSING = "credential_missing"
JOB_ID_MISSING = "job_id_missing"
TENANT_NOT_REGISTERED = "tenant_not_registered"
MISSING_SCHEDULED_PUBLISH = "missing_scheduled_publish"
INVALID_DATE = "invalid_date"
TOO_SOON = "too_soon"
REMOTE_AUTH_FAILED = "remote_auth_failed"
REMOTE_ERROR = "remote_error"


# --- Input Models ---


@dataclass(frozen=True)
class RegisterTenantInput:
    """Input for registering a tenant and its publish credential."""

    organization: str
    site: str
    api_key: str


@dataclass(frozen=True)
class UpdateScheduleInput:
    """
    Input for scheduling a job from its remote manifest.

    authorization is the caller's own credential; it is used to read the
    manifest so only callers with access to the job can schedule it.
    """

    organization: str
    site: str
    job_id: str
    authorization: str


@dataclass(frozen=True)
class GetScheduleInput:
    """Input for reading a tenant's schedule."""

    organization: str
    site: str


# --- Output Models ---


@dataclass(frozen=True)
class RegisterTenantOutput:
    """Output for registration."""

    tenant: TenantKey | None
    created: bool = False
    errors: list[RegistryValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class UpdateScheduleOutput:
    """Output for a schedule update."""

    job_id: str
    scheduled_at: str | None = None
    errors: list[RegistryValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class GetScheduleOutput:
    """A tenant's pending jobs."""

    tenant: TenantKey | None
    jobs: dict[str, str] = field(default_factory=dict)
    errors: list[RegistryValidationError] = field(default_factory=list)
    success: bool = True

"""
Registry component - tenant registration and schedule mutation.

Invariants:
- Organization and site are non-empty and never contain the tenant separator
- A job is scheduled only from its remote manifest's scheduledPublish field
- Scheduled time must be at least min_lead_seconds in the future
- Upserting an existing job re-times it; it never duplicates
"""

from __future__ import annotations

import logging
from datetime import timedelta

from snapshot_scheduler.core.entities import TenantKey, TenantKeyError
from snapshot_scheduler.core.ports.publish_api import PublishApiAuthError, PublishApiError
from snapshot_scheduler.core.timeutil import format_timestamp, parse_timestamp
from snapshot_scheduler.rules.models import Rules

from .models import (
    CREDENTIAL_MISSING,
    INVALID_DATE,
    JOB_ID_MISSING,
    MISSING_SCHEDULED_PUBLISH,
    REMOTE_AUTH_FAILED,
    REMOTE_ERROR,
    TENANT_INVALID,
    TENANT_NOT_REGISTERED,
    TOO_SOON,
    GetScheduleInput,
    GetScheduleOutput,
    RegisterTenantInput,
    RegisterTenantOutput,
    RegistryValidationError,
    UpdateScheduleInput,
    UpdateScheduleOutput,
)
from .ports import ManifestSourcePort, ScheduleWriterPort, TenantRegistryPort, TimePort

logger = logging.getLogger(__name__)

DEFAULT_MIN_LEAD_SECONDS = 300
SCHEDULED_PUBLISH_FIELD = "scheduledPublish"


def _validate_tenant(
    organization: str, site: str
) -> tuple[TenantKey | None, list[RegistryValidationError]]:
    tenant = TenantKey(organization=(organization or "").strip(), site=(site or "").strip())
    try:
        tenant.validate()
    except TenantKeyError as e:
        return None, [RegistryValidationError(TENANT_INVALID, str(e), "organization/site")]
    return tenant, []


# --- Component Entry Points ---


def run_register(
    inp: RegisterTenantInput,
    *,
    registry: TenantRegistryPort,
) -> RegisterTenantOutput:
    """
    Register a tenant.

    Raises:
        StorageError: If the registration cannot be stored
    """
    tenant, errors = _validate_tenant(inp.organization, inp.site)
    if not inp.api_key or not inp.api_key.strip():
        errors.append(
            RegistryValidationError(CREDENTIAL_MISSING, "API key is required", "apiKey")
        )
    if tenant is None or errors:
        return RegisterTenantOutput(tenant=tenant, errors=errors, success=False)

    created = registry.register(tenant, inp.api_key.strip())
    return RegisterTenantOutput(tenant=tenant, created=created)


def run_update_schedule(
    inp: UpdateScheduleInput,
    *,
    registry: TenantRegistryPort,
    manifests: ManifestSourcePort,
    schedule: ScheduleWriterPort,
    clock: TimePort,
    rules: Rules | None = None,
) -> UpdateScheduleOutput:
    """
    Schedule a job at the time its manifest asks for.

    Raises:
        StorageError: If the schedule cannot be loaded or saved
    """
    tenant, errors = _validate_tenant(inp.organization, inp.site)
    if not inp.job_id:
        errors.append(RegistryValidationError(JOB_ID_MISSING, "jobId is required", "jobId"))
    if tenant is None or errors:
        return UpdateScheduleOutput(job_id=inp.job_id, errors=errors, success=False)

    def fail(code: str, message: str, field_name: str | None = None) -> UpdateScheduleOutput:
        logger.warning("Rejected schedule update for %s/%s: %s", tenant, inp.job_id, message)
        return UpdateScheduleOutput(
            job_id=inp.job_id,
            errors=[RegistryValidationError(code, message, field_name)],
            success=False,
        )

    if registry.get(tenant) is None:
        return fail(TENANT_NOT_REGISTERED, f"Tenant {tenant} is not registered")

    try:
        manifest = manifests.get_manifest_for_caller(tenant, inp.job_id, inp.authorization)
    except PublishApiAuthError as e:
        return fail(REMOTE_AUTH_FAILED, str(e))
    except PublishApiError as e:
        return fail(REMOTE_ERROR, str(e))

    metadata = manifest.get("metadata") or {}
    raw = metadata.get(SCHEDULED_PUBLISH_FIELD) if isinstance(metadata, dict) else None
    if not raw:
        return fail(
            MISSING_SCHEDULED_PUBLISH,
            "No scheduledPublish date in snapshot metadata",
            SCHEDULED_PUBLISH_FIELD,
        )

    try:
        scheduled_at = parse_timestamp(raw)
    except ValueError:
        return fail(INVALID_DATE, f"Invalid scheduledPublish date: {raw}", SCHEDULED_PUBLISH_FIELD)

    min_lead = rules.scheduler.min_lead_seconds if rules else DEFAULT_MIN_LEAD_SECONDS
    earliest = clock.now_utc() + timedelta(seconds=min_lead)
    if scheduled_at < earliest:
        return fail(
            TOO_SOON,
            f"scheduledPublish must be at least {min_lead} seconds in the future",
            SCHEDULED_PUBLISH_FIELD,
        )

    stored = format_timestamp(scheduled_at)
    schedule.upsert(tenant, inp.job_id, stored)
    return UpdateScheduleOutput(job_id=inp.job_id, scheduled_at=stored)


def run_get_schedule(
    inp: GetScheduleInput,
    *,
    schedule: ScheduleWriterPort,
) -> GetScheduleOutput:
    """Return a tenant's pending jobs (empty when none)."""
    tenant, errors = _validate_tenant(inp.organization, inp.site)
    if tenant is None:
        return GetScheduleOutput(tenant=None, errors=errors, success=False)
    return GetScheduleOutput(tenant=tenant, jobs=schedule.get_tenant_jobs(tenant))

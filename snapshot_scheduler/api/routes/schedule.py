"""
Schedule API Routes.

Provides the schedule mutation and lookup endpoints:
- POST /schedule schedules a job at its manifest's scheduledPublish time
- GET /schedule/{organization}/{site} lists a tenant's pending jobs
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from snapshot_scheduler.adapters.admin_api import AdminApiClient
from snapshot_scheduler.adapters.clock import SystemClock
from snapshot_scheduler.api.deps import (
    get_admin_api,
    get_clock,
    get_registry,
    get_rules,
    get_schedule_store,
)
from snapshot_scheduler.api.routes.registration import serialize_errors
from snapshot_scheduler.components.registry import (
    REMOTE_AUTH_FAILED,
    REMOTE_ERROR,
    TENANT_NOT_REGISTERED,
    GetScheduleInput,
    TenantRegistry,
    UpdateScheduleInput,
    run_get_schedule,
    run_update_schedule,
)
from snapshot_scheduler.components.schedule_store import ScheduleStore
from snapshot_scheduler.rules.models import Rules

router = APIRouter()

# Error code -> HTTP status; anything else is a 400
_STATUS_BY_CODE = {
    TENANT_NOT_REGISTERED: 404,
    REMOTE_AUTH_FAILED: 403,
    REMOTE_ERROR: 502,
}


# --- Request/Response Models ---


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduleRequest(_CamelModel):
    """Request to schedule a job from its manifest."""

    organization: str
    site: str
    job_id: str


class ScheduleResponse(_CamelModel):
    """Response for a scheduled job."""

    success: bool
    job_id: str
    scheduled_at: str


class TenantScheduleResponse(BaseModel):
    """A tenant's pending jobs."""

    organization: str
    site: str
    jobs: dict[str, str]


# --- Routes ---


@router.post("/schedule", response_model=ScheduleResponse, response_model_by_alias=True)
def schedule_job(
    request: ScheduleRequest,
    authorization: str | None = Header(default=None),
    registry: TenantRegistry = Depends(get_registry),
    schedule: ScheduleStore = Depends(get_schedule_store),
    api: AdminApiClient = Depends(get_admin_api),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> Any:
    """
    Schedule a job for publishing.

    The caller's Authorization header is used to read the job manifest, so
    only callers with access to the snapshot can schedule it.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    result = run_update_schedule(
        UpdateScheduleInput(
            organization=request.organization,
            site=request.site,
            job_id=request.job_id,
            authorization=authorization,
        ),
        registry=registry,
        manifests=api,
        schedule=schedule,
        clock=clock,
        rules=rules,
    )

    if not result.success or result.scheduled_at is None:
        status_code = max(_STATUS_BY_CODE.get(e.code, 400) for e in result.errors)
        raise HTTPException(
            status_code=status_code,
            detail={"errors": serialize_errors(result.errors)},
        )

    return ScheduleResponse(success=True, job_id=result.job_id, scheduled_at=result.scheduled_at)


@router.get("/schedule/{organization}/{site}", response_model=TenantScheduleResponse)
def get_tenant_schedule(
    organization: str,
    site: str,
    schedule: ScheduleStore = Depends(get_schedule_store),
) -> Any:
    """List a tenant's pending jobs (empty when none)."""
    result = run_get_schedule(
        GetScheduleInput(organization=organization, site=site),
        schedule=schedule,
    )

    if not result.success or result.tenant is None:
        raise HTTPException(status_code=400, detail={"errors": serialize_errors(result.errors)})

    return TenantScheduleResponse(
        organization=result.tenant.organization,
        site=result.tenant.site,
        jobs=result.jobs,
    )

"""
Tenant Registration API Routes.

Registers an (organization, site) pair together with the credential the
publisher uses against the remote admin API.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from snapshot_scheduler.api.deps import get_registry
from snapshot_scheduler.components.registry import (
    RegisterTenantInput,
    RegistryValidationError,
    TenantRegistry,
    run_register,
)

router = APIRouter()


# --- Request/Response Models ---


class RegisterRequest(BaseModel):
    """Request to register a tenant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    organization: str
    site: str
    api_key: str


class RegisterResponse(BaseModel):
    """Registration response."""

    organization: str
    site: str
    created: bool


# --- Helpers ---


def serialize_errors(errors: list[RegistryValidationError]) -> list[dict[str, Any]]:
    """Serialize validation errors for JSON response."""
    return [
        {"code": e.code, "message": e.message, "field": e.field_name}
        for e in errors
    ]


# --- Routes ---


@router.post("/register", response_model=RegisterResponse)
def register_tenant(
    request: RegisterRequest,
    registry: TenantRegistry = Depends(get_registry),
) -> Any:
    """
    Register a tenant.

    Re-registering an existing tenant refreshes its credential and reports
    created=false.
    """
    result = run_register(
        RegisterTenantInput(
            organization=request.organization,
            site=request.site,
            api_key=request.api_key,
        ),
        registry=registry,
    )

    if not result.success or result.tenant is None:
        raise HTTPException(status_code=400, detail={"errors": serialize_errors(result.errors)})

    return RegisterResponse(
        organization=result.tenant.organization,
        site=result.tenant.site,
        created=result.created,
    )

"""Registry component - tenant registration and schedule updates."""

from ._impl import DEFAULT_REGISTERED_PREFIX, TenantRegistry, create_tenant_registry
from .component import run_get_schedule, run_register, run_update_schedule
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

__all__ = [
    # Entry points
    "run_register",
    "run_update_schedule",
    "run_get_schedule",
    # Models
    "GetScheduleInput",
    "GetScheduleOutput",
    "RegisterTenantInput",
    "RegisterTenantOutput",
    "RegistryValidationError",
    "UpdateScheduleInput",
    "UpdateScheduleOutput",
    # Error codes
    "CREDENTIAL_MISSING",
    "INVALID_DATE",
    "JOB_ID_MISSING",
    "MISSING_SCHEDULED_PUBLISH",
    "REMOTE_AUTH_FAILED",
    "REMOTE_ERROR",
    "TENANT_INVALID",
    "TENANT_NOT_REGISTERED",
    "TOO_SOON",
    # Ports
    "ManifestSourcePort",
    "ScheduleWriterPort",
    "TenantRegistryPort",
    "TimePort",
    # Service
    "DEFAULT_REGISTERED_PREFIX",
    "TenantRegistry",
    "create_tenant_registry",
]

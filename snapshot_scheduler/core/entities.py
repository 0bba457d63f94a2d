"""
Domain entities for the scheduled snapshot publisher.

Wire-facing records (queue bodies, audit/failure entries, registration
records) are pydantic models serialized with camelCase aliases so the blobs
and queue payloads keep their established JSON shape.

- TenantKey: (organization, site) pair, serialized as "<org>--<site>"
- JobRecord: delivery queue body
- CompletionRecord / FailureRecord: append-only daily log entries
- TenantRegistration: one record per registered tenant
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "TENANT_SEPARATOR",
    "PUBLISHER_ID",
    "FAILURE_REASON_MAX_RETRIES",
    "ScheduleDocument",
    "TenantKey",
    "TenantKeyError",
    "JobRecord",
    "CompletionRecord",
    "FailureRecord",
    "TenantRegistration",
    "TenantPollMessage",
]

TENANT_SEPARATOR = "--"
PUBLISHER_ID = "scheduled-snapshot-publisher"
FAILURE_REASON_MAX_RETRIES = "exceeded-max-retries"

# tenant key -> job id -> scheduled ISO-8601 timestamp
ScheduleDocument = dict[str, dict[str, str]]


class TenantKeyError(ValueError):
    """Raised when a tenant key or its parts are malformed."""


# --- Tenant Key ---


@dataclass(frozen=True)
class TenantKey:
    """
    Composite tenant identifier.

    Invariants:
    - neither part is empty
    - neither part contains the separator or starts or ends with "-",
      so str() and parse() round-trip (checked by validate())
    """

    organization: str
    site: str

    def __str__(self) -> str:
        return f"{self.organization}{TENANT_SEPARATOR}{self.site}"

    @property
    def credential_ref(self) -> str:
        return f"{self}{TENANT_SEPARATOR}apiKey"

    def validate(self) -> None:
        """Raise TenantKeyError if the key cannot round-trip through parse()."""
        for name, value in (("organization", self.organization), ("site", self.site)):
            if not value or not value.strip():
                raise TenantKeyError(f"{name} must not be empty")
            if TENANT_SEPARATOR in value:
                raise TenantKeyError(f"{name} must not contain '{TENANT_SEPARATOR}': {value}")
            if value.startswith("-") or value.endswith("-"):
                # "a-" + "b" and "a" + "-b" would both serialize to "a---b"
                raise TenantKeyError(f"{name} must not start or end with '-': {value}")

    @classmethod
    def parse(cls, raw: str) -> TenantKey:
        """Parse "<org>--<site>". Keys that validate() would reject are rejected."""
        parts = raw.split(TENANT_SEPARATOR)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise TenantKeyError(f"Invalid tenant key: {raw!r}")
        key = cls(organization=parts[0], site=parts[1])
        key.validate()
        return key


# --- Wire Models ---


class _WireModel(BaseModel):
    """Base for camelCase JSON records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class JobRecord(_WireModel):
    """A job handed from discovery to the publish executor."""

    organization: str
    site: str
    job_id: str
    scheduled_at: str
    dispatched_at: str | None = None
    manifest: dict[str, Any] | None = None

    @property
    def tenant(self) -> TenantKey:
        return TenantKey(self.organization, self.site)


class CompletionRecord(_WireModel):
    """Audit entry appended once a job has been published."""

    organization: str
    site: str
    job_id: str
    scheduled_at: str
    completed_at: str
    completed_by: str = PUBLISHER_ID


class FailureRecord(_WireModel):
    """Entry appended for a job that exhausted its delivery attempts."""

    organization: str | None = None
    site: str | None = None
    job_id: str | None = None
    scheduled_at: str | None = None
    queue_message_id: str
    original_enqueue_timestamp: str | None = None
    failed_at: str
    reason: str = FAILURE_REASON_MAX_RETRIES


class TenantRegistration(_WireModel):
    """Registration record stored at registered/<org>--<site>.json."""

    organization: str
    site: str
    credential_ref: str


class TenantPollMessage(_WireModel):
    """Body of a per-tenant poll request."""

    organization: str
    site: str
    poll_attempt: int = Field(default=0, ge=0)

    @property
    def tenant(self) -> TenantKey:
        return TenantKey(self.organization, self.site)

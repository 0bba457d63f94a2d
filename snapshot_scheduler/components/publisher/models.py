"""
Publisher component input/output models and errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from snapshot_scheduler.core.entities import JobRecord
from snapshot_scheduler.core.ports.queue import QueueBatch

# --- Errors ---


class PublisherError(Exception):
    """Base exception for publish batch failures. Raising one fails the batch."""


class InvalidJobMessageError(PublisherError):
    """Queue message body is not a valid job record."""

    def __init__(self, message_id: str, error: str) -> None:
        self.message_id = message_id
        super().__init__(f"Invalid job message {message_id}: {error}")


class TenantNotRegisteredError(PublisherError):
    """No credential exists for the job's tenant."""

    def __init__(self, tenant: str) -> None:
        self.tenant = tenant
        super().__init__(f"Tenant not registered: {tenant}")


class PublishFailedError(PublisherError):
    """The remote publish call failed."""

    def __init__(self, tenant: str, job_id: str, error: str) -> None:
        self.tenant = tenant
        self.job_id = job_id
        self.error = error
        super().__init__(f"Failed to publish {job_id} for {tenant}: {error}")


class BookkeepingError(PublisherError):
    """Audit append or schedule removal failed after a successful publish."""

    def __init__(self, step: str, error: str) -> None:
        self.step = step
        self.error = error
        super().__init__(f"Bookkeeping step '{step}' failed: {error}")


# --- Input Models ---


@dataclass(frozen=True)
class PublishBatchInput:
    """A delivered batch of job messages."""

    batch: QueueBatch


# --- Output Models ---


@dataclass(frozen=True)
class PublishedJob:
    """A job whose publish call succeeded in this attempt."""

    record: JobRecord
    published_at: str
    manifest_updated: bool | None = None  # None when no manifest was carried


@dataclass(frozen=True)
class PublishBatchOutput:
    """Output for a fully processed batch."""

    published: tuple[PublishedJob, ...] = field(default_factory=tuple)
    removed: int = 0
    skipped: int = 0
    audit_key: str | None = None

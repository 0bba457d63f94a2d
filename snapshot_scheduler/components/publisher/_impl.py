"""
PublisherService - executes a delivered batch of publish jobs.

Fail-fast batch semantics: jobs are published in order and the first
failure raises, leaving the rest of the batch unattempted. The queue then
redelivers the whole batch, including jobs already published in this
attempt, which relies on the remote publish being harmless to repeat.

Bookkeeping happens only after every publish in the batch succeeded:
1. one append of N completion records to today's audit bucket
2. one schedule removal of the N jobs
Either step failing raises so the queue retries; re-running bookkeeping
against entries that are already gone is a logged no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from snapshot_scheduler.components.schedule_store.models import JobRef
from snapshot_scheduler.core.entities import (
    PUBLISHER_ID,
    CompletionRecord,
    JobRecord,
)
from snapshot_scheduler.core.ports.queue import QueueMessage
from snapshot_scheduler.core.timeutil import format_timestamp

from .models import (
    BookkeepingError,
    InvalidJobMessageError,
    PublishBatchOutput,
    PublishedJob,
    PublishFailedError,
    TenantNotRegisteredError,
)
from .ports import (
    CompletionLogPort,
    CredentialResolverPort,
    PublishTargetPort,
    ScheduleRemoverPort,
    TimePort,
)

logger = logging.getLogger(__name__)

SCHEDULED_PUBLISH_FIELD = "scheduledPublish"


def build_published_manifest(manifest: dict[str, Any], published_at: str) -> dict[str, Any]:
    """
    Manifest to post back after publishing.

    Drops the scheduling marker and stamps the published state.
    """
    metadata = dict(manifest.get("metadata") or {})
    metadata.pop(SCHEDULED_PUBLISH_FIELD, None)
    metadata.update(
        publishedAt=published_at,
        publishedBy=PUBLISHER_ID,
        status="published",
    )
    return {
        "title": manifest.get("title") or "",
        "description": manifest.get("description") or "",
        "locked": bool(manifest.get("locked", False)),
        "metadata": metadata,
    }


def parse_job_message(msg: QueueMessage) -> JobRecord:
    """
    Validate a queue message body as a job record.

    Raises:
        InvalidJobMessageError: If required fields are missing or malformed
    """
    try:
        return JobRecord.model_validate(msg.body)
    except ValidationError as e:
        raise InvalidJobMessageError(msg.id, str(e)) from e


class PublisherService:
    """Publish executor for delivery queue batches."""

    def __init__(
        self,
        credentials: CredentialResolverPort,
        api: PublishTargetPort,
        schedule: ScheduleRemoverPort,
        completed_log: CompletionLogPort,
        clock: TimePort,
    ) -> None:
        self._credentials = credentials
        self._api = api
        self._schedule = schedule
        self._completed_log = completed_log
        self._clock = clock

    def _publish_one(self, msg: QueueMessage) -> PublishedJob:
        record = parse_job_message(msg)
        tenant = record.tenant
        logger.info(
            "Publishing job %s for %s (attempt %d)", record.job_id, tenant, msg.attempts
        )

        credential = self._credentials.get_credential(tenant)
        if not credential:
            logger.error("No credential found for %s; job %s", tenant, record.job_id)
            raise TenantNotRegisteredError(str(tenant))

        try:
            self._api.publish(tenant, record.job_id, credential)
        except Exception as e:
            logger.error(
                "Publish failed (attempt %d) for %s/%s: %s",
                msg.attempts,
                tenant,
                record.job_id,
                e,
            )
            raise PublishFailedError(str(tenant), record.job_id, str(e)) from e

        published_at = format_timestamp(self._clock.now_utc())
        manifest_updated = None
        if record.manifest is not None:
            manifest_updated = self._update_manifest(record, credential, published_at)

        logger.info("Successfully published job %s for %s", record.job_id, tenant)
        return PublishedJob(
            record=record,
            published_at=published_at,
            manifest_updated=manifest_updated,
        )

    def _update_manifest(self, record: JobRecord, credential: str, published_at: str) -> bool:
        # The publish already happened; a failed manifest patch must not undo or fail it
        assert record.manifest is not None
        updated = build_published_manifest(record.manifest, published_at)
        try:
            self._api.update_manifest(record.tenant, record.job_id, updated, credential)
        except Exception as e:
            logger.error(
                "Failed to update manifest for %s/%s: %s", record.tenant, record.job_id, e
            )
            return False
        return True

    def publish_batch(self, messages: Sequence[QueueMessage]) -> PublishBatchOutput:
        """
        Publish every job in the batch, then record and unschedule them.

        Raises:
            PublisherError: On the first failing job, or if bookkeeping fails
        """
        published = [self._publish_one(msg) for msg in messages]
        if not published:
            return PublishBatchOutput()

        completions = [
            CompletionRecord(
                organization=job.record.organization,
                site=job.record.site,
                job_id=job.record.job_id,
                scheduled_at=job.record.scheduled_at,
                completed_at=job.published_at,
            )
            for job in published
        ]
        try:
            audit_key = self._completed_log.append(completions)
        except Exception as e:
            logger.error("Failed to append %d completion records: %s", len(completions), e)
            raise BookkeepingError("audit", str(e)) from e

        refs = [
            JobRef(job.record.organization, job.record.site, job.record.job_id)
            for job in published
        ]
        try:
            removal = self._schedule.remove_batch(refs)
        except Exception as e:
            logger.error("Failed to remove %d jobs from schedule: %s", len(refs), e)
            raise BookkeepingError("schedule", str(e)) from e

        logger.info("Successfully processed %d jobs in batch", len(published))
        return PublishBatchOutput(
            published=tuple(published),
            removed=removal.removed,
            skipped=removal.skipped,
            audit_key=audit_key,
        )

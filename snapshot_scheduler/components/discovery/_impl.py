"""
DiscoveryService - finds jobs due within the lookahead window and hands
them to the delivery queue with a delay.

Two strategies:
- schedule_scan: load the schedule document once per tick and dispatch every
  entry due at or before now + lookahead (past-due entries go out with zero
  delay, which recovers missed ticks)
- tenant_poll: fan out one poll message per registered tenant; each poll
  lists the tenant's jobs on the remote API and dispatches manifests whose
  scheduledPublish falls within [now, now + lookahead]

Key behaviors:
- a malformed entry (bad tenant key, unparseable date) is skipped alone
- a failed send is logged and counted; siblings still go out
- entries stay in the schedule until published, so a job dispatched on one
  tick and still pending on the next is dispatched again (at-least-once)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from snapshot_scheduler.core.entities import (
    JobRecord,
    ScheduleDocument,
    TenantKey,
    TenantKeyError,
    TenantPollMessage,
)
from snapshot_scheduler.core.timeutil import (
    delay_seconds,
    format_timestamp,
    parse_timestamp,
    within_lookahead,
)

from .models import (
    DueJob,
    EnqueueTenantsOutput,
    PollTenantOutput,
    ScanOutput,
)
from .ports import JobSourcePort, QueuePort, ScheduleReaderPort, TenantDirectoryPort, TimePort

logger = logging.getLogger(__name__)

SCHEDULED_PUBLISH_FIELD = "scheduledPublish"

# --- Configuration ---


@dataclass(frozen=True)
class DiscoveryConfig:
    """Discovery configuration from rules."""

    lookahead_seconds: int = 600
    poll_retry_delay_seconds: int = 30
    max_poll_attempts: int = 3


DEFAULT_CONFIG = DiscoveryConfig()


# --- Pure selection ---


def find_due_jobs(
    doc: ScheduleDocument,
    now: datetime,
    lookahead_seconds: int,
) -> tuple[list[DueJob], int]:
    """
    Select schedule entries due at or before now + lookahead.

    Returns:
        Tuple of (due jobs, number of skipped malformed entries)
    """
    due: list[DueJob] = []
    skipped = 0
    dispatched_at = format_timestamp(now)

    for tenant_key, jobs in doc.items():
        try:
            tenant = TenantKey.parse(tenant_key)
        except TenantKeyError:
            logger.warning("Invalid tenant key in schedule: %s", tenant_key)
            skipped += 1
            continue

        if not isinstance(jobs, dict):
            logger.warning("Schedule entry for %s is not a job map, skipping", tenant_key)
            skipped += 1
            continue

        for job_id, scheduled_str in jobs.items():
            try:
                scheduled_at = parse_timestamp(scheduled_str)
            except (TypeError, ValueError) as e:
                logger.error(
                    "Invalid scheduled publish date for %s/%s: %r (%s)",
                    tenant_key,
                    job_id,
                    scheduled_str,
                    e,
                )
                skipped += 1
                continue

            if not within_lookahead(scheduled_at, now, lookahead_seconds):
                continue

            due.append(
                DueJob(
                    record=JobRecord(
                        organization=tenant.organization,
                        site=tenant.site,
                        job_id=job_id,
                        scheduled_at=scheduled_str,
                        dispatched_at=dispatched_at,
                    ),
                    delay_seconds=delay_seconds(scheduled_at, now),
                )
            )

    return due, skipped


def trim_manifest(manifest: dict[str, Any]) -> dict[str, Any]:
    """Copy of manifest without its bulky resource list."""
    return {k: v for k, v in manifest.items() if k != "resources"}


# --- DiscoveryService ---


class DiscoveryService:
    """
    Discovery service.

    Reads pending work and dispatches it to the delivery queue.
    """

    def __init__(
        self,
        queue: QueuePort,
        clock: TimePort,
        *,
        schedule: ScheduleReaderPort | None = None,
        poll_queue: QueuePort | None = None,
        directory: TenantDirectoryPort | None = None,
        job_source: JobSourcePort | None = None,
        config: DiscoveryConfig | None = None,
    ) -> None:
        self._queue = queue
        self._clock = clock
        self._schedule = schedule
        self._poll_queue = poll_queue
        self._directory = directory
        self._job_source = job_source
        self._config = config or DEFAULT_CONFIG

    def _dispatch(self, jobs: list[DueJob]) -> tuple[list[DueJob], list[DueJob]]:
        sent: list[DueJob] = []
        failed: list[DueJob] = []
        for job in jobs:
            record = job.record
            try:
                self._queue.send(record.to_json_dict(), delay_seconds=job.delay_seconds)
            except Exception as e:
                logger.error(
                    "Failed to queue job %s for %s: %s", record.job_id, record.tenant, e
                )
                failed.append(job)
                continue
            logger.info(
                "Queued job %s for %s with %ss delay",
                record.job_id,
                record.tenant,
                job.delay_seconds,
            )
            sent.append(job)
        return sent, failed

    # --- Strategy A ---

    def scan(self, lookahead_seconds: int | None = None) -> ScanOutput:
        """
        Scan the schedule once and dispatch everything within the window.

        Raises:
            StorageError: If the schedule cannot be loaded
        """
        if self._schedule is None:
            raise ValueError("ScheduleReaderPort is required for schedule scans")

        lookahead = lookahead_seconds
        if lookahead is None:
            lookahead = self._config.lookahead_seconds
        now = self._clock.now_utc()
        doc = self._schedule.load()

        due, skipped = find_due_jobs(doc, now, lookahead)
        if not due:
            logger.info("No jobs due within the next %ss", lookahead)
            return ScanOutput(skipped_entries=skipped)

        logger.info("Found %d jobs to queue", len(due))
        sent, failed = self._dispatch(due)
        logger.info("Successfully queued %d/%d jobs", len(sent), len(due))

        return ScanOutput(
            dispatched=tuple(sent),
            failed_sends=tuple(failed),
            skipped_entries=skipped,
        )

    # --- Strategy B ---

    def enqueue_tenants(self) -> EnqueueTenantsOutput:
        """Send one poll message per registered tenant."""
        if self._directory is None or self._poll_queue is None:
            raise ValueError("TenantDirectoryPort and a poll queue are required for tenant polling")

        enqueued = 0
        failed = 0
        for tenant in self._directory.list_tenants():
            message = TenantPollMessage(organization=tenant.organization, site=tenant.site)
            try:
                self._poll_queue.send(message.to_json_dict())
            except Exception as e:
                logger.error("Failed to queue poll for %s: %s", tenant, e)
                failed += 1
                continue
            enqueued += 1

        logger.info("Queued polls for %d tenants (%d failed)", enqueued, failed)
        return EnqueueTenantsOutput(enqueued=enqueued, failed=failed)

    def _requeue_poll(
        self,
        poll_queue: QueuePort,
        message: TenantPollMessage,
        reason: str,
    ) -> PollTenantOutput:
        next_attempt = message.poll_attempt + 1
        if next_attempt >= self._config.max_poll_attempts:
            logger.error(
                "Giving up polling %s after %d attempts: %s",
                message.tenant,
                next_attempt,
                reason,
            )
            return PollTenantOutput(dropped=True)

        retry = message.model_copy(update={"poll_attempt": next_attempt})
        poll_queue.send(
            retry.to_json_dict(),
            delay_seconds=self._config.poll_retry_delay_seconds,
        )
        logger.warning(
            "Requeued poll for %s in %ss (attempt %d): %s",
            message.tenant,
            self._config.poll_retry_delay_seconds,
            next_attempt,
            reason,
        )
        return PollTenantOutput(requeued=True)

    def poll_tenant(
        self,
        message: TenantPollMessage,
        lookahead_seconds: int | None = None,
    ) -> PollTenantOutput:
        """
        Poll one tenant's remote job list and dispatch due manifests.

        Tenant-level failures requeue the poll message with a fixed delay,
        bounded by max_poll_attempts. Per-job manifest failures are skipped.
        """
        if self._directory is None or self._job_source is None or self._poll_queue is None:
            raise ValueError("Tenant polling requires a directory, job source and poll queue")

        tenant = message.tenant
        lookahead = lookahead_seconds
        if lookahead is None:
            lookahead = self._config.lookahead_seconds

        credential = self._directory.get_credential(tenant)
        if not credential:
            return self._requeue_poll(self._poll_queue, message, "tenant not registered")

        try:
            job_ids = self._job_source.list_jobs(tenant, credential)
        except Exception as e:
            return self._requeue_poll(self._poll_queue, message, f"list failed: {e}")

        now = self._clock.now_utc()
        due: list[DueJob] = []
        skipped = 0

        for job_id in job_ids:
            try:
                manifest = self._job_source.get_manifest(tenant, job_id, credential)
            except Exception as e:
                logger.error("Error getting manifest for %s/%s: %s", tenant, job_id, e)
                skipped += 1
                continue

            job = self._due_from_manifest(tenant, job_id, manifest, now, lookahead)
            if job is not None:
                due.append(job)

        sent, failed = self._dispatch(due)
        return PollTenantOutput(dispatched=tuple(sent), skipped_jobs=skipped + len(failed))

    def _due_from_manifest(
        self,
        tenant: TenantKey,
        job_id: str,
        manifest: dict[str, Any],
        now: datetime,
        lookahead_seconds: int,
    ) -> DueJob | None:
        metadata = manifest.get("metadata")
        if not isinstance(metadata, dict) or not metadata.get(SCHEDULED_PUBLISH_FIELD):
            return None
        resources = manifest.get("resources")
        if not isinstance(resources, list) or not resources:
            return None

        scheduled_str = metadata[SCHEDULED_PUBLISH_FIELD]
        try:
            scheduled_at = parse_timestamp(scheduled_str)
        except (TypeError, ValueError):
            logger.error(
                "Invalid %s for %s/%s: %r", SCHEDULED_PUBLISH_FIELD, tenant, job_id, scheduled_str
            )
            return None

        if scheduled_at < now or scheduled_at > now + timedelta(seconds=lookahead_seconds):
            return None

        return DueJob(
            record=JobRecord(
                organization=tenant.organization,
                site=tenant.site,
                job_id=job_id,
                scheduled_at=scheduled_str,
                dispatched_at=format_timestamp(now),
                manifest=trim_manifest(manifest),
            ),
            delay_seconds=delay_seconds(scheduled_at, now),
        )


def create_discovery_service(
    queue: QueuePort,
    clock: TimePort,
    *,
    schedule: ScheduleReaderPort | None = None,
    poll_queue: QueuePort | None = None,
    directory: TenantDirectoryPort | None = None,
    job_source: JobSourcePort | None = None,
    config: DiscoveryConfig | None = None,
) -> DiscoveryService:
    """Create a DiscoveryService."""
    return DiscoveryService(
        queue,
        clock,
        schedule=schedule,
        poll_queue=poll_queue,
        directory=directory,
        job_source=job_source,
        config=config,
    )

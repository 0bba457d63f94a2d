"""
Dead-letter component - terminal handler for jobs that ran out of retries.

Records each failed job and removes it from the schedule so discovery stops
re-dispatching it. The queue offers no further recourse after this handler,
so it never raises: storage failures are logged and reported in the output.
"""

from __future__ import annotations

import logging

from snapshot_scheduler.components.schedule_store.models import JobRef
from snapshot_scheduler.core.entities import FailureRecord
from snapshot_scheduler.core.ports.queue import QueueMessage
from snapshot_scheduler.core.timeutil import format_timestamp

from .models import DeadLetterInput, DeadLetterOutput
from .ports import FailureLogPort, ScheduleRemoverPort, TimePort

logger = logging.getLogger(__name__)


def _str_field(body: dict, name: str) -> str | None:
    value = body.get(name)
    return value if isinstance(value, str) and value else None


def build_failure_record(msg: QueueMessage, failed_at: str) -> FailureRecord:
    """Failure entry for a dead-lettered message; missing body fields stay None."""
    body = msg.body if isinstance(msg.body, dict) else {}
    return FailureRecord(
        organization=_str_field(body, "organization"),
        site=_str_field(body, "site"),
        job_id=_str_field(body, "jobId"),
        scheduled_at=_str_field(body, "scheduledAt"),
        queue_message_id=msg.id,
        original_enqueue_timestamp=format_timestamp(msg.timestamp),
        failed_at=failed_at,
    )


def _job_ref(record: FailureRecord) -> JobRef | None:
    if record.organization and record.site and record.job_id:
        return JobRef(record.organization, record.site, record.job_id)
    return None


def run_dead_letter_batch(
    inp: DeadLetterInput,
    *,
    failed_log: FailureLogPort,
    schedule: ScheduleRemoverPort,
    clock: TimePort,
) -> DeadLetterOutput:
    """
    Record and unschedule every message in the batch.

    Never raises.
    """
    messages = inp.batch.messages
    if not messages:
        return DeadLetterOutput(recorded=False, removed=False, count=0)

    failed_at = format_timestamp(clock.now_utc())
    records: list[FailureRecord] = []
    for msg in messages:
        record = build_failure_record(msg, failed_at)
        logger.error(
            "Job exceeded max retries: org=%s site=%s job=%s "
            "scheduled=%s message=%s enqueued=%s",
            record.organization,
            record.site,
            record.job_id,
            record.scheduled_at,
            record.queue_message_id,
            record.original_enqueue_timestamp,
        )
        records.append(record)

    recorded = False
    try:
        failed_log.append(records)
        recorded = True
        logger.info("Recorded %d failed jobs", len(records))
    except Exception:
        logger.exception("Failed to record %d failed jobs", len(records))

    refs = [ref for ref in (_job_ref(r) for r in records) if ref is not None]
    removed = False
    if refs:
        try:
            schedule.remove_batch(refs)
            removed = True
        except Exception:
            logger.exception("Failed to remove %d failed jobs from schedule", len(refs))

    return DeadLetterOutput(recorded=recorded, removed=removed, count=len(records))

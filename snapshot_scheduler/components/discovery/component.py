"""
Discovery component - timer-driven dispatch of due jobs.

Invariants:
- Delay is never negative; past-due jobs dispatch immediately
- Lookahead boundary is inclusive
- One malformed entry or failed send never aborts its siblings
- Timer entry points never raise; they report True/False
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from snapshot_scheduler.core.entities import TenantPollMessage
from snapshot_scheduler.core.ports.queue import QueueBatch
from snapshot_scheduler.rules.models import Rules

from ._impl import DiscoveryConfig, DiscoveryService
from .models import (
    EnqueueTenantsInput,
    EnqueueTenantsOutput,
    PollTenantInput,
    PollTenantOutput,
    ScanInput,
    ScanOutput,
)
from .ports import JobSourcePort, QueuePort, ScheduleReaderPort, TenantDirectoryPort, TimePort

logger = logging.getLogger(__name__)


def build_config(rules: Rules | None) -> DiscoveryConfig:
    """Build discovery config from rules."""
    if rules is None:
        return DiscoveryConfig()

    return DiscoveryConfig(
        lookahead_seconds=rules.scheduler.lookahead_seconds,
        poll_retry_delay_seconds=rules.tenant_poll.retry_delay_seconds,
        max_poll_attempts=rules.tenant_poll.max_poll_attempts,
    )


# --- Component Entry Points ---


def run_scan(
    inp: ScanInput,
    *,
    schedule: ScheduleReaderPort,
    queue: QueuePort,
    clock: TimePort,
    rules: Rules | None = None,
) -> ScanOutput:
    """
    Scan the schedule and dispatch due jobs (strategy A).

    Raises:
        StorageError: If the schedule cannot be loaded
    """
    service = DiscoveryService(queue, clock, schedule=schedule, config=build_config(rules))
    return service.scan(inp.lookahead_seconds)


def run_enqueue_tenants(
    inp: EnqueueTenantsInput,
    *,
    directory: TenantDirectoryPort,
    poll_queue: QueuePort,
    queue: QueuePort,
    clock: TimePort,
    rules: Rules | None = None,
) -> EnqueueTenantsOutput:
    """Fan out one poll message per registered tenant (strategy B)."""
    service = DiscoveryService(
        queue,
        clock,
        poll_queue=poll_queue,
        directory=directory,
        config=build_config(rules),
    )
    return service.enqueue_tenants()


def run_poll_tenant(
    inp: PollTenantInput,
    *,
    directory: TenantDirectoryPort,
    job_source: JobSourcePort,
    poll_queue: QueuePort,
    queue: QueuePort,
    clock: TimePort,
    rules: Rules | None = None,
) -> PollTenantOutput:
    """Poll one tenant and dispatch its due manifests (strategy B)."""
    service = DiscoveryService(
        queue,
        clock,
        poll_queue=poll_queue,
        directory=directory,
        job_source=job_source,
        config=build_config(rules),
    )
    return service.poll_tenant(inp.message, inp.lookahead_seconds)


def run_poll_batch(
    batch: QueueBatch,
    *,
    directory: TenantDirectoryPort,
    job_source: JobSourcePort,
    poll_queue: QueuePort,
    queue: QueuePort,
    clock: TimePort,
    rules: Rules | None = None,
) -> list[PollTenantOutput]:
    """
    Consume a batch of tenant poll messages.

    Malformed bodies are logged and dropped. Tenant-level failures are
    handled by bounded requeue inside run_poll_tenant; anything else
    propagates so the queue redelivers the batch.
    """
    outputs: list[PollTenantOutput] = []
    for msg in batch.messages:
        try:
            message = TenantPollMessage.model_validate(msg.body)
        except ValidationError as e:
            logger.error("Dropping malformed poll message %s: %s", msg.id, e)
            continue

        outputs.append(
            run_poll_tenant(
                PollTenantInput(message=message),
                directory=directory,
                job_source=job_source,
                poll_queue=poll_queue,
                queue=queue,
                clock=clock,
                rules=rules,
            )
        )
    return outputs


def run_timer_tick(
    *,
    strategy: str,
    queue: QueuePort,
    clock: TimePort,
    schedule: ScheduleReaderPort | None = None,
    directory: TenantDirectoryPort | None = None,
    poll_queue: QueuePort | None = None,
    rules: Rules | None = None,
) -> bool:
    """
    Timer entry point.

    Nothing observes an exception raised from a timer, so every error is
    caught and logged here and reported as False.
    """
    try:
        if strategy == "tenant_poll":
            if directory is None or poll_queue is None:
                raise ValueError("tenant_poll strategy needs a directory and poll queue")
            run_enqueue_tenants(
                EnqueueTenantsInput(),
                directory=directory,
                poll_queue=poll_queue,
                queue=queue,
                clock=clock,
                rules=rules,
            )
        elif strategy == "schedule_scan":
            if schedule is None:
                raise ValueError("schedule_scan strategy needs a schedule store")
            run_scan(ScanInput(), schedule=schedule, queue=queue, clock=clock, rules=rules)
        else:
            raise ValueError(f"Unknown discovery strategy: {strategy}")
    except Exception:
        logger.exception("Error in scheduled discovery run")
        return False
    return True

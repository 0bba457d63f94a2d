"""
Runtime wiring.

SchedulerContext builds the adapters once and exposes one handler per
invocation type. Each handler follows the propagation policy of its trigger:
- on_timer never raises and reports True/False
- on_tenant_poll_batch and on_publish_batch raise to make the queue redeliver
- on_dead_letter_batch never raises
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from snapshot_scheduler.adapters.admin_api import AdminApiClient
from snapshot_scheduler.adapters.clock import SystemClock
from snapshot_scheduler.adapters.credentials import BlobCredentialStore
from snapshot_scheduler.adapters.dev_queue import DevRuntimeLoop, InMemoryDeliveryQueue
from snapshot_scheduler.adapters.local_storage import LocalBlobStore
from snapshot_scheduler.components.audit_log import AuditLog
from snapshot_scheduler.components.dead_letter import (
    DeadLetterInput,
    DeadLetterOutput,
    run_dead_letter_batch,
)
from snapshot_scheduler.components.discovery import (
    PollTenantOutput,
    run_poll_batch,
    run_timer_tick,
)
from snapshot_scheduler.components.publisher import (
    PublishBatchInput,
    PublishBatchOutput,
    run_publish_batch,
)
from snapshot_scheduler.components.registry import TenantRegistry
from snapshot_scheduler.components.schedule_store import ScheduleStore
from snapshot_scheduler.core.ports.publish_api import PublishApiPort
from snapshot_scheduler.core.ports.queue import QueueBatch
from snapshot_scheduler.core.ports.storage import BlobStorePort
from snapshot_scheduler.core.ports.time import TimePort
from snapshot_scheduler.rules.models import Rules

PUBLISH_QUEUE = "publish-queue"
DEAD_LETTER_QUEUE = "publish-dlq"
TENANT_POLL_QUEUE = "tenant-poll-queue"


@dataclass
class SchedulerContext:
    store: BlobStorePort
    registry: TenantRegistry
    schedule: ScheduleStore
    completed_log: AuditLog
    failed_log: AuditLog
    api: PublishApiPort
    publish_queue: InMemoryDeliveryQueue
    dead_letter_queue: InMemoryDeliveryQueue
    poll_queue: InMemoryDeliveryQueue
    rules: Rules
    clock: Any = None  # For testing/injection

    @classmethod
    def create(
        cls,
        data_dir: str | Path,
        secrets_dir: str | Path,
        rules: Rules,
        *,
        store: BlobStorePort | None = None,
        secret_store: BlobStorePort | None = None,
        api: PublishApiPort | None = None,
        clock: TimePort | None = None,
    ) -> SchedulerContext:
        clock = clock or SystemClock()
        store = store or LocalBlobStore(data_dir)
        credentials = BlobCredentialStore(secret_store or LocalBlobStore(secrets_dir))

        storage = rules.storage
        registry = TenantRegistry(store, credentials, storage.registered_prefix)
        schedule = ScheduleStore(store, storage.schedule_key)
        completed_log = AuditLog(store, storage.completed_prefix, clock)
        failed_log = AuditLog(store, storage.failed_prefix, clock)

        queue_rules = rules.queue
        dead_letter_queue = InMemoryDeliveryQueue(
            DEAD_LETTER_QUEUE,
            clock,
            batch_size=queue_rules.batch_size,
            max_attempts=1,
        )
        publish_queue = InMemoryDeliveryQueue(
            PUBLISH_QUEUE,
            clock,
            batch_size=queue_rules.batch_size,
            max_attempts=queue_rules.max_attempts,
            backoff_seconds=tuple(queue_rules.backoff_seconds),
            dead_letter=dead_letter_queue,
        )
        poll_queue = InMemoryDeliveryQueue(
            TENANT_POLL_QUEUE,
            clock,
            batch_size=queue_rules.batch_size,
            max_attempts=queue_rules.max_attempts,
            backoff_seconds=tuple(queue_rules.backoff_seconds),
        )

        return cls(
            store=store,
            registry=registry,
            schedule=schedule,
            completed_log=completed_log,
            failed_log=failed_log,
            api=api or AdminApiClient(rules.remote_api),
            publish_queue=publish_queue,
            dead_letter_queue=dead_letter_queue,
            poll_queue=poll_queue,
            rules=rules,
            clock=clock,
        )

    # --- Invocation handlers ---

    def on_timer(self) -> bool:
        return run_timer_tick(
            strategy=self.rules.scheduler.strategy,
            queue=self.publish_queue,
            clock=self.clock,
            schedule=self.schedule,
            directory=self.registry,
            poll_queue=self.poll_queue,
            rules=self.rules,
        )

    def on_tenant_poll_batch(self, batch: QueueBatch) -> list[PollTenantOutput]:
        return run_poll_batch(
            batch,
            directory=self.registry,
            job_source=self.api,
            poll_queue=self.poll_queue,
            queue=self.publish_queue,
            clock=self.clock,
            rules=self.rules,
        )

    def on_publish_batch(self, batch: QueueBatch) -> PublishBatchOutput:
        return run_publish_batch(
            PublishBatchInput(batch=batch),
            credentials=self.registry,
            api=self.api,
            schedule=self.schedule,
            completed_log=self.completed_log,
            clock=self.clock,
        )

    def on_dead_letter_batch(self, batch: QueueBatch) -> DeadLetterOutput:
        return run_dead_letter_batch(
            DeadLetterInput(batch=batch),
            failed_log=self.failed_log,
            schedule=self.schedule,
            clock=self.clock,
        )

    def runtime_loop(self, poll_interval_seconds: float = 1.0) -> DevRuntimeLoop:
        """Dev loop bound to this context's queues."""
        loop = DevRuntimeLoop(poll_interval_seconds)
        loop.bind(self.poll_queue, self.on_tenant_poll_batch)
        loop.bind(self.publish_queue, self.on_publish_batch)
        loop.bind(self.dead_letter_queue, self.on_dead_letter_batch)
        return loop

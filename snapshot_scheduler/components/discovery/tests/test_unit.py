"""
Discovery component unit tests.

Covers both strategies:
- schedule scan: delay computation, lookahead boundary, malformed entries
- tenant poll: manifest filtering, bounded requeue
- timer entry point never raising
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from snapshot_scheduler.components.discovery import (
    EnqueueTenantsInput,
    PollTenantInput,
    ScanInput,
    find_due_jobs,
    run_enqueue_tenants,
    run_poll_batch,
    run_poll_tenant,
    run_scan,
    run_timer_tick,
    trim_manifest,
)
from snapshot_scheduler.core.entities import TenantKey, TenantPollMessage
from snapshot_scheduler.core.ports.queue import QueueBatch, QueueMessage, QueueSendError
from snapshot_scheduler.core.ports.storage import StorageError
from snapshot_scheduler.core.timeutil import format_timestamp

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


def _at(seconds: int) -> str:
    return format_timestamp(NOW + timedelta(seconds=seconds))


# --- Mock Implementations ---


@dataclass
class MockTimePort:
    current_time: datetime = NOW

    def now_utc(self) -> datetime:
        return self.current_time


@dataclass
class MockQueue:
    """Records sends; job ids in fail_job_ids (or every send when fail_all) raise."""

    sent: list[tuple[dict[str, Any], int]] = field(default_factory=list)
    fail_job_ids: set[str] = field(default_factory=set)
    fail_all: bool = False

    def send(self, body: dict[str, Any], delay_seconds: int = 0) -> None:
        if self.fail_all or body.get("jobId") in self.fail_job_ids:
            raise QueueSendError("mock", "simulated failure")
        self.sent.append((body, delay_seconds))


@dataclass
class MockSchedule:
    doc: dict[str, Any] = field(default_factory=dict)
    loads: int = 0
    error: Exception | None = None

    def load(self) -> dict[str, Any]:
        self.loads += 1
        if self.error:
            raise self.error
        return self.doc


@dataclass
class MockDirectory:
    credentials: dict[str, str] = field(default_factory=dict)

    def list_tenants(self) -> list[TenantKey]:
        return [TenantKey.parse(k) for k in self.credentials]

    def get_credential(self, tenant: TenantKey) -> str | None:
        return self.credentials.get(str(tenant))


@dataclass
class MockJobSource:
    manifests: dict[str, dict[str, Any]] = field(default_factory=dict)
    list_error: Exception | None = None
    failing_manifests: set[str] = field(default_factory=set)

    def list_jobs(self, tenant: TenantKey, credential: str) -> list[str]:
        if self.list_error:
            raise self.list_error
        return list(self.manifests)

    def get_manifest(self, tenant: TenantKey, job_id: str, credential: str) -> dict[str, Any]:
        if job_id in self.failing_manifests:
            raise RuntimeError("manifest unavailable")
        return self.manifests[job_id]


def _manifest(scheduled: str | None, resources: list[str] | None = None) -> dict[str, Any]:
    metadata = {"scheduledPublish": scheduled} if scheduled else {}
    return {
        "title": "Snapshot",
        "metadata": metadata,
        "resources": ["/index"] if resources is None else resources,
    }


@pytest.fixture
def clock() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def queue() -> MockQueue:
    return MockQueue()


@pytest.fixture
def poll_queue() -> MockQueue:
    return MockQueue()


# --- Strategy A: schedule scan ---


class TestScan:
    """Test schedule scan dispatch."""

    def test_worked_example_delays(self, clock: MockTimePort, queue: MockQueue) -> None:
        schedule = MockSchedule(
            {"org1--site1": {"snap1": _at(-240), "snap2": _at(180), "snap3": _at(300)}}
        )

        result = run_scan(
            ScanInput(lookahead_seconds=300), schedule=schedule, queue=queue, clock=clock
        )

        delays = {body["jobId"]: delay for body, delay in queue.sent}
        assert delays == {"snap1": 0, "snap2": 180, "snap3": 300}
        assert len(result.dispatched) == 3
        assert schedule.loads == 1

    def test_lookahead_boundary_is_inclusive(self, clock: MockTimePort, queue: MockQueue) -> None:
        schedule = MockSchedule({"o--s": {"edge": _at(300), "beyond": _at(301)}})

        run_scan(ScanInput(lookahead_seconds=300), schedule=schedule, queue=queue, clock=clock)

        assert [body["jobId"] for body, _ in queue.sent] == ["edge"]

    def test_past_due_never_negative(self) -> None:
        due, _ = find_due_jobs({"o--s": {"old": _at(-86400)}}, NOW, 600)

        assert due[0].delay_seconds == 0

    def test_fractional_delay_rounds_up(self) -> None:
        scheduled = format_timestamp(NOW + timedelta(milliseconds=1500))

        due, _ = find_due_jobs({"o--s": {"j": scheduled}}, NOW, 600)

        assert due[0].delay_seconds == 2

    def test_job_record_shape(self, clock: MockTimePort, queue: MockQueue) -> None:
        schedule = MockSchedule({"org--site": {"j1": _at(60)}})

        run_scan(ScanInput(), schedule=schedule, queue=queue, clock=clock)

        body, _ = queue.sent[0]
        assert body == {
            "organization": "org",
            "site": "site",
            "jobId": "j1",
            "scheduledAt": _at(60),
            "dispatchedAt": "2024-06-15T12:00:00.000Z",
        }

    def test_malformed_entries_do_not_block_siblings(
        self, clock: MockTimePort, queue: MockQueue
    ) -> None:
        schedule = MockSchedule(
            {
                "no-separator": {"x": _at(10)},
                "a--b--c": {"y": _at(10)},
                "o--s": {"bad": "not-a-date", "good": _at(10)},
            }
        )

        result = run_scan(ScanInput(), schedule=schedule, queue=queue, clock=clock)

        assert [body["jobId"] for body, _ in queue.sent] == ["good"]
        assert result.skipped_entries == 3

    def test_send_failure_does_not_abort(self, clock: MockTimePort) -> None:
        queue = MockQueue(fail_job_ids={"j1"})
        schedule = MockSchedule({"o--s": {"j1": _at(10), "j2": _at(20)}})

        result = run_scan(ScanInput(), schedule=schedule, queue=queue, clock=clock)

        assert [body["jobId"] for body, _ in queue.sent] == ["j2"]
        assert len(result.failed_sends) == 1
        assert result.success is False

    def test_empty_schedule(self, clock: MockTimePort, queue: MockQueue) -> None:
        result = run_scan(ScanInput(), schedule=MockSchedule(), queue=queue, clock=clock)

        assert result.dispatched == ()
        assert queue.sent == []
        assert result.success is True

    def test_zero_lookahead_is_not_the_default(
        self, clock: MockTimePort, queue: MockQueue
    ) -> None:
        schedule = MockSchedule({"o--s": {"now": _at(0), "soon": _at(60), "old": _at(-30)}})

        run_scan(ScanInput(lookahead_seconds=0), schedule=schedule, queue=queue, clock=clock)

        assert sorted(body["jobId"] for body, _ in queue.sent) == ["now", "old"]


# --- Strategy B: tenant polling ---


class TestEnqueueTenants:
    def test_one_poll_per_tenant(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        directory = MockDirectory({"a--b": "k1", "c--d": "k2"})

        result = run_enqueue_tenants(
            EnqueueTenantsInput(),
            directory=directory,
            poll_queue=poll_queue,
            queue=queue,
            clock=clock,
        )

        assert result.enqueued == 2
        assert [body for body, _ in poll_queue.sent] == [
            {"organization": "a", "site": "b", "pollAttempt": 0},
            {"organization": "c", "site": "d", "pollAttempt": 0},
        ]
        assert result.success is True

    def test_send_failures_reported(self, clock: MockTimePort, queue: MockQueue) -> None:
        poll_queue = MockQueue(fail_all=True)

        result = run_enqueue_tenants(
            EnqueueTenantsInput(),
            directory=MockDirectory({"a--b": "k1", "c--d": "k2"}),
            poll_queue=poll_queue,
            queue=queue,
            clock=clock,
        )

        assert result.enqueued == 0
        assert result.failed == 2
        assert result.success is False


class TestPollTenant:
    """Test per-tenant polling."""

    def _poll(
        self,
        message: TenantPollMessage,
        *,
        directory: MockDirectory,
        job_source: MockJobSource,
        queue: MockQueue,
        poll_queue: MockQueue,
        clock: MockTimePort,
    ):
        return run_poll_tenant(
            PollTenantInput(message=message, lookahead_seconds=600),
            directory=directory,
            job_source=job_source,
            poll_queue=poll_queue,
            queue=queue,
            clock=clock,
        )

    def test_dispatches_due_manifest_without_resources(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        source = MockJobSource({"snap": _manifest(_at(120))})

        result = self._poll(
            TenantPollMessage(organization="o", site="s"),
            directory=MockDirectory({"o--s": "key"}),
            job_source=source,
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert len(result.dispatched) == 1
        body, delay = queue.sent[0]
        assert delay == 120
        assert "resources" not in body["manifest"]
        assert body["manifest"]["metadata"]["scheduledPublish"] == _at(120)

    def test_filters_out_of_window_and_empty(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        source = MockJobSource(
            {
                "past": _manifest(_at(-60)),
                "far": _manifest(_at(601)),
                "unscheduled": _manifest(None),
                "empty": _manifest(_at(60), resources=[]),
                "due": _manifest(_at(600)),
            }
        )

        self._poll(
            TenantPollMessage(organization="o", site="s"),
            directory=MockDirectory({"o--s": "key"}),
            job_source=source,
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert [body["jobId"] for body, _ in queue.sent] == ["due"]

    def test_manifest_failure_skips_only_that_job(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        source = MockJobSource(
            {"broken": _manifest(_at(60)), "ok": _manifest(_at(60))},
            failing_manifests={"broken"},
        )

        result = self._poll(
            TenantPollMessage(organization="o", site="s"),
            directory=MockDirectory({"o--s": "key"}),
            job_source=source,
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert result.skipped_jobs == 1
        assert [body["jobId"] for body, _ in queue.sent] == ["ok"]

    def test_list_failure_requeues_with_delay(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        result = self._poll(
            TenantPollMessage(organization="o", site="s"),
            directory=MockDirectory({"o--s": "key"}),
            job_source=MockJobSource(list_error=RuntimeError("503")),
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert result.requeued is True
        assert poll_queue.sent == [({"organization": "o", "site": "s", "pollAttempt": 1}, 30)]

    def test_missing_credential_requeues(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        result = self._poll(
            TenantPollMessage(organization="o", site="s"),
            directory=MockDirectory(),
            job_source=MockJobSource(),
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert result.requeued is True

    def test_requeue_is_bounded(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        result = self._poll(
            TenantPollMessage(organization="o", site="s", poll_attempt=2),
            directory=MockDirectory({"o--s": "key"}),
            job_source=MockJobSource(list_error=RuntimeError("503")),
            queue=queue,
            poll_queue=poll_queue,
            clock=clock,
        )

        assert result.dropped is True
        assert poll_queue.sent == []

    def test_poll_batch_drops_malformed_message(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        batch = QueueBatch(
            queue="tenant-poll-queue",
            messages=(
                QueueMessage(id="m1", timestamp=NOW, attempts=1, body={"site": "s"}),
                QueueMessage(
                    id="m2", timestamp=NOW, attempts=1, body={"organization": "o", "site": "s"}
                ),
            ),
        )

        outputs = run_poll_batch(
            batch,
            directory=MockDirectory({"o--s": "key"}),
            job_source=MockJobSource({"j": _manifest(_at(60))}),
            poll_queue=poll_queue,
            queue=queue,
            clock=clock,
        )

        assert len(outputs) == 1
        assert len(queue.sent) == 1


def test_trim_manifest_keeps_other_fields() -> None:
    manifest = {"title": "t", "resources": [1, 2], "metadata": {"a": 1}}

    assert trim_manifest(manifest) == {"title": "t", "metadata": {"a": 1}}
    assert manifest["resources"] == [1, 2]


# --- Timer entry point ---


class TestTimerTick:
    """Timer handlers report success and never raise."""

    def test_success(self, clock: MockTimePort, queue: MockQueue) -> None:
        ok = run_timer_tick(
            strategy="schedule_scan",
            queue=queue,
            clock=clock,
            schedule=MockSchedule({"o--s": {"j": _at(0)}}),
        )

        assert ok is True
        assert len(queue.sent) == 1

    def test_storage_failure_returns_false(self, clock: MockTimePort, queue: MockQueue) -> None:
        ok = run_timer_tick(
            strategy="schedule_scan",
            queue=queue,
            clock=clock,
            schedule=MockSchedule(error=StorageError("bucket unavailable")),
        )

        assert ok is False

    def test_tenant_poll_strategy(
        self, clock: MockTimePort, queue: MockQueue, poll_queue: MockQueue
    ) -> None:
        ok = run_timer_tick(
            strategy="tenant_poll",
            queue=queue,
            clock=clock,
            directory=MockDirectory({"o--s": "key"}),
            poll_queue=poll_queue,
        )

        assert ok is True
        assert len(poll_queue.sent) == 1

    def test_unknown_strategy_returns_false(self, clock: MockTimePort, queue: MockQueue) -> None:
        assert run_timer_tick(strategy="bogus", queue=queue, clock=clock) is False

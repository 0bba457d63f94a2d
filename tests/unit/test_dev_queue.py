"""
Tests for the dev delivery queue and runtime loop.

Test assertions:
- never delivered before the requested delay
- consumer failure redelivers the whole batch after backoff
- exhausted messages route to the dead-letter queue
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from snapshot_scheduler.adapters.clock import FixedClock
from snapshot_scheduler.adapters.dev_queue import (
    DevRuntimeLoop,
    DevTimer,
    InMemoryDeliveryQueue,
    calculate_retry_delay,
)
from snapshot_scheduler.core.ports.queue import QueueBatch, QueueSendError

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


class Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.batches: list[QueueBatch] = []
        self.fail = fail

    def __call__(self, batch: QueueBatch) -> None:
        self.batches.append(batch)
        if self.fail:
            raise RuntimeError("consumer failed")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


class TestDelivery:
    def test_not_delivered_early(self, clock: FixedClock) -> None:
        queue = InMemoryDeliveryQueue("q", clock)
        consumer = Recorder()

        queue.send({"n": 1}, delay_seconds=180)

        assert queue.deliver(consumer) is None
        clock.advance(179)
        assert queue.deliver(consumer) is None
        clock.advance(1)
        result = queue.deliver(consumer)
        assert result is not None and result.acked
        assert consumer.batches[0].messages[0].body == {"n": 1}
        assert consumer.batches[0].messages[0].attempts == 1
        assert len(queue) == 0

    def test_batch_size_limit(self, clock: FixedClock) -> None:
        queue = InMemoryDeliveryQueue("q", clock, batch_size=2)
        for n in range(5):
            queue.send({"n": n})

        results = queue.drain(Recorder())

        assert [r.delivered for r in results] == [2, 2, 1]

    def test_negative_delay_rejected(self, clock: FixedClock) -> None:
        with pytest.raises(QueueSendError):
            InMemoryDeliveryQueue("q", clock).send({}, delay_seconds=-1)

    def test_unserializable_body_rejected(self, clock: FixedClock) -> None:
        with pytest.raises(QueueSendError):
            InMemoryDeliveryQueue("q", clock).send({"when": NOW})


class TestRetry:
    def test_whole_batch_redelivered_after_backoff(self, clock: FixedClock) -> None:
        queue = InMemoryDeliveryQueue("q", clock, backoff_seconds=(120, 360))
        queue.send({"n": 1})
        queue.send({"n": 2})

        result = queue.deliver(Recorder(fail=True))

        assert result is not None
        assert result.acked is False
        assert result.retried == 2
        assert queue.due_count() == 0

        clock.advance(120)
        consumer = Recorder()
        queue.deliver(consumer)
        assert len(consumer.batches[0].messages) == 2
        assert all(m.attempts == 2 for m in consumer.batches[0].messages)

    def test_exhausted_messages_dead_lettered(self, clock: FixedClock) -> None:
        dlq = InMemoryDeliveryQueue("dlq", clock)
        queue = InMemoryDeliveryQueue(
            "q", clock, max_attempts=2, backoff_seconds=(10,), dead_letter=dlq
        )
        queue.send({"jobId": "j"})

        failing = Recorder(fail=True)
        queue.deliver(failing)
        clock.advance(10)
        result = queue.deliver(failing)
        original = failing.batches[0].messages[0]

        assert result is not None and result.dead_lettered == 1
        assert len(queue) == 0

        received = Recorder()
        dlq.deliver(received)
        dead = received.batches[0].messages[0]
        assert dead.body == {"jobId": "j"}
        assert dead.id == original.id
        assert dead.timestamp == original.timestamp

    @pytest.mark.parametrize(
        ("attempts", "expected"), [(1, 120), (2, 360), (4, 2160), (9, 2160)]
    )
    def test_retry_delay_curve(self, attempts: int, expected: int) -> None:
        assert calculate_retry_delay(attempts, (120, 360, 1080, 2160)) == expected


class TestRuntimeLoop:
    def test_run_once_drains_bound_queues(self, clock: FixedClock) -> None:
        first = InMemoryDeliveryQueue("first", clock)
        second = InMemoryDeliveryQueue("second", clock)
        first.send({"a": 1})
        loop = DevRuntimeLoop()
        loop.bind(first, Recorder())
        loop.bind(second, Recorder())

        results = loop.run_once()

        assert len(results["first"]) == 1
        assert results["second"] == []


def test_timer_trigger_now() -> None:
    calls: list[int] = []
    timer = DevTimer(lambda: calls.append(1), interval_seconds=3600)

    timer.trigger_now()

    assert calls == [1]
    assert timer.is_running is False

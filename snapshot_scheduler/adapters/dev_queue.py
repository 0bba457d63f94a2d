"""
Dev Delivery Queue Adapter.

In-process delivery queue and timer for development and testing. Hosted
queue and cron services provide the same contract in production.

Key behaviors:
- send() with a delay; a message is never delivered before it is due
- batches of up to batch_size due messages per delivery
- consumer raising => whole batch redelivered after backoff
- after max_attempts a message is routed to the dead-letter queue
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from snapshot_scheduler.adapters.clock import SystemClock
from snapshot_scheduler.core.ports.queue import QueueBatch, QueueMessage, QueueSendError
from snapshot_scheduler.core.ports.time import TimePort

logger = logging.getLogger(__name__)

BatchConsumer = Callable[[QueueBatch], Any]

DEFAULT_BACKOFF_SECONDS: tuple[int, ...] = (120, 360, 1080, 2160)


def calculate_retry_delay(attempts: int, backoff_seconds: tuple[int, ...]) -> int:
    """
    Delay before the next delivery after `attempts` failed deliveries.

    The first failure (attempts=1) uses backoff[0]; the last value repeats.
    """
    if not backoff_seconds:
        return 0
    backoff_index = min(max(attempts - 1, 0), len(backoff_seconds) - 1)
    return backoff_seconds[backoff_index]


@dataclass
class _Pending:
    id: str
    timestamp: datetime
    body: dict[str, Any]
    available_at: datetime
    attempts: int = 0


@dataclass
class DeliveryResult:
    """Outcome of one batch delivery."""

    delivered: int
    acked: bool
    retried: int = 0
    dead_lettered: int = 0
    error: str | None = None


class InMemoryDeliveryQueue:
    """
    Dev delivery queue.

    Implements DeliveryQueuePort for the producer side and exposes
    deliver()/drain() to push due batches into a consumer.
    """

    def __init__(
        self,
        name: str,
        clock: TimePort | None = None,
        *,
        batch_size: int = 10,
        max_attempts: int = 5,
        backoff_seconds: tuple[int, ...] = DEFAULT_BACKOFF_SECONDS,
        dead_letter: InMemoryDeliveryQueue | None = None,
    ) -> None:
        """
        Initialize queue.

        Args:
            name: Queue name (for logs)
            clock: Time source (defaults to system clock)
            batch_size: Maximum messages per delivered batch
            max_attempts: Deliveries before a message is dead-lettered
            backoff_seconds: Retry delays, indexed by failed attempt count
            dead_letter: Queue receiving exhausted messages (dropped if None)
        """
        self.name = name
        self._clock = clock or SystemClock()
        self._batch_size = batch_size
        self._max_attempts = max_attempts
        self._backoff_seconds = tuple(backoff_seconds)
        self._dead_letter = dead_letter
        self._pending: list[_Pending] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def send(self, body: dict[str, Any], delay_seconds: int = 0) -> None:
        if delay_seconds < 0:
            raise QueueSendError(self.name, f"negative delay: {delay_seconds}")
        try:
            # Messages cross an invocation boundary as JSON
            copied = json.loads(json.dumps(body))
        except (TypeError, ValueError) as e:
            raise QueueSendError(self.name, f"body is not JSON-serializable: {e}") from e

        now = self._clock.now_utc()
        pending = _Pending(
            id=uuid4().hex,
            timestamp=now,
            body=copied,
            available_at=now + timedelta(seconds=delay_seconds),
        )
        with self._lock:
            self._pending.append(pending)
        logger.debug("Queued %s on %s (delay %ss)", pending.id, self.name, delay_seconds)

    def _accept_dead_letter(self, pending: _Pending, now: datetime) -> None:
        # Keeps the original id and enqueue timestamp
        with self._lock:
            self._pending.append(
                _Pending(
                    id=pending.id,
                    timestamp=pending.timestamp,
                    body=pending.body,
                    available_at=now,
                )
            )

    def pending_bodies(self) -> list[dict[str, Any]]:
        """Snapshot of queued message bodies (for inspection and tests)."""
        with self._lock:
            return [p.body for p in self._pending]

    def due_count(self, now: datetime | None = None) -> int:
        now = now or self._clock.now_utc()
        with self._lock:
            return sum(1 for p in self._pending if p.available_at <= now)

    def deliver(self, consumer: BatchConsumer) -> DeliveryResult | None:
        """
        Deliver one batch of due messages to consumer.

        Returns:
            DeliveryResult, or None if nothing was due
        """
        now = self._clock.now_utc()
        with self._lock:
            due = sorted(
                (p for p in self._pending if p.available_at <= now),
                key=lambda p: p.available_at,
            )[: self._batch_size]
            for pending in due:
                pending.attempts += 1
                # invisible until acked or rescheduled
                pending.available_at = datetime.max.replace(tzinfo=now.tzinfo)

        if not due:
            return None

        batch = QueueBatch(
            queue=self.name,
            messages=tuple(
                QueueMessage(
                    id=p.id,
                    timestamp=p.timestamp,
                    attempts=p.attempts,
                    body=json.loads(json.dumps(p.body)),
                )
                for p in due
            ),
        )

        try:
            consumer(batch)
        except Exception as e:
            logger.warning(
                "Consumer for %s failed on batch of %d: %s", self.name, len(due), e
            )
            retried, dead_lettered = self._reschedule(due, now)
            return DeliveryResult(
                delivered=len(due),
                acked=False,
                retried=retried,
                dead_lettered=dead_lettered,
                error=str(e),
            )

        ids = {p.id for p in due}
        with self._lock:
            self._pending = [p for p in self._pending if p.id not in ids]
        return DeliveryResult(delivered=len(due), acked=True)

    def _reschedule(self, due: list[_Pending], now: datetime) -> tuple[int, int]:
        retried = 0
        exhausted: list[_Pending] = []
        with self._lock:
            for pending in due:
                if pending.attempts >= self._max_attempts:
                    exhausted.append(pending)
                    continue
                delay = calculate_retry_delay(pending.attempts, self._backoff_seconds)
                pending.available_at = now + timedelta(seconds=delay)
                retried += 1
            ids = {p.id for p in exhausted}
            self._pending = [p for p in self._pending if p.id not in ids]

        for pending in exhausted:
            if self._dead_letter is None:
                logger.error(
                    "Message %s on %s exhausted %d attempts; no dead-letter queue, dropping",
                    pending.id,
                    self.name,
                    pending.attempts,
                )
                continue
            self._dead_letter._accept_dead_letter(pending, now)
            logger.warning(
                "Message %s on %s exhausted %d attempts; routed to %s",
                pending.id,
                self.name,
                pending.attempts,
                self._dead_letter.name,
            )
        return retried, len(exhausted)

    def drain(self, consumer: BatchConsumer, max_batches: int = 100) -> list[DeliveryResult]:
        """Deliver due batches until none are due (or max_batches reached)."""
        results: list[DeliveryResult] = []
        for _ in range(max_batches):
            result = self.deliver(consumer)
            if result is None:
                break
            results.append(result)
        return results


class DevTimer:
    """
    Dev timer with background polling.

    Runs a background thread that fires a callback at a fixed interval,
    standing in for a cron trigger.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_seconds: float = 300.0,
    ) -> None:
        """
        Initialize timer.

        Args:
            callback: Function fired on every tick
            interval_seconds: Interval between ticks
        """
        self._callback = callback
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background timer."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Dev timer started (interval: %.1fs)", self._interval)

    def stop(self) -> None:
        """Stop the timer gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Dev timer stopped")

    def trigger_now(self) -> Any:
        """Fire the callback immediately."""
        return self._callback()

    @property
    def is_running(self) -> bool:
        return self._running

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Error in dev timer tick")


class DevRuntimeLoop:
    """
    Pumps dev queues into their consumers.

    Stands in for the hosted queue runtime: every pass delivers all due
    batches of each bound queue, in binding order.
    """

    def __init__(self, poll_interval_seconds: float = 1.0) -> None:
        self._bindings: list[tuple[InMemoryDeliveryQueue, BatchConsumer]] = []
        self._poll_interval = poll_interval_seconds
        self._stop_event = threading.Event()

    def bind(self, queue: InMemoryDeliveryQueue, consumer: BatchConsumer) -> None:
        self._bindings.append((queue, consumer))

    def run_once(self) -> dict[str, list[DeliveryResult]]:
        """Drain every bound queue once; returns delivery results per queue name."""
        return {queue.name: queue.drain(consumer) for queue, consumer in self._bindings}

    def run_forever(self) -> None:
        """Pump until stop() is called."""
        logger.info("Dev runtime loop started (%d queues)", len(self._bindings))
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(timeout=self._poll_interval)
        logger.info("Dev runtime loop stopped")

    def stop(self) -> None:
        self._stop_event.set()

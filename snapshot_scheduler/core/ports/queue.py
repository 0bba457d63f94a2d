"""
Delivery Queue Interface.

Protocol-based interface for the delay-capable message channel between
discovery and execution, and for the batches its consumers receive.

Key requirements:
- At-least-once delivery; no ordering across messages
- A message is never delivered before its requested delay elapses
- If a consumer raises, the whole batch is redelivered
- After max attempts, messages are routed to the dead-letter consumer

Implementation strategies:
1. Hosted queue service (production, outside this package)
2. In-memory queue with background timer (dev/test)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class QueueMessage:
    """A delivered message, as seen by a consumer."""

    id: str
    timestamp: datetime  # original enqueue time
    attempts: int  # 1 on first delivery
    body: dict[str, Any]


@dataclass(frozen=True)
class QueueBatch:
    """A batch of 1..B messages delivered to a consumer together."""

    queue: str
    messages: tuple[QueueMessage, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.messages)


class DeliveryQueuePort(Protocol):
    """
    Producer side of a delivery queue.

    Consumers are plain callables taking a QueueBatch; they signal failure by
    raising, which makes the queue redeliver the whole batch.
    """

    def send(self, body: dict[str, Any], delay_seconds: int = 0) -> None:
        """
        Enqueue a message body.

        Args:
            body: JSON-serializable message body
            delay_seconds: Minimum delay before delivery (>= 0)

        Raises:
            QueueError: If the message could not be enqueued
        """
        ...


class QueueError(Exception):
    """Base exception for queue errors."""


class QueueSendError(QueueError):
    """Failed to enqueue a message."""

    def __init__(self, queue: str, error: str) -> None:
        self.queue = queue
        self.error = error
        super().__init__(f"Failed to send to {queue}: {error}")

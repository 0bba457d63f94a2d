"""
Dead-letter component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass

from snapshot_scheduler.core.ports.queue import QueueBatch


@dataclass(frozen=True)
class DeadLetterInput:
    """A batch of messages that exhausted their delivery attempts."""

    batch: QueueBatch


@dataclass(frozen=True)
class DeadLetterOutput:
    """
    Output for a dead-letter batch.

    recorded/removed report whether each bookkeeping step succeeded; the
    handler itself never fails.
    """

    recorded: bool
    removed: bool
    count: int

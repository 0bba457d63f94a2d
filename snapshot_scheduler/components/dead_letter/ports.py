"""
Dead-letter component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol

from snapshot_scheduler.components.schedule_store.models import JobRef, RemovalResult


class FailureLogPort(Protocol):
    """Append-only failure log."""

    def append(self, records: Sequence[Any]) -> str | None:
        ...


class ScheduleRemoverPort(Protocol):
    """Batch removal from the schedule."""

    def remove_batch(self, jobs: Iterable[JobRef]) -> RemovalResult:
        ...


class TimePort(Protocol):
    """Time port."""

    def now_utc(self) -> datetime:
        ...

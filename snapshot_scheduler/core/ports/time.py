"""
Time Interface.

All timestamps handled by the scheduler are UTC; the clock is injected so
discovery windows and log buckets are deterministic under test.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Clock interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...

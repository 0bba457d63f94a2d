"""Audit log component - append-only daily completion and failure logs."""

from .component import (
    COMPLETED_PREFIX,
    FAILED_PREFIX,
    AuditLog,
    bucket_key,
    create_completed_log,
    create_failed_log,
)

__all__ = [
    "COMPLETED_PREFIX",
    "FAILED_PREFIX",
    "AuditLog",
    "bucket_key",
    "create_completed_log",
    "create_failed_log",
]

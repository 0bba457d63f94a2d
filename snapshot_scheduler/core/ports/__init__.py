# snapshot-scheduler - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from snapshot_scheduler.core.ports.credentials import CredentialStorePort
from snapshot_scheduler.core.ports.publish_api import (
    PublishApiAuthError,
    PublishApiError,
    PublishApiPort,
)
from snapshot_scheduler.core.ports.queue import (
    DeliveryQueuePort,
    QueueBatch,
    QueueError,
    QueueMessage,
    QueueSendError,
)
from snapshot_scheduler.core.ports.storage import (
    BlobStorePort,
    InvalidBlobError,
    KeyNotFoundError,
    StorageError,
    read_json,
    write_json,
)
from snapshot_scheduler.core.ports.time import TimePort

__all__ = [
    # Storage
    "BlobStorePort",
    "InvalidBlobError",
    "KeyNotFoundError",
    "StorageError",
    "read_json",
    "write_json",
    # Queue
    "DeliveryQueuePort",
    "QueueBatch",
    "QueueError",
    "QueueMessage",
    "QueueSendError",
    # Remote API
    "PublishApiAuthError",
    "PublishApiError",
    "PublishApiPort",
    # Credentials
    "CredentialStorePort",
    # Time
    "TimePort",
]

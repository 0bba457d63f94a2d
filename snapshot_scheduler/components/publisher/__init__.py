"""
Publisher component - publishes delivered jobs with batched bookkeeping.
"""

from ._impl import (
    PublisherService,
    build_published_manifest,
    parse_job_message,
)
from .component import run_publish_batch
from .models import (
    BookkeepingError,
    InvalidJobMessageError,
    PublishBatchInput,
    PublishBatchOutput,
    PublishedJob,
    PublisherError,
    PublishFailedError,
    TenantNotRegisteredError,
)
from .ports import (
    CompletionLogPort,
    CredentialResolverPort,
    PublishTargetPort,
    ScheduleRemoverPort,
    TimePort,
)

__all__ = [
    # Entry points
    "run_publish_batch",
    # Models
    "PublishBatchInput",
    "PublishBatchOutput",
    "PublishedJob",
    # Errors
    "BookkeepingError",
    "InvalidJobMessageError",
    "PublishFailedError",
    "PublisherError",
    "TenantNotRegisteredError",
    # Ports
    "CompletionLogPort",
    "CredentialResolverPort",
    "PublishTargetPort",
    "ScheduleRemoverPort",
    "TimePort",
    # Service
    "PublisherService",
    "build_published_manifest",
    "parse_job_message",
]

"""
Publisher component - queue consumer that publishes due jobs.

Invariants:
- First failing job raises; later jobs in the batch are not attempted
- No bookkeeping unless the whole batch published
- Exactly one audit append and one schedule removal per successful batch
- Missing tenant credential fails the batch (it may appear before retries run out)
"""

from __future__ import annotations

from ._impl import PublisherService
from .models import PublishBatchInput, PublishBatchOutput
from .ports import (
    CompletionLogPort,
    CredentialResolverPort,
    PublishTargetPort,
    ScheduleRemoverPort,
    TimePort,
)


def run_publish_batch(
    inp: PublishBatchInput,
    *,
    credentials: CredentialResolverPort,
    api: PublishTargetPort,
    schedule: ScheduleRemoverPort,
    completed_log: CompletionLogPort,
    clock: TimePort,
) -> PublishBatchOutput:
    """
    Process one delivered batch.

    Raises:
        PublisherError: To make the queue redeliver the whole batch
    """
    service = PublisherService(
        credentials=credentials,
        api=api,
        schedule=schedule,
        completed_log=completed_log,
        clock=clock,
    )
    return service.publish_batch(inp.batch.messages)

"""
Discovery component - finds due jobs and dispatches them to the delivery queue.
"""

from ._impl import (
    SCHEDULED_PUBLISH_FIELD,
    DiscoveryConfig,
    DiscoveryService,
    create_discovery_service,
    find_due_jobs,
    trim_manifest,
)
from .component import (
    build_config,
    run_enqueue_tenants,
    run_poll_batch,
    run_poll_tenant,
    run_scan,
    run_timer_tick,
)
from .models import (
    DueJob,
    EnqueueTenantsInput,
    EnqueueTenantsOutput,
    PollTenantInput,
    PollTenantOutput,
    ScanInput,
    ScanOutput,
)
from .ports import JobSourcePort, QueuePort, ScheduleReaderPort, TenantDirectoryPort, TimePort

__all__ = [
    # Entry points
    "run_enqueue_tenants",
    "run_poll_batch",
    "run_poll_tenant",
    "run_scan",
    "run_timer_tick",
    # Input models
    "EnqueueTenantsInput",
    "PollTenantInput",
    "ScanInput",
    # Output models
    "DueJob",
    "EnqueueTenantsOutput",
    "PollTenantOutput",
    "ScanOutput",
    # Ports
    "JobSourcePort",
    "QueuePort",
    "ScheduleReaderPort",
    "TenantDirectoryPort",
    "TimePort",
    # Service
    "SCHEDULED_PUBLISH_FIELD",
    "DiscoveryConfig",
    "DiscoveryService",
    "build_config",
    "create_discovery_service",
    "find_due_jobs",
    "trim_manifest",
]

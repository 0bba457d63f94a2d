from typing import Literal

from pydantic import BaseModel, Field, model_validator


class SchedulerRules(BaseModel):
    strategy: Literal["schedule_scan", "tenant_poll"] = "schedule_scan"
    timer_interval_seconds: int = Field(default=300, gt=0)
    lookahead_seconds: int = Field(default=600, gt=0)
    min_lead_seconds: int = Field(default=300, ge=0)

    @model_validator(mode="after")
    def check_lookahead_covers_missed_tick(self) -> "SchedulerRules":
        # one delayed or missed tick must not open a gap in coverage
        if self.lookahead_seconds < 2 * self.timer_interval_seconds:
            raise ValueError(
                f"lookahead_seconds ({self.lookahead_seconds}) must be at least twice "
                f"timer_interval_seconds ({self.timer_interval_seconds})"
            )
        return self

class QueueRules(BaseModel):
    batch_size: int = Field(default=10, gt=0)
    max_attempts: int = Field(default=5, gt=0)
    backoff_seconds: list[int] = Field(default_factory=lambda: [120, 360, 1080, 2160])

    @model_validator(mode="after")
    def check_backoff(self) -> "QueueRules":
        if not self.backoff_seconds or any(s < 0 for s in self.backoff_seconds):
            raise ValueError("backoff_seconds must be a non-empty list of non-negative ints")
        return self

class TenantPollRules(BaseModel):
    retry_delay_seconds: int = Field(default=30, ge=0)
    max_poll_attempts: int = Field(default=3, gt=0)

class RemoteApiRules(BaseModel):
    base_url: str = "https://admin.hlx.page"
    branch: str = "main"
    auth_header: str = "X-Auth-Token"
    timeout_seconds: float = Field(default=10.0, gt=0)

class StorageRules(BaseModel):
    schedule_key: str = "schedule.json"
    completed_prefix: str = "completed"
    failed_prefix: str = "failed"
    registered_prefix: str = "registered"

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    scheduler: SchedulerRules = Field(default_factory=SchedulerRules)
    queue: QueueRules = Field(default_factory=QueueRules)
    tenant_poll: TenantPollRules = Field(default_factory=TenantPollRules)
    remote_api: RemoteApiRules = Field(default_factory=RemoteApiRules)
    storage: StorageRules = Field(default_factory=StorageRules)
    ops: OpsRules = Field(default_factory=OpsRules)

import os
from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from snapshot_scheduler.adapters.admin_api import AdminApiClient
from snapshot_scheduler.adapters.clock import SystemClock
from snapshot_scheduler.adapters.credentials import BlobCredentialStore
from snapshot_scheduler.adapters.local_storage import LocalBlobStore
from snapshot_scheduler.components.registry import TenantRegistry
from snapshot_scheduler.components.schedule_store import ScheduleStore
from snapshot_scheduler.rules.loader import load_rules
from snapshot_scheduler.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SCHEDULER_DATA_DIR", "./data"))
        self.secrets_dir = Path(
            os.environ.get("SCHEDULER_SECRETS_DIR", str(self.data_dir / "secrets"))
        )
        self.rules_path = Path(
            os.environ.get("SCHEDULER_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Storage ---
def get_blob_store(settings: Settings = Depends(get_settings)) -> LocalBlobStore:
    return LocalBlobStore(settings.data_dir)


def get_credential_store(settings: Settings = Depends(get_settings)) -> BlobCredentialStore:
    return BlobCredentialStore(LocalBlobStore(settings.secrets_dir))


# --- Component Services ---
def get_registry(
    store: LocalBlobStore = Depends(get_blob_store),
    credentials: BlobCredentialStore = Depends(get_credential_store),
    rules: Rules = Depends(get_rules),
) -> TenantRegistry:
    """Get tenant registry."""
    return TenantRegistry(store, credentials, rules.storage.registered_prefix)


def get_schedule_store(
    store: LocalBlobStore = Depends(get_blob_store),
    rules: Rules = Depends(get_rules),
) -> ScheduleStore:
    """Get schedule store."""
    return ScheduleStore(store, rules.storage.schedule_key)


# --- Remote API ---
def get_admin_api(rules: Rules = Depends(get_rules)) -> Iterator[AdminApiClient]:
    client = AdminApiClient(rules.remote_api)
    try:
        yield client
    finally:
        client.close()


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance

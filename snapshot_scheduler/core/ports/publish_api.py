"""
Remote Publish API Interface.

The admin API that owns snapshots and their manifests. This package only
lists, reads, publishes and patches them; it never owns their data.

Operations:
- list_jobs: GET snapshot ids for a tenant
- get_manifest: GET one snapshot manifest
- get_manifest_for_caller: the same, authenticated as the calling user
- publish: POST publish-by-id
- update_manifest: POST manifest update

Calls are authenticated with a per-tenant credential sent as a header, except
get_manifest_for_caller, which forwards the caller's Authorization value.
Publishing the same snapshot twice is assumed to be harmless.
"""

from __future__ import annotations

from typing import Any, Protocol

from snapshot_scheduler.core.entities import TenantKey


class PublishApiPort(Protocol):
    """Remote publish API client interface."""

    def list_jobs(self, tenant: TenantKey, credential: str) -> list[str]:
        """
        List snapshot ids for a tenant.

        Raises:
            PublishApiError: On network error or non-success response
        """
        ...

    def get_manifest(self, tenant: TenantKey, job_id: str, credential: str) -> dict[str, Any]:
        """
        Fetch a snapshot manifest.

        Raises:
            PublishApiError: On network error or non-success response
        """
        ...

    def get_manifest_for_caller(
        self, tenant: TenantKey, job_id: str, authorization: str
    ) -> dict[str, Any]:
        """
        Fetch a snapshot manifest as the calling user.

        The caller's Authorization header value is forwarded unchanged
        instead of a tenant credential.

        Raises:
            PublishApiAuthError: If the remote API rejects the caller
            PublishApiError: On network error or non-success response
        """
        ...

    def publish(self, tenant: TenantKey, job_id: str, credential: str) -> None:
        """
        Publish a snapshot.

        Raises:
            PublishApiError: On network error or non-success response
        """
        ...

    def update_manifest(
        self,
        tenant: TenantKey,
        job_id: str,
        manifest: dict[str, Any],
        credential: str,
    ) -> None:
        """
        Replace the snapshot manifest.

        Raises:
            PublishApiError: On network error or non-success response
        """
        ...


class PublishApiError(Exception):
    """Remote API call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PublishApiAuthError(PublishApiError):
    """Remote API rejected the credential (401/403)."""

"""
Admin API Adapter.

Implements PublishApiPort over HTTP with httpx.

Endpoints (relative to base_url):
- GET  /snapshot/{org}/{site}/{branch}                    -> {"snapshots": [...]}
- GET  /snapshot/{org}/{site}/{branch}/{id}               -> {"manifest": {...}}
- POST /snapshot/{org}/{site}/{branch}/{id}?publish=true  -> publish
- POST /snapshot/{org}/{site}/{branch}/{id}               -> manifest update

Any transport error or non-2xx response is raised as PublishApiError;
401/403 become PublishApiAuthError.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from snapshot_scheduler.core.entities import TenantKey
from snapshot_scheduler.core.ports.publish_api import PublishApiAuthError, PublishApiError
from snapshot_scheduler.rules.models import RemoteApiRules

logger = logging.getLogger(__name__)


class AdminApiClient:
    """HTTP client for the remote snapshot admin API."""

    def __init__(
        self,
        config: RemoteApiRules | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            config: Remote API rules (base URL, branch, auth header, timeout)
            client: Optional preconfigured httpx.Client (tests inject a MockTransport)
        """
        self._config = config or RemoteApiRules()
        self._client = client or httpx.Client(timeout=self._config.timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def _url(self, tenant: TenantKey, job_id: str | None = None) -> str:
        base = self._config.base_url.rstrip("/")
        path = "/".join(
            quote(part, safe="")
            for part in (tenant.organization, tenant.site, self._config.branch)
        )
        url = f"{base}/snapshot/{path}"
        if job_id is not None:
            url = f"{url}/{quote(job_id, safe='')}"
        return url

    def _headers(self, credential: str, auth_header: str | None = None) -> dict[str, str]:
        return {
            auth_header or self._config.auth_header: credential,
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        url: str,
        credential: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        auth_header: str | None = None,
    ) -> httpx.Response:
        try:
            response = self._client.request(
                method,
                url,
                headers=self._headers(credential, auth_header),
                params=params,
                json=json,
            )
        except httpx.HTTPError as e:
            raise PublishApiError(f"{method} {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise PublishApiAuthError(
                f"{method} {url} rejected: {response.status_code}",
                status_code=response.status_code,
            )
        if response.is_error:
            raise PublishApiError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PublishApiError(
                f"Invalid JSON from {response.request.url}", response.status_code
            ) from e

    def list_jobs(self, tenant: TenantKey, credential: str) -> list[str]:
        data = self._json(self._request("GET", self._url(tenant), credential))
        snapshots = data.get("snapshots") if isinstance(data, dict) else None
        if not isinstance(snapshots, list):
            logger.debug("No snapshots found or invalid response format for %s", tenant)
            return []

        job_ids = []
        for entry in snapshots:
            if isinstance(entry, str):
                job_ids.append(entry)
            elif isinstance(entry, dict) and isinstance(entry.get("id"), str):
                job_ids.append(entry["id"])
        return job_ids

    def get_manifest(self, tenant: TenantKey, job_id: str, credential: str) -> dict[str, Any]:
        return self._manifest(tenant, job_id, credential)

    def get_manifest_for_caller(
        self, tenant: TenantKey, job_id: str, authorization: str
    ) -> dict[str, Any]:
        """Fetch a manifest with the caller's Authorization value, sent unchanged."""
        return self._manifest(tenant, job_id, authorization, auth_header="Authorization")

    def _manifest(
        self,
        tenant: TenantKey,
        job_id: str,
        credential: str,
        auth_header: str | None = None,
    ) -> dict[str, Any]:
        url = self._url(tenant, job_id)
        data = self._json(self._request("GET", url, credential, auth_header=auth_header))
        manifest = data.get("manifest") if isinstance(data, dict) else None
        if not isinstance(manifest, dict):
            raise PublishApiError(f"No manifest in response for {tenant}/{job_id}")
        return manifest

    def publish(self, tenant: TenantKey, job_id: str, credential: str) -> None:
        self._request(
            "POST",
            self._url(tenant, job_id),
            credential,
            params={"publish": "true"},
            json={"publish": True},
        )

    def update_manifest(
        self,
        tenant: TenantKey,
        job_id: str,
        manifest: dict[str, Any],
        credential: str,
    ) -> None:
        self._request("POST", self._url(tenant, job_id), credential, json=manifest)

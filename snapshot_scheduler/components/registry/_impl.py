"""
TenantRegistry - registration records plus credential lookup.

Each tenant has a record at "<prefix>/<org>--<site>.json" in the blob store;
its credential lives in the separate credential store under the record's
credential_ref. Registration is idempotent: re-registering keeps the record
and refreshes the credential.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from snapshot_scheduler.core.entities import TenantKey, TenantKeyError, TenantRegistration
from snapshot_scheduler.core.ports.credentials import CredentialStorePort
from snapshot_scheduler.core.ports.storage import (
    BlobStorePort,
    KeyNotFoundError,
    read_json,
    write_json,
)

logger = logging.getLogger(__name__)

DEFAULT_REGISTERED_PREFIX = "registered"


class TenantRegistry:
    """Blob-backed tenant registry."""

    def __init__(
        self,
        store: BlobStorePort,
        credentials: CredentialStorePort,
        prefix: str = DEFAULT_REGISTERED_PREFIX,
    ) -> None:
        self._store = store
        self._credentials = credentials
        self._prefix = prefix.rstrip("/")

    def _key(self, tenant: TenantKey) -> str:
        return f"{self._prefix}/{tenant}.json"

    def register(self, tenant: TenantKey, api_key: str) -> bool:
        """
        Register tenant with api_key.

        Returns:
            True if a new registration record was written

        Raises:
            TenantKeyError: If organization or site is malformed
            StorageError: If the record or credential cannot be stored
        """
        tenant.validate()
        self._credentials.put_credential(tenant.credential_ref, api_key)

        key = self._key(tenant)
        if self._store.exists(key):
            logger.info("Tenant %s already registered; credential refreshed", tenant)
            return False

        record = TenantRegistration(
            organization=tenant.organization,
            site=tenant.site,
            credential_ref=tenant.credential_ref,
        )
        write_json(self._store, key, record.to_json_dict())
        logger.info("Registered tenant %s", tenant)
        return True

    def get(self, tenant: TenantKey) -> TenantRegistration | None:
        try:
            data = read_json(self._store, self._key(tenant))
        except KeyNotFoundError:
            return None
        try:
            return TenantRegistration.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed registration for %s: %s", tenant, e)
            return None

    def list_tenants(self) -> list[TenantKey]:
        """All registered tenants; keys that do not parse are skipped."""
        tenants: list[TenantKey] = []
        for key in self._store.list_keys(f"{self._prefix}/"):
            name = key[len(self._prefix) + 1 :]
            if name.endswith(".json"):
                name = name[: -len(".json")]
            try:
                tenants.append(TenantKey.parse(name))
            except TenantKeyError:
                logger.warning("Skipping invalid registration key %s", key)
        return tenants

    def get_credential(self, tenant: TenantKey) -> str | None:
        """Credential for a registered tenant, or None."""
        registration = self.get(tenant)
        if registration is None:
            return None
        return self._credentials.get_credential(registration.credential_ref)


def create_tenant_registry(
    store: BlobStorePort,
    credentials: CredentialStorePort,
    prefix: str = DEFAULT_REGISTERED_PREFIX,
) -> TenantRegistry:
    """Create a TenantRegistry."""
    return TenantRegistry(store, credentials, prefix)

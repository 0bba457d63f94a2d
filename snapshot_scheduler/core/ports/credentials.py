"""
Credential Store Interface.

Per-tenant credentials for the remote publish API are kept apart from the
blob store, keyed by the registration record's credential_ref.
"""

from __future__ import annotations

from typing import Protocol


class CredentialStorePort(Protocol):
    """Secret store interface."""

    def get_credential(self, ref: str) -> str | None:
        """Return the credential for ref, or None if absent."""
        ...

    def put_credential(self, ref: str, credential: str) -> None:
        """Store or replace the credential for ref."""
        ...

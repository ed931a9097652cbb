"""User-scoped, encrypted storage of integration configs.

Configs such as API keys or connection strings are encrypted before they are
stored and only decrypted on demand. Records returned to callers never carry
the ciphertext, so they are safe to log or return over the API.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from flowrun.credentials.encryption import IntegrationEncryption
from flowrun.exceptions import CredentialError, CredentialNotFound
from flowrun.types import IntegrationRecord, IntegrationType

logger = logging.getLogger(__name__)


class IntegrationStore:
    """In-process, encrypted integration store scoped to users.

    Args:
        encryption: A configured :class:`IntegrationEncryption` instance.
    """

    def __init__(self, encryption: IntegrationEncryption) -> None:
        self._enc = encryption
        self._store: dict[str, IntegrationRecord] = {}

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(
        self,
        *,
        user_id: str,
        name: str,
        integration_type: IntegrationType,
        config: dict[str, Any],
    ) -> IntegrationRecord:
        """Encrypt *config* and persist a new integration.

        Returns the stored record **without** ``encrypted_config``.

        Raises:
            CredentialError: if *config* is not a dict.
        """
        if not isinstance(config, dict):
            raise CredentialError("Integration config must be a plain dict")

        record = IntegrationRecord(
            user_id=user_id,
            name=name,
            type=integration_type,
            encrypted_config=self._enc.encrypt(json.dumps(config)),
        )
        self._store[record.id] = record
        logger.debug("[Integrations] Stored integration %s (%s) for user %s", record.id, record.type.value, user_id)
        return record.model_copy(update={"encrypted_config": ""})

    def get(self, integration_id: str, user_id: str) -> tuple[IntegrationRecord, dict[str, Any]]:
        """Return ``(record, decrypted_config)`` for an integration owned by *user_id*.

        Raises:
            CredentialNotFound: unknown ID or user mismatch.
        """
        record = self._store.get(integration_id)
        if record is None or record.user_id != user_id:
            raise CredentialNotFound(f"Integration '{integration_id}' not found", credential_id=integration_id)
        return record.model_copy(update={"encrypted_config": ""}), self._decrypt_config(record)

    def get_by_id(self, integration_id: str) -> Optional[tuple[IntegrationRecord, dict[str, Any]]]:
        """Unscoped lookup for use at step-execution time. ``None`` if unknown."""
        record = self._store.get(integration_id)
        if record is None:
            return None
        return record.model_copy(update={"encrypted_config": ""}), self._decrypt_config(record)

    def list(self, user_id: str, integration_type: Optional[IntegrationType] = None) -> list[IntegrationRecord]:
        """Return metadata for all integrations of *user_id*, optionally by type."""
        return [
            r.model_copy(update={"encrypted_config": ""})
            for r in self._store.values()
            if r.user_id == user_id and (integration_type is None or r.type == integration_type)
        ]

    def update(
        self,
        integration_id: str,
        user_id: str,
        *,
        name: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
    ) -> IntegrationRecord:
        """Rename and/or re-encrypt an integration's config.

        Raises:
            CredentialNotFound: unknown ID or user mismatch.
        """
        record = self._store.get(integration_id)
        if record is None or record.user_id != user_id:
            raise CredentialNotFound(f"Integration '{integration_id}' not found", credential_id=integration_id)

        changes: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
        if name is not None:
            changes["name"] = name
        if config is not None:
            changes["encrypted_config"] = self._enc.encrypt(json.dumps(config))
        updated = record.model_copy(update=changes)
        self._store[integration_id] = updated
        return updated.model_copy(update={"encrypted_config": ""})

    def delete(self, integration_id: str, user_id: str) -> bool:
        """Remove an integration.

        Raises:
            CredentialNotFound: unknown ID or user mismatch.
        """
        record = self._store.get(integration_id)
        if record is None or record.user_id != user_id:
            raise CredentialNotFound(f"Integration '{integration_id}' not found", credential_id=integration_id)
        del self._store[integration_id]
        logger.debug("[Integrations] Deleted integration %s for user %s", integration_id, user_id)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decrypt_config(self, record: IntegrationRecord) -> dict[str, Any]:
        """Decrypt a stored config. Any failure yields ``{}``."""
        try:
            config = json.loads(self._enc.decrypt(record.encrypted_config))
        except (CredentialError, ValueError) as exc:
            logger.error("[Integrations] Failed to decrypt config for %s: %s", record.id, exc)
            return {}
        return config if isinstance(config, dict) else {}

"""Exchanges an integration reference for decrypted secrets.

Steps receive only ``integrationId`` in their (loggable) input and call
:meth:`CredentialBroker.get_credentials` themselves. The returned mapping
lives in the step's memory only: it must never be returned from the step,
written to the Outputs Map, or passed to the execution logger.
"""

import logging
from typing import Any, Callable, Optional

from flowrun.credentials.store import IntegrationStore
from flowrun.types import IntegrationType

logger = logging.getLogger(__name__)


def _pick(config: dict[str, Any], mapping: dict[str, str]) -> dict[str, str]:
    return {env: str(config[key]) for key, env in mapping.items() if config.get(key)}


# config field -> credential name, per integration type
_CREDENTIAL_MAPS: dict[IntegrationType, dict[str, str]] = {
    IntegrationType.RESEND: {"apiKey": "RESEND_API_KEY", "fromEmail": "RESEND_FROM_EMAIL"},
    IntegrationType.LINEAR: {"apiKey": "LINEAR_API_KEY", "teamId": "LINEAR_TEAM_ID"},
    IntegrationType.SLACK: {"apiKey": "SLACK_API_KEY"},
    IntegrationType.DATABASE: {"url": "DATABASE_URL"},
    IntegrationType.AI_GATEWAY: {"apiKey": "AI_GATEWAY_API_KEY", "openaiApiKey": "OPENAI_API_KEY"},
}


def map_credentials(integration_type: IntegrationType, config: dict[str, Any]) -> dict[str, str]:
    """Translate a decrypted integration config into named credentials."""
    mapping = _CREDENTIAL_MAPS.get(integration_type)
    if mapping is None:
        return {}
    return _pick(config, mapping)


class CredentialBroker:
    """Resolve ``integrationId`` references for step implementations.

    Args:
        store: The :class:`IntegrationStore` holding encrypted configs.
        on_lookup: Optional hook called with ``(integration_id, found)`` for
            auditing. It never receives secret values.
    """

    def __init__(
        self,
        store: IntegrationStore,
        on_lookup: Optional[Callable[[str, bool], None]] = None,
    ) -> None:
        self._store = store
        self._on_lookup = on_lookup

    async def get_credentials(self, integration_id: Optional[str]) -> dict[str, str]:
        """Return decrypted credentials for *integration_id*.

        Unknown ids, and configs that fail to decrypt, yield ``{}``.
        """
        if not integration_id:
            return {}
        found = self._store.get_by_id(integration_id)
        if self._on_lookup is not None:
            self._on_lookup(integration_id, found is not None)
        if found is None:
            logger.warning("[Credentials] Integration %s not found", integration_id)
            return {}
        record, config = found
        return map_credentials(record.type, config)

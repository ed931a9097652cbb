"""Send Slack Message step.

Credentials are fetched at call time through the CredentialBroker using the
``integrationId`` reference in the step config. The token is used for the
outbound request only and never appears in the step's return value.
"""

import logging

import httpx

from flowrun.credentials.broker import CredentialBroker
from flowrun.exceptions import ExternalCallError, StepError
from flowrun.types import ActionKind, IntegrationType, StepDefinition

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"

DEFINITION = StepDefinition(
    name=ActionKind.SEND_SLACK_MESSAGE.value,
    description="Post a message to a Slack channel",
    category="integration",
    integration=IntegrationType.SLACK,
    config_fields=["integrationId", "slackChannel", "slackMessage"],
)


class SendSlackMessageStep:
    """Callable step bound to a credential broker."""

    def __init__(self, broker: CredentialBroker, timeout: float = 30.0):
        self._broker = broker
        self._timeout = timeout

    async def __call__(self, config: dict) -> dict:
        credentials = await self._broker.get_credentials(config.get("integrationId"))
        api_key = credentials.get("SLACK_API_KEY")
        if not api_key:
            raise StepError(
                "SLACK_API_KEY is not configured. Please add it in Project Integrations.",
                step_name=DEFINITION.name,
            )

        channel = config.get("slackChannel")
        if not channel:
            raise StepError("slackChannel is required", step_name=DEFINITION.name)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                SLACK_POST_MESSAGE_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                json={"channel": channel, "text": config.get("slackMessage") or ""},
            )

        if not response.is_success:
            raise ExternalCallError(
                f"Slack API returned HTTP {response.status_code}",
                step_name=DEFINITION.name,
                status_code=response.status_code,
            )
        payload = response.json()
        if not payload.get("ok"):
            raise ExternalCallError(
                f"Slack API error: {payload.get('error', 'unknown_error')}",
                step_name=DEFINITION.name,
                status_code=response.status_code,
            )

        logger.info(f"[Slack] Posted message to {channel}")
        return {"success": True, "ts": payload.get("ts"), "channel": payload.get("channel", channel)}

"""
Notification transports.

Actual email and messaging delivery lives behind an external gateway; these
transports hand it a JSON envelope or, without a gateway, just log it.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from techmarket.application.interfaces.services import (
    NotificationTransportInterface,
    Recipient,
)
from techmarket.config.logging import get_logger, redact
from techmarket.domain.value_objects.notification_channel import NotificationChannel
from techmarket.infrastructure.external.http_client import HTTPClient

logger = get_logger(__name__)


def build_envelope(
    recipient: Recipient, channel: NotificationChannel, template_data: Dict[str, Any]
) -> Dict[str, Any]:
    return {
        "channel": channel.value,
        "recipient": {
            "role": recipient.role,
            "user_id": str(recipient.user_id) if recipient.user_id else None,
            "address": recipient.address,
        },
        "template": template_data.get("template"),
        "data": template_data,
        "sent_at": datetime.now(timezone.utc).isoformat(),
    }


class WebhookNotificationTransport(NotificationTransportInterface):
    """POSTs each notification to the gateway webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        envelope = build_envelope(recipient, channel, template_data)
        async with HTTPClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, data=envelope)
        # 4xx/5xx raise so the retry handler sees the failure
        response.raise_for_status()


class LoggingNotificationTransport(NotificationTransportInterface):
    """Logs notifications instead of delivering them."""

    async def send(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        logger.info(
            "Notification",
            channel=channel.value,
            recipient_role=recipient.role,
            recipient_id=str(recipient.user_id) if recipient.user_id else None,
            data=redact(template_data),
        )

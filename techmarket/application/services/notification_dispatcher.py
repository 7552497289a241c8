"""
Fire-and-forget notification dispatcher.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from techmarket.application.interfaces.services import (
    NotificationDispatcherInterface,
    NotificationTransportInterface,
    Recipient,
)
from techmarket.application.services.retry_handler import RetryHandler
from techmarket.config.logging import get_logger
from techmarket.domain.value_objects.notification_channel import NotificationChannel
from techmarket.infrastructure.monitoring.metrics import record_notification

logger = get_logger(__name__)


class NotificationDispatcher(NotificationDispatcherInterface):
    """Schedules deliveries on the running event loop and never raises.

    Delivery failures are retried by ``RetryHandler``; once retries run out
    they are logged and counted, never propagated to the caller.
    """

    def __init__(
        self,
        transport: NotificationTransportInterface,
        retry_handler: Optional[RetryHandler] = None,
        max_retries: int = 2,
    ):
        self.transport = transport
        self.retry_handler = retry_handler or RetryHandler()
        self.max_retries = max_retries
        self.logger = logger
        self._pending: Set[asyncio.Task] = set()

    def notify(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning(
                "No running event loop, notification dropped",
                recipient_role=recipient.role,
                channel=channel.value,
                template=template_data.get("template"),
            )
            record_notification(channel.value, "dropped")
            return

        task = loop.create_task(self._deliver(recipient, channel, dict(template_data)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        try:
            await self.retry_handler.execute_with_retry(
                lambda: self.transport.send(recipient, channel, template_data),
                max_retries=self.max_retries,
                operation_key=f"notify:{channel.value}",
            )
            record_notification(channel.value, "sent")
        except Exception as e:
            record_notification(channel.value, "failed")
            self.logger.error(
                "Notification delivery failed",
                recipient_role=recipient.role,
                recipient_id=str(recipient.user_id) if recipient.user_id else None,
                channel=channel.value,
                template=template_data.get("template"),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

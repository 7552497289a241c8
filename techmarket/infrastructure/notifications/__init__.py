"""Notification transports."""

from .transports import LoggingNotificationTransport, WebhookNotificationTransport

__all__ = ["LoggingNotificationTransport", "WebhookNotificationTransport"]

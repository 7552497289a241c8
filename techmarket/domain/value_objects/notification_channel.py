"""
Notification channel value object.
"""

from enum import Enum


class NotificationChannel(str, Enum):
    """Delivery channels understood by the notification dispatcher."""

    EMAIL = "email"
    MESSAGING = "messaging"
    IN_APP = "in_app"

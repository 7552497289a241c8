"""
Service interfaces for dependency inversion.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import TimerKind
from techmarket.domain.value_objects.notification_channel import NotificationChannel


@dataclass(frozen=True)
class Recipient:
    """Who a notification is for. ``address`` is a phone or email when known."""

    role: str
    user_id: Optional[UUID] = None
    address: Optional[str] = None

    @classmethod
    def for_actor(cls, role: ActorRole, user_id: UUID) -> "Recipient":
        return cls(role=role.value, user_id=user_id)


class NotificationTransportInterface(ABC):
    """Delivers one notification. May raise; retries happen above it."""

    @abstractmethod
    async def send(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        pass


class NotificationDispatcherInterface(ABC):
    """Best-effort, non-blocking notification fan-out."""

    @abstractmethod
    def notify(
        self,
        recipient: Recipient,
        channel: NotificationChannel,
        template_data: Dict[str, Any],
    ) -> None:
        """Schedule delivery and return immediately. Never raises."""
        pass

    @abstractmethod
    async def drain(self) -> None:
        """Wait for scheduled deliveries to finish."""
        pass


class TimerSchedulerInterface(ABC):
    """Schedules a single-shot timer that re-enters the lifecycle controller."""

    @abstractmethod
    def schedule(self, job_id: UUID, kind: TimerKind, fire_at: datetime) -> None:
        pass


class CommissionCalculatorInterface(ABC):
    """Platform commission on a gross job amount."""

    @abstractmethod
    def commission_for(self, gross_amount: Decimal) -> Decimal:
        pass

"""
Payment split entity.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from techmarket.domain.exceptions.validation_error import InvalidFieldError
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod


@dataclass
class PaymentSplit:
    """Released vs. warranty-held portions of a job's captured payment.

    Amounts never change after creation; only the hold status moves.
    """

    job_id: UUID
    technician_id: UUID
    dealer_id: UUID
    total_amount: Decimal
    hold_percentage: Decimal
    held_amount: Decimal
    released_amount: Decimal
    warranty_days: int
    payment_method: PaymentMethod
    hold_release_at: datetime
    id: UUID = field(default_factory=uuid4)
    hold_status: HoldStatus = HoldStatus.HELD
    hold_settled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate the split invariant."""
        if self.released_amount + self.held_amount != self.total_amount:
            raise InvalidFieldError(
                "held_amount", "released and held amounts must add up to the total"
            )
        if self.held_amount < 0 or self.released_amount < 0:
            raise InvalidFieldError("held_amount", "split amounts must not be negative")
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc)

    def is_release_due(self, now: datetime) -> bool:
        return self.hold_status == HoldStatus.HELD and self.hold_release_at <= now

    def mark_released(self, now: datetime) -> None:
        if self.hold_status != HoldStatus.HELD:
            raise InvalidFieldError("hold_status", f"cannot release a {self.hold_status.value} hold")
        self.hold_status = HoldStatus.RELEASED
        self.hold_settled_at = now

    def mark_forfeited(self, now: datetime) -> None:
        if self.hold_status != HoldStatus.HELD:
            raise InvalidFieldError("hold_status", f"cannot forfeit a {self.hold_status.value} hold")
        self.hold_status = HoldStatus.FORFEITED
        self.hold_settled_at = now

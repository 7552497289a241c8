"""
Escrow Manager: payment splits and warranty hold settlement.
"""

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple, Union
from uuid import UUID

from techmarket.application.interfaces.repositories import (
    PaymentSplitRepositoryInterface,
    WarrantyRepositoryInterface,
)
from techmarket.application.interfaces.services import CommissionCalculatorInterface
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.payment_split import PaymentSplit
from techmarket.domain.exceptions.validation_error import (
    InvalidAmount,
    InvalidFieldError,
    RequiredFieldError,
)
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod
from techmarket.infrastructure.monitoring.metrics import record_hold_settled

logger = get_logger(__name__)

Number = Union[int, float, Decimal, str]

WHOLE_UNIT = Decimal("1")
CENT = Decimal("0.01")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps float literals like 0.1 from dragging binary noise along
    return Decimal(str(value))


def compute_split(total_amount: Number, hold_percentage: Number) -> Tuple[Decimal, Decimal]:
    """Return ``(held, released)`` for a total and a hold percentage.

    ``held`` is rounded half-up to whole currency units and ``released`` is
    the remainder, so the two always add back to ``total_amount``.
    """
    total = _to_decimal(total_amount)
    percentage = _to_decimal(hold_percentage)
    if total < 0:
        raise InvalidFieldError("total_amount", "must not be negative")
    if percentage < 0 or percentage > 100:
        raise InvalidFieldError("hold_percentage", "must be between 0 and 100")

    held = (total * percentage / 100).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
    if held > total:
        held = total
    return held, total - held


class EscrowManager:
    """Creates payment splits and settles warranty holds."""

    def __init__(
        self,
        split_repo: PaymentSplitRepositoryInterface,
        warranty_repo: WarrantyRepositoryInterface,
        commission_calculator: Optional[CommissionCalculatorInterface] = None,
    ):
        self.split_repo = split_repo
        self.warranty_repo = warranty_repo
        self.commission_calculator = commission_calculator
        self.logger = logger

    def build_split(
        self,
        job: Job,
        total_amount: Optional[Number],
        hold_percentage: Number,
        warranty_days: int,
        method: PaymentMethod,
        now: Optional[datetime] = None,
    ) -> PaymentSplit:
        """Compute the split for ``job`` without persisting it."""
        if total_amount is None:
            raise InvalidAmount(str(job.id))
        if job.technician_id is None:
            raise RequiredFieldError("technician_id")
        if warranty_days < 0:
            raise InvalidFieldError("warranty_days", "must not be negative")

        now = now or datetime.now(timezone.utc)
        window_start = job.completed_at or now
        held, released = compute_split(total_amount, hold_percentage)

        return PaymentSplit(
            job_id=job.id,
            technician_id=job.technician_id,
            dealer_id=job.dealer_id,
            total_amount=_to_decimal(total_amount),
            hold_percentage=_to_decimal(hold_percentage),
            held_amount=held,
            released_amount=released,
            warranty_days=warranty_days,
            payment_method=method,
            hold_release_at=window_start + timedelta(days=warranty_days),
            hold_status=HoldStatus.RELEASED if held == 0 else HoldStatus.HELD,
            hold_settled_at=now if held == 0 else None,
            created_at=now,
        )

    async def create_split(
        self,
        job: Job,
        total_amount: Optional[Number],
        hold_percentage: Number,
        warranty_days: int,
        method: PaymentMethod,
        now: Optional[datetime] = None,
    ) -> PaymentSplit:
        """Compute and persist the job's one payment split."""
        split = self.build_split(job, total_amount, hold_percentage, warranty_days, method, now)
        split = await self.split_repo.create(split)

        self.logger.info(
            "Payment split created",
            job_id=str(job.id),
            total_amount=str(split.total_amount),
            hold_percentage=str(split.hold_percentage),
            held_amount=str(split.held_amount),
            released_amount=str(split.released_amount),
            hold_release_at=split.hold_release_at.isoformat(),
        )
        return split

    async def release_expired_holds(
        self, now: Optional[datetime] = None, limit: int = 100
    ) -> List[PaymentSplit]:
        """Release every due hold whose job has no open issue or dispute."""
        now = now or datetime.now(timezone.utc)
        due = await self.split_repo.find_due_for_release(now, limit=limit)
        if not due:
            return []

        blocked = await self.warranty_repo.find_release_blocked_job_ids(
            [split.job_id for split in due]
        )

        released = []
        for split in due:
            if split.job_id in blocked:
                self.logger.info(
                    "Warranty hold gated by open issue or dispute",
                    job_id=str(split.job_id),
                    split_id=str(split.id),
                )
                continue
            if await self._settle(split, HoldStatus.RELEASED, now):
                released.append(split)

        self.logger.info(
            "Warranty hold release sweep finished",
            due=len(due),
            blocked=len(blocked),
            released=len(released),
        )
        return released

    async def forfeit_hold(self, job_id: UUID, now: Optional[datetime] = None) -> Optional[PaymentSplit]:
        """Forfeit the held amount to dispute resolution."""
        now = now or datetime.now(timezone.utc)
        split = await self.split_repo.get_by_job_id(job_id)
        if split is None or split.hold_status != HoldStatus.HELD:
            self.logger.info("No held amount to forfeit", job_id=str(job_id))
            return split
        await self._settle(split, HoldStatus.FORFEITED, now)
        return split

    async def _settle(self, split: PaymentSplit, target: HoldStatus, now: datetime) -> bool:
        settled = await self.split_repo.transition_hold(
            split.id, HoldStatus.HELD, target, now
        )
        if not settled:
            self.logger.warning(
                "Warranty hold already settled elsewhere",
                split_id=str(split.id),
                target=target.value,
            )
            return False

        if target == HoldStatus.RELEASED:
            split.mark_released(now)
        else:
            split.mark_forfeited(now)
        record_hold_settled(target.value)
        self.logger.info(
            "Warranty hold settled",
            job_id=str(split.job_id),
            split_id=str(split.id),
            hold_status=target.value,
            held_amount=str(split.held_amount),
        )
        return True

    def technician_net_amount(self, gross_amount: Optional[Number]) -> Optional[Decimal]:
        """Gross minus platform commission, as shown to technicians."""
        if gross_amount is None:
            return None
        gross = _to_decimal(gross_amount)
        commission = Decimal("0")
        if self.commission_calculator is not None:
            commission = self.commission_calculator.commission_for(gross)
        return (gross - commission).quantize(CENT, rounding=ROUND_HALF_UP)

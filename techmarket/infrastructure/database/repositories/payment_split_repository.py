"""Payment split repository implementation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import PaymentSplitRepositoryInterface
from techmarket.config.logging import get_logger
from techmarket.domain.entities.payment_split import PaymentSplit
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.payment_split import PaymentSplitModel

logger = get_logger(__name__)


class PaymentSplitRepository(PaymentSplitRepositoryInterface):
    """Payment split repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, split: PaymentSplit) -> PaymentSplit:
        model = PaymentSplitModel(
            id=split.id,
            job_id=split.job_id,
            technician_id=split.technician_id,
            dealer_id=split.dealer_id,
            total_amount=split.total_amount,
            hold_percentage=split.hold_percentage,
            held_amount=split.held_amount,
            released_amount=split.released_amount,
            payment_method=split.payment_method.value,
            warranty_days=split.warranty_days,
            hold_release_at=split.hold_release_at,
            hold_status=split.hold_status.value,
            hold_settled_at=split.hold_settled_at,
            created_at=split.created_at,
        )
        self.db.add(model)
        # Flush only; the caller owns the transaction
        await self.db.flush()
        await self.db.refresh(model)

        return self._model_to_entity(model)

    async def get_by_job_id(self, job_id: UUID) -> Optional[PaymentSplit]:
        stmt = (
            select(PaymentSplitModel)
            .where(PaymentSplitModel.job_id == job_id)
            .execution_options(populate_existing=True)
        )
        model = (await self.db.execute(stmt)).scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def find_due_for_release(
        self, now: datetime, limit: int = 100
    ) -> List[PaymentSplit]:
        stmt = (
            select(PaymentSplitModel)
            .where(
                PaymentSplitModel.hold_status == HoldStatus.HELD.value,
                PaymentSplitModel.hold_release_at <= now,
            )
            .order_by(PaymentSplitModel.hold_release_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def transition_hold(
        self,
        split_id: UUID,
        expected: HoldStatus,
        target: HoldStatus,
        settled_at: datetime,
    ) -> bool:
        """Move the hold status only if it is still ``expected``."""
        stmt = (
            update(PaymentSplitModel)
            .where(
                PaymentSplitModel.id == split_id,
                PaymentSplitModel.hold_status == expected.value,
            )
            .values(hold_status=target.value, hold_settled_at=settled_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    def _model_to_entity(self, model: PaymentSplitModel) -> PaymentSplit:
        return PaymentSplit(
            id=model.id,
            job_id=model.job_id,
            technician_id=model.technician_id,
            dealer_id=model.dealer_id,
            total_amount=Decimal(model.total_amount),
            hold_percentage=Decimal(model.hold_percentage),
            held_amount=Decimal(model.held_amount),
            released_amount=Decimal(model.released_amount),
            payment_method=PaymentMethod(model.payment_method),
            warranty_days=model.warranty_days,
            hold_release_at=as_utc(model.hold_release_at),
            hold_status=HoldStatus(model.hold_status),
            hold_settled_at=as_utc(model.hold_settled_at),
            created_at=as_utc(model.created_at),
        )

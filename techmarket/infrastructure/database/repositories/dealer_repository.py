"""Dealer repository implementation."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import DealerRepositoryInterface
from techmarket.domain.entities.dealer import Dealer
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.dealer import DealerModel


class DealerRepository(DealerRepositoryInterface):
    """Dealer repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, dealer_id: UUID) -> Optional[Dealer]:
        """Get dealer by ID."""
        stmt = select(DealerModel).where(DealerModel.id == dealer_id)
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def create(self, dealer: Dealer) -> Dealer:
        """Create a new dealer."""
        model = DealerModel(
            id=dealer.id,
            business_name=dealer.business_name,
            contact_name=dealer.contact_name,
            phone=dealer.phone,
            email=dealer.email,
            approval_status=dealer.approval_status.value,
            created_at=dealer.created_at,
            updated_at=dealer.updated_at,
        )
        self.db.add(model)
        await self.db.flush()
        await self.db.refresh(model)

        return self._model_to_entity(model)

    def _model_to_entity(self, model: DealerModel) -> Dealer:
        return Dealer(
            id=model.id,
            business_name=model.business_name,
            contact_name=model.contact_name,
            phone=model.phone,
            email=model.email,
            approval_status=model.approval_status,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

"""Technician repository implementation."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import TechnicianRepositoryInterface
from techmarket.config.logging import get_logger
from techmarket.domain.entities.technician import Technician
from techmarket.domain.value_objects.approval_status import ApprovalStatus
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.technician import TechnicianModel

logger = get_logger(__name__)


class TechnicianRepository(TechnicianRepositoryInterface):
    """Technician repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, technician_id: UUID) -> Optional[Technician]:
        """Get technician by ID."""
        stmt = select(TechnicianModel).where(TechnicianModel.id == technician_id)
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def find_approved(self) -> List[Technician]:
        """Find technicians allowed to receive jobs."""
        stmt = select(TechnicianModel).where(
            TechnicianModel.approval_status == ApprovalStatus.APPROVED.value
        )
        result = await self.db.execute(stmt)
        models = result.scalars().all()

        return [self._model_to_entity(model) for model in models]

    async def create(self, technician: Technician) -> Technician:
        """Create a new technician."""
        model = TechnicianModel(
            id=technician.id,
            name=technician.name,
            phone=technician.phone,
            email=technician.email,
            approval_status=technician.approval_status.value,
            latitude=technician.latitude,
            longitude=technician.longitude,
            place_name=technician.place_name,
            service_radius_km=technician.service_radius_km,
            primary_skills=[ref.to_dict() for ref in technician.primary_skills],
            service_categories=list(technician.service_categories),
            rating=technician.rating,
            created_at=technician.created_at,
            updated_at=technician.updated_at,
        )
        self.db.add(model)
        await self.db.flush()
        await self.db.refresh(model)

        return self._model_to_entity(model)

    def _model_to_entity(self, model: TechnicianModel) -> Technician:
        """Convert SQLAlchemy model to domain entity."""
        return Technician(
            id=model.id,
            name=model.name,
            phone=model.phone,
            email=model.email,
            approval_status=model.approval_status,
            latitude=model.latitude,
            longitude=model.longitude,
            place_name=model.place_name,
            service_radius_km=model.service_radius_km,
            primary_skills=model.primary_skills,
            service_categories=model.service_categories,
            rating=model.rating,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

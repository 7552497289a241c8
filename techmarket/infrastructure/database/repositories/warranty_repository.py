"""Warranty record and dispute repository implementation."""

from typing import Iterable, Optional, Set
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import WarrantyRepositoryInterface
from techmarket.domain.entities.warranty import Dispute, WarrantyRecord
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.warranty_status import (
    DisputeResolution,
    DisputeStatus,
    WarrantyStatus,
)
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.warranty import (
    DisputeModel,
    WarrantyRecordModel,
)


class WarrantyRepository(WarrantyRepositoryInterface):
    """Warranty issues and disputes, which together gate hold release."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_record(self, record: WarrantyRecord) -> WarrantyRecord:
        model = WarrantyRecordModel(
            id=record.id,
            job_id=record.job_id,
            description=record.description,
            status=record.status.value,
            resolved_at=record.resolved_at,
            created_at=record.created_at,
        )
        self.db.add(model)
        await self.db.flush()
        return self._record_to_entity(model)

    async def get_record(self, record_id: UUID) -> Optional[WarrantyRecord]:
        model = await self.db.get(WarrantyRecordModel, record_id)
        return self._record_to_entity(model) if model else None

    async def update_record(self, record: WarrantyRecord) -> WarrantyRecord:
        model = await self.db.get(WarrantyRecordModel, record.id)
        if model is None:
            raise ValueError(f"Warranty record {record.id} not found")
        model.status = record.status.value
        model.resolved_at = record.resolved_at
        await self.db.flush()
        return self._record_to_entity(model)

    async def create_dispute(self, dispute: Dispute) -> Dispute:
        model = DisputeModel(
            id=dispute.id,
            job_id=dispute.job_id,
            raised_by=dispute.raised_by,
            raised_by_role=dispute.raised_by_role.value,
            description=dispute.description,
            status=dispute.status.value,
            created_at=dispute.created_at,
        )
        self.db.add(model)
        await self.db.flush()
        return self._dispute_to_entity(model)

    async def get_dispute(self, dispute_id: UUID) -> Optional[Dispute]:
        model = await self.db.get(DisputeModel, dispute_id)
        return self._dispute_to_entity(model) if model else None

    async def update_dispute(self, dispute: Dispute) -> Dispute:
        model = await self.db.get(DisputeModel, dispute.id)
        if model is None:
            raise ValueError(f"Dispute {dispute.id} not found")
        model.status = dispute.status.value
        model.resolution = dispute.resolution.value if dispute.resolution else None
        model.resolved_at = dispute.resolved_at
        await self.db.flush()
        return self._dispute_to_entity(model)

    async def find_release_blocked_job_ids(self, job_ids: Iterable[UUID]) -> Set[UUID]:
        """Jobs with an unresolved warranty issue or an open dispute."""
        job_ids = list(job_ids)
        if not job_ids:
            return set()

        issues = select(WarrantyRecordModel.job_id).where(
            WarrantyRecordModel.job_id.in_(job_ids),
            WarrantyRecordModel.status == WarrantyStatus.ISSUE_REPORTED.value,
        )
        disputes = select(DisputeModel.job_id).where(
            DisputeModel.job_id.in_(job_ids),
            DisputeModel.status == DisputeStatus.OPEN.value,
        )
        blocked = set((await self.db.execute(issues)).scalars().all())
        blocked.update((await self.db.execute(disputes)).scalars().all())
        return blocked

    def _record_to_entity(self, model: WarrantyRecordModel) -> WarrantyRecord:
        return WarrantyRecord(
            id=model.id,
            job_id=model.job_id,
            description=model.description,
            status=WarrantyStatus(model.status),
            resolved_at=as_utc(model.resolved_at),
            created_at=as_utc(model.created_at),
        )

    def _dispute_to_entity(self, model: DisputeModel) -> Dispute:
        return Dispute(
            id=model.id,
            job_id=model.job_id,
            raised_by=model.raised_by,
            raised_by_role=ActorRole(model.raised_by_role),
            description=model.description,
            status=DisputeStatus(model.status),
            resolution=DisputeResolution(model.resolution) if model.resolution else None,
            resolved_at=as_utc(model.resolved_at),
            created_at=as_utc(model.created_at),
        )

"""Job history repository: read-only snapshots for reliability scoring."""

from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import JobHistoryRepositoryInterface
from techmarket.domain.entities.taxonomy import JobHistoryRecord
from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod
from techmarket.domain.value_objects.warranty_status import WarrantyStatus
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.job import JobModel
from techmarket.infrastructure.database.models.warranty import (
    DisputeModel,
    WarrantyRecordModel,
)


class JobHistoryRepository(JobHistoryRepositoryInterface):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_technician_history(self, technician_id: UUID) -> List[JobHistoryRecord]:
        stmt = select(JobModel).where(JobModel.technician_id == technician_id)
        # resolved issues no longer count against the technician
        return await self._history(stmt, open_issues_only=True)

    async def get_dealer_history(self, dealer_id: UUID) -> List[JobHistoryRecord]:
        stmt = select(JobModel).where(JobModel.dealer_id == dealer_id)
        return await self._history(stmt)

    async def _history(self, stmt, open_issues_only: bool = False) -> List[JobHistoryRecord]:
        models = (await self.db.execute(stmt)).scalars().all()
        if not models:
            return []

        job_ids = [model.id for model in models]
        warranty_filter = (
            WarrantyRecordModel.status == WarrantyStatus.ISSUE_REPORTED.value
            if open_issues_only
            else None
        )
        warranty_counts = await self._counts(WarrantyRecordModel, job_ids, warranty_filter)
        dispute_counts = await self._counts(DisputeModel, job_ids)

        return [
            JobHistoryRecord(
                job_id=model.id,
                status=JobStatus(model.status),
                scheduled_at=as_utc(model.scheduled_at),
                assigned_at=as_utc(model.assigned_at),
                started_at=as_utc(model.started_at),
                completion_requested_at=as_utc(model.completion_requested_at),
                completed_at=as_utc(model.completed_at),
                payment_captured_at=as_utc(model.payment_captured_at),
                payment_method=(
                    PaymentMethod(model.payment_method) if model.payment_method else None
                ),
                warranty_issue_count=warranty_counts.get(model.id, 0),
                dispute_count=dispute_counts.get(model.id, 0),
            )
            for model in models
        ]

    async def _counts(self, model_class, job_ids: List[UUID], condition=None) -> Dict[UUID, int]:
        stmt = select(model_class.job_id, func.count(model_class.id)).where(
            model_class.job_id.in_(job_ids)
        )
        if condition is not None:
            stmt = stmt.where(condition)
        stmt = stmt.group_by(model_class.job_id)
        result = await self.db.execute(stmt)
        return {job_id: count for job_id, count in result.all()}

"""Job repository implementation."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import JobRepositoryInterface
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.address import Address
from techmarket.domain.value_objects.job_status import (
    ClosureReason,
    JobStatus,
    TimeoutReason,
    TimerKind,
)
from techmarket.domain.value_objects.payment import PaymentMethod
from techmarket.infrastructure.database.models.base import as_utc
from techmarket.infrastructure.database.models.job import JobModel

logger = get_logger(__name__)

_DEADLINE_COLUMNS = {
    TimerKind.SOFT_LOCK: JobModel.soft_lock_expires_at,
    TimerKind.PAYMENT_DEADLINE: JobModel.payment_deadline_at,
    TimerKind.NEGOTIATION: JobModel.negotiation_expires_at,
}


class JobRepository(JobRepositoryInterface):
    """Job repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, job_id: UUID) -> Optional[Job]:
        """Get job by ID, bypassing any stale copy in the identity map."""
        stmt = (
            select(JobModel)
            .where(JobModel.id == job_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def create(self, job: Job) -> Job:
        """Create a new job."""
        job_model = JobModel(
            id=job.id,
            version=job.version,
            created_at=job.created_at,
            **self._entity_to_values(job),
        )

        self.db.add(job_model)
        # Use flush instead of commit to maintain transaction atomicity
        await self.db.flush()
        await self.db.refresh(job_model)

        return self._model_to_entity(job_model)

    async def compare_and_set(
        self, job: Job, expected_status: JobStatus, expected_version: int
    ) -> bool:
        """Conditional UPDATE on ``(id, status, version)``.

        Exactly one writer can win a given ``(status, version)``; the loser
        sees ``rowcount == 0`` and must not report success.
        """
        stmt = (
            update(JobModel)
            .where(
                JobModel.id == job.id,
                JobModel.status == expected_status.value,
                JobModel.version == expected_version,
            )
            .values(version=expected_version + 1, **self._entity_to_values(job))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount != 1:
            logger.debug(
                "Compare-and-set matched no row",
                job_id=str(job.id),
                expected_status=expected_status.value,
                expected_version=expected_version,
            )
            return False

        job.version = expected_version + 1
        return True

    async def find_by_dealer(
        self, dealer_id: UUID, statuses: Optional[List[JobStatus]] = None
    ) -> List[Job]:
        stmt = select(JobModel).where(JobModel.dealer_id == dealer_id)
        return await self._find(stmt, statuses)

    async def find_by_technician(
        self, technician_id: UUID, statuses: Optional[List[JobStatus]] = None
    ) -> List[Job]:
        stmt = select(JobModel).where(JobModel.technician_id == technician_id)
        return await self._find(stmt, statuses)

    async def find_open_unassigned(self, limit: int = 200, offset: int = 0) -> List[Job]:
        stmt = (
            select(JobModel)
            .where(
                JobModel.status == JobStatus.PENDING.value,
                JobModel.technician_id.is_(None),
            )
            .offset(offset)
            .limit(limit)
        )
        return await self._find(stmt)

    async def find_all(
        self, statuses: Optional[List[JobStatus]] = None, limit: int = 200
    ) -> List[Job]:
        return await self._find(select(JobModel).limit(limit), statuses)

    async def find_expired_timers(
        self, kind: TimerKind, now: datetime, limit: int = 100
    ) -> List[Job]:
        deadline = _DEADLINE_COLUMNS[kind]
        stmt = (
            select(JobModel)
            .where(
                JobModel.status == kind.guarded_status.value,
                deadline.is_not(None),
                deadline <= now,
            )
            .order_by(deadline)
            .limit(limit)
        )
        return await self._find(stmt)

    async def find_active_for_sla(self, limit: int = 500) -> List[Job]:
        stmt = select(JobModel).limit(limit)
        return await self._find(stmt, [JobStatus.ASSIGNED, JobStatus.IN_PROGRESS])

    async def _find(self, stmt, statuses: Optional[List[JobStatus]] = None) -> List[Job]:
        if statuses:
            stmt = stmt.where(JobModel.status.in_([status.value for status in statuses]))
        stmt = stmt.order_by(JobModel.created_at.desc(), JobModel.id).execution_options(
            populate_existing=True
        )
        result = await self.db.execute(stmt)
        models = result.scalars().all()

        return [self._model_to_entity(model) for model in models]

    def _entity_to_values(self, job: Job) -> Dict[str, Any]:
        """Column values for every mutable job field."""
        return {
            "job_number": job.job_number,
            "status": job.status.value,
            "dealer_id": job.dealer_id,
            "technician_id": job.technician_id,
            "title": job.title,
            "description": job.description,
            "work_details": job.work_details,
            "customer_name": job.customer_name,
            "customer_phone": job.customer_phone,
            "street": job.address.street,
            "city": job.address.city,
            "state": job.address.state,
            "pincode": job.address.pincode,
            "latitude": job.latitude,
            "longitude": job.longitude,
            "service_domain_id": job.service_domain_id,
            "service_category_id": job.service_category_id,
            "service_sub_category_id": job.service_sub_category_id,
            "skill_id": job.skill_id,
            "priority": job.priority,
            "scheduled_at": job.scheduled_at,
            "estimated_duration_hours": job.estimated_duration_hours,
            "estimated_price": job.estimated_price,
            "final_price": job.final_price,
            "price_locked": job.price_locked,
            "warranty_days": job.warranty_days,
            "soft_lock_expires_at": job.soft_lock_expires_at,
            "soft_lock_resets": job.soft_lock_resets,
            "payment_deadline_at": job.payment_deadline_at,
            "offer_amount": job.offer_amount,
            "offer_by": job.offer_by.value if job.offer_by else None,
            "negotiation_rounds": job.negotiation_rounds,
            "negotiation_expires_at": job.negotiation_expires_at,
            "payment_method": job.payment_method.value if job.payment_method else None,
            "payment_proof": job.payment_proof,
            "captured_amount": job.captured_amount,
            "payment_captured_at": job.payment_captured_at,
            "assigned_at": job.assigned_at,
            "started_at": job.started_at,
            "completion_otp_hash": job.completion_otp_hash,
            "otp_expires_at": job.otp_expires_at,
            "completion_requested_at": job.completion_requested_at,
            "completed_at": job.completed_at,
            "repost_count": job.repost_count,
            "max_reposts": job.max_reposts,
            "timeout_reasons": [reason.value for reason in job.timeout_reasons],
            "closure_reason": job.closure_reason.value if job.closure_reason else None,
            "status_note": job.status_note,
            "updated_at": job.updated_at,
        }

    def _model_to_entity(self, model: JobModel) -> Job:
        """Convert SQLAlchemy model to domain entity."""
        address = Address(
            street=model.street,
            city=model.city,
            state=model.state,
            pincode=model.pincode,
        )

        return Job(
            id=model.id,
            job_number=model.job_number,
            status=JobStatus(model.status),
            version=model.version,
            dealer_id=model.dealer_id,
            technician_id=model.technician_id,
            title=model.title,
            description=model.description,
            work_details=model.work_details,
            customer_name=model.customer_name,
            customer_phone=model.customer_phone,
            address=address,
            latitude=model.latitude,
            longitude=model.longitude,
            service_domain_id=model.service_domain_id,
            service_category_id=model.service_category_id,
            service_sub_category_id=model.service_sub_category_id,
            skill_id=model.skill_id,
            priority=model.priority or "NORMAL",
            scheduled_at=as_utc(model.scheduled_at),
            estimated_duration_hours=model.estimated_duration_hours,
            estimated_price=model.estimated_price,
            final_price=model.final_price,
            price_locked=bool(model.price_locked),
            warranty_days=model.warranty_days,
            soft_lock_expires_at=as_utc(model.soft_lock_expires_at),
            soft_lock_resets=model.soft_lock_resets or 0,
            payment_deadline_at=as_utc(model.payment_deadline_at),
            offer_amount=model.offer_amount,
            offer_by=ActorRole(model.offer_by) if model.offer_by else None,
            negotiation_rounds=model.negotiation_rounds or 0,
            negotiation_expires_at=as_utc(model.negotiation_expires_at),
            payment_method=(
                PaymentMethod(model.payment_method) if model.payment_method else None
            ),
            payment_proof=model.payment_proof,
            captured_amount=model.captured_amount,
            payment_captured_at=as_utc(model.payment_captured_at),
            assigned_at=as_utc(model.assigned_at),
            started_at=as_utc(model.started_at),
            completion_otp_hash=model.completion_otp_hash,
            otp_expires_at=as_utc(model.otp_expires_at),
            completion_requested_at=as_utc(model.completion_requested_at),
            completed_at=as_utc(model.completed_at),
            repost_count=model.repost_count or 0,
            max_reposts=model.max_reposts,
            timeout_reasons=[TimeoutReason(reason) for reason in model.timeout_reasons or []],
            closure_reason=(
                ClosureReason(model.closure_reason) if model.closure_reason else None
            ),
            status_note=model.status_note,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

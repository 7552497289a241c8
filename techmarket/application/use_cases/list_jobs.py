"""List jobs use case."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID

from techmarket.application.interfaces.repositories import (
    DealerRepositoryInterface,
    JobRepositoryInterface,
    TechnicianRepositoryInterface,
)
from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.job_matching_engine import JobMatchingEngine
from techmarket.application.services.job_privacy import job_view
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.technician import Technician
from techmarket.domain.exceptions.not_found_error import (
    JobNotFoundError,
    TechnicianNotFoundError,
)
from techmarket.domain.exceptions.validation_error import ActorMismatchError
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import JobStatus

logger = get_logger(__name__)


@dataclass
class ListJobsRequest:
    """Request for listing jobs as seen by one caller."""

    role: ActorRole
    actor_id: Optional[UUID] = None
    statuses: Optional[List[JobStatus]] = None
    available: bool = False
    limit: int = 200


class ListJobsUseCase:
    """Role-scoped job listing with field redaction."""

    def __init__(
        self,
        job_repo: JobRepositoryInterface,
        technician_repo: TechnicianRepositoryInterface,
        dealer_repo: DealerRepositoryInterface,
        matching_engine: JobMatchingEngine,
        escrow_manager: EscrowManager,
        page_size: int = 200,
    ):
        self.job_repo = job_repo
        self.technician_repo = technician_repo
        self.dealer_repo = dealer_repo
        self.matching_engine = matching_engine
        self.escrow_manager = escrow_manager
        self.page_size = page_size

    async def execute(self, request: ListJobsRequest) -> List[Dict[str, Any]]:
        jobs = await self._scoped_jobs(request)
        logger.debug(
            "Listing jobs",
            role=request.role.value,
            actor_id=str(request.actor_id) if request.actor_id else None,
            available=request.available,
            count=len(jobs),
        )
        return await self._views(jobs, request.role, request.actor_id)

    async def get_one(
        self, job_id: UUID, role: ActorRole, actor_id: Optional[UUID]
    ) -> Dict[str, Any]:
        """Single job view; callers only see jobs they could list."""
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if role == ActorRole.DEALER and job.dealer_id != actor_id:
            raise ActorMismatchError(str(job_id), str(actor_id), role.value)
        if (
            role == ActorRole.TECHNICIAN
            and job.technician_id != actor_id
            and not job.status.is_open_for_acceptance()
        ):
            raise ActorMismatchError(str(job_id), str(actor_id), role.value)
        views = await self._views([job], role, actor_id)
        return views[0]

    async def _scoped_jobs(self, request: ListJobsRequest) -> List[Job]:
        if request.role == ActorRole.DEALER:
            return await self.job_repo.find_by_dealer(request.actor_id, request.statuses)

        if request.role == ActorRole.TECHNICIAN:
            if not request.available:
                return await self.job_repo.find_by_technician(
                    request.actor_id, request.statuses
                )
            technician = await self.technician_repo.get_by_id(request.actor_id)
            if technician is None:
                raise TechnicianNotFoundError(request.actor_id)
            return await self._available_jobs(technician, request.limit)

        return await self.job_repo.find_all(request.statuses, limit=request.limit)

    async def _available_jobs(self, technician: Technician, limit: int) -> List[Job]:
        """Match open jobs page by page until ``limit`` matches are found."""
        matched: List[Job] = []
        offset = 0
        while len(matched) < limit:
            page = await self.job_repo.find_open_unassigned(
                limit=self.page_size, offset=offset
            )
            matched.extend(
                await self.matching_engine.filter_jobs_for_technician(technician, page)
            )
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return matched[:limit]

    async def _views(
        self, jobs: List[Job], role: ActorRole, actor_id: Optional[UUID]
    ) -> List[Dict[str, Any]]:
        dealers = {}
        technicians = {}
        for job in jobs:
            if job.dealer_id not in dealers:
                dealers[job.dealer_id] = await self.dealer_repo.get_by_id(job.dealer_id)
            if job.technician_id and job.technician_id not in technicians:
                technicians[job.technician_id] = await self.technician_repo.get_by_id(
                    job.technician_id
                )

        return [
            job_view(
                job,
                role,
                actor_id=actor_id,
                dealer=dealers.get(job.dealer_id),
                technician=technicians.get(job.technician_id),
                net_amount_for=self.escrow_manager.technician_net_amount,
            )
            for job in jobs
        ]

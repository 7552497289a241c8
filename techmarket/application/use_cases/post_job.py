"""Post job use case."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from techmarket.application.interfaces.repositories import (
    DealerRepositoryInterface,
    JobRepositoryInterface,
    TaxonomyRepositoryInterface,
)
from techmarket.application.services.candidate_notifier import CandidateNotifier
from techmarket.application.services.transaction_service import TransactionService
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.technician import Technician
from techmarket.domain.exceptions.not_found_error import DealerNotFoundError
from techmarket.domain.exceptions.validation_error import (
    InvalidFieldError,
    RequiredFieldError,
    ValidationError,
)
from techmarket.domain.value_objects.address import Address
from techmarket.infrastructure.monitoring.metrics import record_job_posted

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "title",
    "description",
    "work_details",
    "customer_name",
    "customer_phone",
    "street",
    "city",
    "state",
    "pincode",
    "service_domain_id",
    "service_category_id",
    "service_sub_category_id",
)


@dataclass
class PostJobRequest:
    """Request for posting a job."""

    dealer_id: UUID
    title: str
    description: str
    work_details: str
    customer_name: str
    customer_phone: str
    street: str
    city: str
    state: str
    pincode: str
    service_domain_id: str
    service_category_id: str
    service_sub_category_id: str
    skill_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    priority: str = "NORMAL"
    scheduled_at: Optional[datetime] = None
    estimated_duration_hours: Optional[float] = None
    estimated_price: Optional[Decimal] = None


@dataclass
class PostJobResult:
    """Result of posting a job."""

    job: Job
    candidates: List[Technician] = field(default_factory=list)


class PostJobUseCase:
    """Validates and stores a job, then announces it to matched technicians."""

    def __init__(
        self,
        job_repo: JobRepositoryInterface,
        dealer_repo: DealerRepositoryInterface,
        taxonomy_repo: TaxonomyRepositoryInterface,
        transaction_service: TransactionService,
        candidate_notifier: Optional[CandidateNotifier] = None,
        max_reposts: int = 3,
    ):
        self.job_repo = job_repo
        self.dealer_repo = dealer_repo
        self.taxonomy_repo = taxonomy_repo
        self.transaction_service = transaction_service
        self.candidate_notifier = candidate_notifier
        self.max_reposts = max_reposts

    async def execute(self, request: PostJobRequest) -> PostJobResult:
        logger.info(
            "Posting job",
            dealer_id=str(request.dealer_id),
            title=request.title,
            service_domain_id=request.service_domain_id,
            city=request.city,
        )

        # 1. Required fields
        for name in REQUIRED_FIELDS:
            value = getattr(request, name)
            if value is None or not str(value).strip():
                raise RequiredFieldError(name)
        if request.estimated_price is not None and request.estimated_price <= 0:
            raise InvalidFieldError("estimated_price", "must be positive")

        # 2. Dealer must exist
        dealer = await self.dealer_repo.get_by_id(request.dealer_id)
        if not dealer:
            raise DealerNotFoundError(request.dealer_id)

        try:
            address = Address(
                street=request.street.strip(),
                city=request.city.strip(),
                state=request.state.strip(),
                pincode=request.pincode.strip(),
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        # 3. Warranty days: sub-category first, then category
        warranty_days = None
        try:
            warranty_days = await self.taxonomy_repo.get_warranty_days(
                request.service_sub_category_id, request.service_category_id
            )
        except Exception as e:
            logger.error(
                "Warranty days lookup failed, default applies at approval",
                service_sub_category_id=request.service_sub_category_id,
                service_category_id=request.service_category_id,
                error=str(e),
            )

        job = Job(
            dealer_id=request.dealer_id,
            title=request.title.strip(),
            description=request.description.strip(),
            work_details=request.work_details.strip(),
            customer_name=request.customer_name.strip(),
            customer_phone=request.customer_phone.strip(),
            address=address,
            service_domain_id=request.service_domain_id,
            service_category_id=request.service_category_id,
            service_sub_category_id=request.service_sub_category_id,
            skill_id=request.skill_id or None,
            latitude=request.latitude,
            longitude=request.longitude,
            priority=request.priority,
            scheduled_at=request.scheduled_at,
            estimated_duration_hours=request.estimated_duration_hours,
            estimated_price=request.estimated_price,
            warranty_days=warranty_days,
            max_reposts=self.max_reposts,
        )

        # 4. Persist
        job = await self.transaction_service.execute_in_transaction(
            lambda: self.job_repo.create(job)
        )
        record_job_posted(job.service_domain_id)
        logger.info(
            "Job posted",
            job_id=str(job.id),
            job_number=job.job_number,
            warranty_days=job.warranty_days,
        )

        # 5. Fan out after commit
        candidates = []
        if self.candidate_notifier is not None:
            candidates = await self.candidate_notifier.announce(job)

        return PostJobResult(job=job, candidates=candidates)

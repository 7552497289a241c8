"""
Repository interfaces for dependency inversion.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from techmarket.domain.entities.dealer import Dealer
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.payment_split import PaymentSplit
from techmarket.domain.entities.taxonomy import JobHistoryRecord, Skill
from techmarket.domain.entities.technician import Technician
from techmarket.domain.entities.warranty import Dispute, WarrantyRecord
from techmarket.domain.value_objects.job_status import JobStatus, TimerKind
from techmarket.domain.value_objects.payment import HoldStatus


class JobRepositoryInterface(ABC):
    """Job repository interface."""

    @abstractmethod
    async def create(self, job: Job) -> Job:
        """Create a new job."""
        pass

    @abstractmethod
    async def get_by_id(self, job_id: UUID) -> Optional[Job]:
        """Get job by ID."""
        pass

    @abstractmethod
    async def compare_and_set(
        self, job: Job, expected_status: JobStatus, expected_version: int
    ) -> bool:
        """Persist ``job`` only if the stored row still has the expected status
        and version. Bumps ``job.version`` on success."""
        pass

    @abstractmethod
    async def find_by_dealer(
        self, dealer_id: UUID, statuses: Optional[List[JobStatus]] = None
    ) -> List[Job]:
        """Find jobs posted by a dealer."""
        pass

    @abstractmethod
    async def find_by_technician(
        self, technician_id: UUID, statuses: Optional[List[JobStatus]] = None
    ) -> List[Job]:
        """Find jobs assigned to a technician."""
        pass

    @abstractmethod
    async def find_open_unassigned(self, limit: int = 200, offset: int = 0) -> List[Job]:
        """Find PENDING jobs with no technician, newest first."""
        pass

    @abstractmethod
    async def find_all(
        self, statuses: Optional[List[JobStatus]] = None, limit: int = 200
    ) -> List[Job]:
        """Find jobs regardless of owner."""
        pass

    @abstractmethod
    async def find_expired_timers(
        self, kind: TimerKind, now: datetime, limit: int = 100
    ) -> List[Job]:
        """Find jobs still in the timer's guarded status whose deadline passed."""
        pass

    @abstractmethod
    async def find_active_for_sla(self, limit: int = 500) -> List[Job]:
        """Find ASSIGNED and IN_PROGRESS jobs."""
        pass


class TechnicianRepositoryInterface(ABC):
    """Technician repository interface."""

    @abstractmethod
    async def get_by_id(self, technician_id: UUID) -> Optional[Technician]:
        """Get technician by ID."""
        pass

    @abstractmethod
    async def find_approved(self) -> List[Technician]:
        """Find all approved technicians."""
        pass

    @abstractmethod
    async def create(self, technician: Technician) -> Technician:
        """Create a new technician."""
        pass


class DealerRepositoryInterface(ABC):
    """Dealer repository interface."""

    @abstractmethod
    async def get_by_id(self, dealer_id: UUID) -> Optional[Dealer]:
        """Get dealer by ID."""
        pass

    @abstractmethod
    async def create(self, dealer: Dealer) -> Dealer:
        """Create a new dealer."""
        pass


class TaxonomyRepositoryInterface(ABC):
    """Batched lookups into the service taxonomy.

    Every method takes the full set of ids for a matching run and issues a
    single query, so cost grows with distinct ids rather than candidates.
    """

    @abstractmethod
    async def get_domain_titles(self, domain_ids: Iterable[str]) -> Dict[str, str]:
        pass

    @abstractmethod
    async def get_category_titles(self, category_ids: Iterable[str]) -> Dict[str, str]:
        pass

    @abstractmethod
    async def get_skills(self, skill_ids: Iterable[str]) -> Dict[str, Skill]:
        pass

    @abstractmethod
    async def get_skills_by_domain(
        self, domain_ids: Iterable[str]
    ) -> Dict[str, List[Skill]]:
        pass

    @abstractmethod
    async def get_warranty_days(
        self, sub_category_id: Optional[str], category_id: Optional[str]
    ) -> Optional[int]:
        """Warranty days from the sub-category, then the category."""
        pass


class JobHistoryRepositoryInterface(ABC):
    """Read-only history used for reliability scoring."""

    @abstractmethod
    async def get_technician_history(self, technician_id: UUID) -> List[JobHistoryRecord]:
        pass

    @abstractmethod
    async def get_dealer_history(self, dealer_id: UUID) -> List[JobHistoryRecord]:
        pass


class PaymentSplitRepositoryInterface(ABC):
    """Payment split repository interface."""

    @abstractmethod
    async def create(self, split: PaymentSplit) -> PaymentSplit:
        """Create the split for a job. A job has at most one."""
        pass

    @abstractmethod
    async def get_by_job_id(self, job_id: UUID) -> Optional[PaymentSplit]:
        pass

    @abstractmethod
    async def find_due_for_release(
        self, now: datetime, limit: int = 100
    ) -> List[PaymentSplit]:
        """Find HELD splits whose warranty window has ended."""
        pass

    @abstractmethod
    async def transition_hold(
        self,
        split_id: UUID,
        expected: HoldStatus,
        target: HoldStatus,
        settled_at: datetime,
    ) -> bool:
        """Move the hold status only if it still equals ``expected``."""
        pass


class WarrantyRepositoryInterface(ABC):
    """Warranty record and dispute repository interface."""

    @abstractmethod
    async def create_record(self, record: WarrantyRecord) -> WarrantyRecord:
        pass

    @abstractmethod
    async def get_record(self, record_id: UUID) -> Optional[WarrantyRecord]:
        pass

    @abstractmethod
    async def update_record(self, record: WarrantyRecord) -> WarrantyRecord:
        pass

    @abstractmethod
    async def create_dispute(self, dispute: Dispute) -> Dispute:
        pass

    @abstractmethod
    async def get_dispute(self, dispute_id: UUID) -> Optional[Dispute]:
        pass

    @abstractmethod
    async def update_dispute(self, dispute: Dispute) -> Dispute:
        pass

    @abstractmethod
    async def find_release_blocked_job_ids(self, job_ids: Iterable[UUID]) -> Set[UUID]:
        """Jobs among ``job_ids`` with an open warranty issue or open dispute."""
        pass

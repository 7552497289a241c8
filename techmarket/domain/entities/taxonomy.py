"""
Service taxonomy entities and job history records.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod


@dataclass(frozen=True)
class Skill:
    """A skill in the service taxonomy."""

    id: str
    title: str
    domain_id: Optional[str] = None


@dataclass(frozen=True)
class JobHistoryRecord:
    """Immutable snapshot of one past job, as seen by reliability scoring."""

    job_id: UUID
    status: JobStatus
    scheduled_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completion_requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    payment_captured_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    warranty_issue_count: int = 0
    dispute_count: int = 0

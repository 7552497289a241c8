"""
Job transitioned domain event.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from techmarket.domain.value_objects.job_status import JobStatus, TimeoutReason


@dataclass
class JobTransitioned:
    """Event raised after a job status change is committed."""

    job_id: UUID
    job_number: str
    from_status: JobStatus
    to_status: JobStatus
    occurred_at: datetime
    actor_id: Optional[UUID] = None
    timeout_reason: Optional[TimeoutReason] = None
    metadata: dict = field(default_factory=dict)

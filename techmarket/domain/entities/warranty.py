"""
Warranty record and dispute entities.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from techmarket.domain.exceptions.validation_error import InvalidFieldError
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.warranty_status import (
    DisputeResolution,
    DisputeStatus,
    WarrantyStatus,
)


@dataclass
class WarrantyRecord:
    """A post-completion issue report against a job."""

    job_id: UUID
    description: str
    id: UUID = field(default_factory=uuid4)
    status: WarrantyStatus = WarrantyStatus.ISSUE_REPORTED
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc)

    def resolve(self, now: datetime) -> None:
        if not self.status.blocks_release():
            raise InvalidFieldError("status", "warranty issue is already resolved")
        self.status = WarrantyStatus.RESOLVED
        self.resolved_at = now


@dataclass
class Dispute:
    """A dispute raised by either party on a job."""

    job_id: UUID
    raised_by: UUID
    raised_by_role: ActorRole
    description: str
    id: UUID = field(default_factory=uuid4)
    status: DisputeStatus = DisputeStatus.OPEN
    resolution: Optional[DisputeResolution] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.description or not self.description.strip():
            raise InvalidFieldError("description", "dispute needs a description")
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc)

    @property
    def is_open(self) -> bool:
        return self.status == DisputeStatus.OPEN

    def resolve(self, resolution: DisputeResolution, now: datetime) -> None:
        if not self.is_open:
            raise InvalidFieldError("status", "dispute is already resolved")
        self.status = DisputeStatus.RESOLVED
        self.resolution = resolution
        self.resolved_at = now

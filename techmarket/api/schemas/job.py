"""
Job-related API schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import (
    ClosureReason,
    JobStatus,
    TimeoutReason,
)
from techmarket.domain.value_objects.payment import PaymentMethod

from .common import TimestampMixin

PRIORITIES = ("LOW", "NORMAL", "HIGH", "URGENT")


class JobCreateRequest(BaseModel):
    """Job creation request schema. The dealer is the calling actor."""

    title: str = Field(..., max_length=255)
    description: str = Field(..., max_length=5000)
    work_details: str = Field(..., max_length=5000)
    customer_name: str = Field(..., max_length=255)
    customer_phone: str = Field(..., max_length=20)
    street: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    pincode: str = Field(..., max_length=10)
    service_domain_id: str = Field(..., max_length=64)
    service_category_id: str = Field(..., max_length=64)
    service_sub_category_id: str = Field(..., max_length=64)
    skill_id: Optional[str] = Field(None, max_length=64)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    priority: str = Field("NORMAL", description="One of LOW, NORMAL, HIGH, URGENT")
    scheduled_at: Optional[datetime] = None
    estimated_duration_hours: Optional[float] = Field(None, gt=0)
    estimated_price: Optional[Decimal] = Field(None, description="Dealer's gross price")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        v = (v or "NORMAL").upper()
        if v not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}")
        return v


class JobResponse(TimestampMixin):
    """Job as seen by the caller; redacted fields come back as null."""

    id: UUID
    job_number: str
    status: JobStatus
    title: str
    description: Optional[str] = None
    work_details: Optional[str] = None
    service_domain_id: Optional[str] = None
    service_category_id: Optional[str] = None
    service_sub_category_id: Optional[str] = None
    skill_id: Optional[str] = None
    priority: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    street: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    estimated_duration_hours: Optional[float] = None
    estimated_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    net_amount: Optional[Decimal] = Field(
        None, description="Gross minus platform commission, technicians only"
    )
    price_locked: bool = False
    warranty_days: Optional[int] = None
    dealer_id: UUID
    technician_id: Optional[UUID] = None
    soft_lock_expires_at: Optional[datetime] = None
    payment_deadline_at: Optional[datetime] = None
    negotiation_expires_at: Optional[datetime] = None
    offer_amount: Optional[Decimal] = None
    offer_by: Optional[ActorRole] = None
    negotiation_rounds: int = 0
    payment_method: Optional[PaymentMethod] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    repost_count: int = 0
    max_reposts: int = 0
    timeout_reasons: List[TimeoutReason] = Field(default_factory=list)
    closure_reason: Optional[ClosureReason] = None
    permanently_rejected: bool = False
    status_note: Optional[str] = None
    dealer: Optional[Dict[str, Any]] = None
    technician: Optional[Dict[str, Any]] = None


class JobPostedResponse(BaseModel):
    """Created job plus how many technicians were notified."""

    job: JobResponse
    notified_technicians: int = 0

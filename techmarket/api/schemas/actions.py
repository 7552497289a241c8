"""
Request and response schemas for lifecycle actions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod
from techmarket.domain.value_objects.warranty_status import (
    DisputeResolution,
    DisputeStatus,
    WarrantyStatus,
)

from .common import TimestampMixin
from .job import JobResponse


class CounterOfferRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Proposed gross amount")


class RespondOfferRequest(BaseModel):
    accept: bool


class LockPaymentRequest(BaseModel):
    """Escrow payment capture."""

    method: PaymentMethod
    proof: Optional[str] = Field(
        None, max_length=255, description="Receipt or reference, required for cash"
    )
    amount: Optional[Decimal] = Field(None, gt=0)


class VerifyOtpRequest(BaseModel):
    otp: str = Field(..., min_length=1, max_length=12)


class ApproveJobRequest(BaseModel):
    """Dealer approval. Everything is optional and falls back to job data."""

    total_amount: Optional[Decimal] = Field(None, description="Overrides the final price")
    hold_percentage: Optional[Decimal] = Field(
        None, description="Overrides the risk-based warranty hold, 0 to 100"
    )
    warranty_days: Optional[int] = Field(None, ge=0)
    payment_method: Optional[PaymentMethod] = None


class ReasonRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class DescriptionRequest(BaseModel):
    description: str = Field(..., max_length=5000)


class DisputeResolveRequest(BaseModel):
    resolution: DisputeResolution


class PaymentSplitResponse(BaseModel):
    id: UUID
    job_id: UUID
    total_amount: Decimal
    hold_percentage: Decimal
    held_amount: Decimal
    released_amount: Decimal
    warranty_days: int
    payment_method: PaymentMethod
    hold_status: HoldStatus
    hold_release_at: datetime


class RiskAssessmentResponse(BaseModel):
    technician_risk: float
    dealer_risk: float
    job_risk: float
    recommended_hold_percentage: int
    auto_release_eligible: bool
    actions: list[str] = Field(default_factory=list)


class ApprovalResponse(BaseModel):
    job: JobResponse
    split: PaymentSplitResponse
    risk: Optional[RiskAssessmentResponse] = None


class DisputeResponse(TimestampMixin):
    id: UUID
    job_id: UUID
    raised_by: UUID
    raised_by_role: ActorRole
    description: str
    status: DisputeStatus
    resolution: Optional[DisputeResolution] = None
    resolved_at: Optional[datetime] = None


class WarrantyRecordResponse(TimestampMixin):
    id: UUID
    job_id: UUID
    description: str
    status: WarrantyStatus
    resolved_at: Optional[datetime] = None

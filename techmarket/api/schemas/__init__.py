"""
API schemas for the technician marketplace service.
"""

from .actions import (
    ApprovalResponse,
    ApproveJobRequest,
    CounterOfferRequest,
    DescriptionRequest,
    DisputeResolveRequest,
    DisputeResponse,
    LockPaymentRequest,
    PaymentSplitResponse,
    ReasonRequest,
    RespondOfferRequest,
    RiskAssessmentResponse,
    VerifyOtpRequest,
    WarrantyRecordResponse,
)
from .common import ErrorResponse
from .job import JobCreateRequest, JobPostedResponse, JobResponse
from .risk import DealerRiskResponse, JobRiskResponse, TechnicianRiskResponse

__all__ = [
    "ApprovalResponse",
    "ApproveJobRequest",
    "CounterOfferRequest",
    "DealerRiskResponse",
    "DescriptionRequest",
    "DisputeResolveRequest",
    "DisputeResponse",
    "ErrorResponse",
    "JobCreateRequest",
    "JobPostedResponse",
    "JobResponse",
    "JobRiskResponse",
    "LockPaymentRequest",
    "PaymentSplitResponse",
    "ReasonRequest",
    "RespondOfferRequest",
    "RiskAssessmentResponse",
    "TechnicianRiskResponse",
    "VerifyOtpRequest",
    "WarrantyRecordResponse",
]

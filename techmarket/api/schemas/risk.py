"""
Risk and reliability schemas.
"""

from uuid import UUID

from pydantic import BaseModel

from .actions import RiskAssessmentResponse


class TechnicianRiskResponse(BaseModel):
    technician_id: UUID
    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    warranty_complaints: int
    dispute_count: int
    average_rating: float
    completion_rate: float
    cancellation_rate: float
    warranty_complaint_rate: float
    dispute_rate: float
    on_time_completion_rate: float
    response_time_avg_hours: float
    risk_score: float


class DealerRiskResponse(BaseModel):
    dealer_id: UUID
    total_jobs_posted: int
    dispute_frequency: float
    payment_delay_rate: float
    cash_payment_frequency: float
    complaint_frequency: float
    risk_score: float


class JobRiskResponse(RiskAssessmentResponse):
    job_id: UUID

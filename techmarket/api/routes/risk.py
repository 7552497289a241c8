"""
Reliability and risk endpoints, for admins.
"""

from uuid import UUID

from fastapi import APIRouter

from techmarket.api.dependencies import AdminActorDep, JobRepositoryDep, RiskEngineDep
from techmarket.api.schemas.risk import (
    DealerRiskResponse,
    JobRiskResponse,
    TechnicianRiskResponse,
)
from techmarket.application.services.risk_engine import score_dealer, score_technician
from techmarket.domain.exceptions.not_found_error import JobNotFoundError
from techmarket.domain.exceptions.validation_error import RequiredFieldError

router = APIRouter(prefix="/risk", tags=["risk"])


@router.get("/technicians/{technician_id}", response_model=TechnicianRiskResponse)
async def technician_risk(
    technician_id: UUID, actor: AdminActorDep, risk_engine: RiskEngineDep
):
    metrics = await risk_engine.technician_reliability(technician_id)
    return TechnicianRiskResponse(
        technician_id=technician_id,
        total_jobs=metrics.total_jobs,
        completed_jobs=metrics.completed_jobs,
        cancelled_jobs=metrics.cancelled_jobs,
        warranty_complaints=metrics.warranty_complaints,
        dispute_count=metrics.dispute_count,
        average_rating=metrics.average_rating,
        completion_rate=metrics.completion_rate,
        cancellation_rate=metrics.cancellation_rate,
        warranty_complaint_rate=metrics.warranty_complaint_rate,
        dispute_rate=metrics.dispute_rate,
        on_time_completion_rate=metrics.on_time_completion_rate,
        response_time_avg_hours=metrics.response_time_avg_hours,
        risk_score=score_technician(metrics),
    )


@router.get("/dealers/{dealer_id}", response_model=DealerRiskResponse)
async def dealer_risk(dealer_id: UUID, actor: AdminActorDep, risk_engine: RiskEngineDep):
    metrics = await risk_engine.dealer_reliability(dealer_id)
    return DealerRiskResponse(
        dealer_id=dealer_id,
        total_jobs_posted=metrics.total_jobs_posted,
        dispute_frequency=metrics.dispute_frequency,
        payment_delay_rate=metrics.payment_delay_rate,
        cash_payment_frequency=metrics.cash_payment_frequency,
        complaint_frequency=metrics.complaint_frequency,
        risk_score=score_dealer(metrics),
    )


@router.get("/jobs/{job_id}", response_model=JobRiskResponse)
async def job_risk(
    job_id: UUID,
    actor: AdminActorDep,
    risk_engine: RiskEngineDep,
    job_repository: JobRepositoryDep,
):
    """Combined risk for an assigned job and the warranty hold it would get."""
    job = await job_repository.get_by_id(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    if job.technician_id is None:
        raise RequiredFieldError("technician_id")

    assessment = await risk_engine.analyze(job, job.technician_id, job.dealer_id)
    return JobRiskResponse(
        job_id=job.id,
        technician_risk=assessment.technician_risk,
        dealer_risk=assessment.dealer_risk,
        job_risk=assessment.job_risk,
        recommended_hold_percentage=assessment.recommended_hold_percentage,
        auto_release_eligible=assessment.auto_release_eligible,
        actions=list(assessment.actions),
    )

"""
Job management endpoints.

Domain exceptions propagate to the handlers in ``middleware.error_handler``.
"""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from techmarket.api.dependencies import (
    Actor,
    ActorDep,
    DealerActorDep,
    EscrowManagerDep,
    LifecycleControllerDep,
    ListJobsUseCaseDep,
    PostJobUseCaseDep,
    TechnicianActorDep,
)
from techmarket.api.schemas.actions import (
    ApprovalResponse,
    ApproveJobRequest,
    CounterOfferRequest,
    DescriptionRequest,
    DisputeResponse,
    LockPaymentRequest,
    PaymentSplitResponse,
    ReasonRequest,
    RespondOfferRequest,
    RiskAssessmentResponse,
    VerifyOtpRequest,
    WarrantyRecordResponse,
)
from techmarket.api.schemas.job import JobCreateRequest, JobPostedResponse, JobResponse
from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.job_privacy import job_view
from techmarket.application.use_cases.list_jobs import ListJobsRequest
from techmarket.application.use_cases.post_job import PostJobRequest
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.value_objects.job_status import JobStatus

logger = get_logger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


def _job_response(job: Job, actor: Actor, escrow_manager: EscrowManager) -> JobResponse:
    return JobResponse(
        **job_view(
            job,
            actor.role,
            actor_id=actor.id,
            net_amount_for=escrow_manager.technician_net_amount,
        )
    )


@router.post("/", response_model=JobPostedResponse, status_code=status.HTTP_201_CREATED)
async def post_job(
    job_data: JobCreateRequest,
    actor: DealerActorDep,
    use_case: PostJobUseCaseDep,
    escrow_manager: EscrowManagerDep,
):
    """Post a new job and notify matching technicians."""
    result = await use_case.execute(
        PostJobRequest(dealer_id=actor.id, **job_data.model_dump())
    )

    logger.info(
        "Job created successfully",
        job_id=str(result.job.id),
        job_number=result.job.job_number,
        notified_technicians=len(result.candidates),
    )
    return JobPostedResponse(
        job=_job_response(result.job, actor, escrow_manager),
        notified_technicians=len(result.candidates),
    )


@router.get("/", response_model=List[JobResponse])
async def list_jobs(
    actor: ActorDep,
    use_case: ListJobsUseCaseDep,
    status_filter: Annotated[Optional[List[JobStatus]], Query(alias="status")] = None,
    available: bool = False,
    limit: Annotated[int, Query(ge=1, le=500)] = 200,
):
    """Jobs visible to the caller. Technicians pass ``available=true`` for the open pool."""
    views = await use_case.execute(
        ListJobsRequest(
            role=actor.role,
            actor_id=actor.id,
            statuses=status_filter,
            available=available,
            limit=limit,
        )
    )
    return [JobResponse(**view) for view in views]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: UUID, actor: ActorDep, use_case: ListJobsUseCaseDep):
    view = await use_case.get_one(job_id, actor.role, actor.id)
    return JobResponse(**view)


# Soft lock and negotiation


@router.post("/{job_id}/accept", response_model=JobResponse)
async def accept_job(
    job_id: UUID,
    actor: TechnicianActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Soft-lock the job for the calling technician; 409 if someone got there first."""
    job = await controller.accept_job(job_id, actor.id)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/confirm", response_model=JobResponse)
async def confirm_soft_lock(
    job_id: UUID,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.confirm_soft_lock(job_id, actor.id)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/reset-timer", response_model=JobResponse)
async def reset_soft_lock_timer(
    job_id: UUID,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Restart the soft-lock window once per lock, e.g. on a dealer page load."""
    job = await controller.reset_soft_lock_timer(job_id, actor.id)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/counter-offer", response_model=JobResponse)
async def propose_counter_offer(
    job_id: UUID,
    offer: CounterOfferRequest,
    actor: ActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.propose_counter_offer(job_id, actor.id, actor.role, offer.amount)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/respond-offer", response_model=JobResponse)
async def respond_to_offer(
    job_id: UUID,
    response: RespondOfferRequest,
    actor: ActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.respond_to_offer(job_id, actor.id, actor.role, response.accept)
    return _job_response(job, actor, escrow_manager)


# Payment and execution


@router.post("/{job_id}/lock-payment", response_model=JobResponse)
async def lock_payment(
    job_id: UUID,
    payment: LockPaymentRequest,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.lock_payment(
        job_id, actor.id, payment.method, proof=payment.proof, amount=payment.amount
    )
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/start", response_model=JobResponse)
async def start_job(
    job_id: UUID,
    actor: TechnicianActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.start_job(job_id, actor.id)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/otp", response_model=JobResponse)
async def issue_completion_otp(
    job_id: UUID,
    actor: TechnicianActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Text a completion code to the customer."""
    job = await controller.issue_completion_otp(job_id, actor.id, actor.role)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/otp/resend", response_model=JobResponse)
async def resend_otp(
    job_id: UUID,
    actor: TechnicianActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.resend_otp(job_id, actor.id, actor.role)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/otp/verify", response_model=JobResponse)
async def verify_completion_otp(
    job_id: UUID,
    body: VerifyOtpRequest,
    actor: TechnicianActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Submit the customer's code; a wrong code answers 400 with ``resend_available``."""
    job = await controller.verify_completion_otp(job_id, body.otp)
    return _job_response(job, actor, escrow_manager)


# Approval and closure


@router.post("/{job_id}/approve", response_model=ApprovalResponse)
async def approve_job(
    job_id: UUID,
    approval: ApproveJobRequest,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Complete the job and split the payment into released and warranty-held parts."""
    result = await controller.approve_job(
        job_id,
        actor.id,
        total_amount=approval.total_amount,
        hold_percentage=approval.hold_percentage,
        warranty_days=approval.warranty_days,
        payment_method=approval.payment_method,
    )

    logger.info(
        "Job approved",
        job_id=str(job_id),
        held_amount=str(result.split.held_amount),
        released_amount=str(result.split.released_amount),
    )
    return ApprovalResponse(
        job=_job_response(result.job, actor, escrow_manager),
        split=PaymentSplitResponse.model_validate(result.split, from_attributes=True),
        risk=(
            RiskAssessmentResponse.model_validate(result.assessment, from_attributes=True)
            if result.assessment
            else None
        ),
    )


@router.post("/{job_id}/reject-completion", response_model=JobResponse)
async def reject_completion(
    job_id: UUID,
    body: ReasonRequest,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.reject_completion(job_id, actor.id, body.reason)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/repost", response_model=JobResponse)
async def repost_job(
    job_id: UUID,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    """Return the job to the pool; 410 once the repost limit closes it."""
    job = await controller.repost_job(job_id, actor.id)
    return _job_response(job, actor, escrow_manager)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: UUID,
    body: ReasonRequest,
    actor: DealerActorDep,
    controller: LifecycleControllerDep,
    escrow_manager: EscrowManagerDep,
):
    job = await controller.cancel_job(job_id, actor.id, body.reason)
    return _job_response(job, actor, escrow_manager)


# Disputes and warranty


@router.post(
    "/{job_id}/disputes",
    response_model=DisputeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def raise_dispute(
    job_id: UUID,
    body: DescriptionRequest,
    actor: ActorDep,
    controller: LifecycleControllerDep,
):
    dispute = await controller.raise_dispute(job_id, actor.id, actor.role, body.description)
    return DisputeResponse.model_validate(dispute, from_attributes=True)


@router.post(
    "/{job_id}/warranty-issues",
    response_model=WarrantyRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_warranty_issue(
    job_id: UUID,
    body: DescriptionRequest,
    actor: ActorDep,
    controller: LifecycleControllerDep,
):
    """Report a problem inside the warranty window; this gates the hold release."""
    record = await controller.report_warranty_issue(
        job_id, actor.id, actor.role, body.description
    )
    return WarrantyRecordResponse.model_validate(record, from_attributes=True)

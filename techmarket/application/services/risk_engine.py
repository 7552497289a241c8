"""
Risk Engine: reliability metrics, risk scores and escrow hold policy.

Metrics are pure aggregations over immutable job history. Nothing here
writes state; callers decide what to do with the recommendation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from techmarket.application.interfaces.repositories import (
    DealerRepositoryInterface,
    JobHistoryRepositoryInterface,
    TechnicianRepositoryInterface,
)
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.taxonomy import JobHistoryRecord
from techmarket.domain.exceptions.not_found_error import (
    DealerNotFoundError,
    TechnicianNotFoundError,
)
from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod

logger = get_logger(__name__)

ON_TIME_GRACE = timedelta(hours=2)
PAYMENT_DELAY_GRACE = timedelta(hours=24)

ACTION_MANUAL_APPROVAL = "Consider manual approval before release"
ACTION_HOLD_40 = "Increase warranty hold percentage to 40%"
ACTION_MONITOR = "Monitor closely during warranty period"
ACTION_HOLD_30 = "Increase warranty hold percentage to 30%"
ACTION_TECHNICIAN_RISK = "Technician has elevated risk profile"
ACTION_DEALER_RISK = "Dealer has elevated dispute/complaint frequency"
ACTION_AUTO_RELEASE = "Low risk - eligible for auto-release after warranty period"


@dataclass(frozen=True)
class TechnicianReliability:
    """Technician reliability metrics. Rates are percentages."""

    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    warranty_complaints: int
    dispute_count: int
    average_rating: float
    on_time_completion_rate: float
    response_time_avg_hours: float

    @property
    def completion_rate(self) -> float:
        if self.total_jobs == 0:
            return 100.0
        return self.completed_jobs / self.total_jobs * 100

    @property
    def cancellation_rate(self) -> float:
        return _percent(self.cancelled_jobs, self.total_jobs)

    @property
    def warranty_complaint_rate(self) -> float:
        return _percent(self.warranty_complaints, self.total_jobs)

    @property
    def dispute_rate(self) -> float:
        return _percent(self.dispute_count, self.total_jobs)


@dataclass(frozen=True)
class DealerReliability:
    """Dealer reliability metrics.

    ``dispute_frequency`` and ``complaint_frequency`` are per job; the
    payment rates are percentages of captured payments.
    """

    total_jobs_posted: int
    dispute_frequency: float
    payment_delay_rate: float
    cash_payment_frequency: float
    complaint_frequency: float


@dataclass
class RiskAssessment:
    """Risk scores for one job and the hold recommendation derived from them."""

    technician_risk: float
    dealer_risk: float
    job_risk: float
    recommended_hold_percentage: int
    actions: List[str] = field(default_factory=list)

    @property
    def auto_release_eligible(self) -> bool:
        return self.job_risk < 15


@dataclass(frozen=True)
class SlaViolation:
    job_id: UUID
    message: str


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def compute_technician_reliability(
    history: Sequence[JobHistoryRecord], rating: Optional[float]
) -> TechnicianReliability:
    """Aggregate the jobs a technician was assigned to."""
    total = len(history)
    completed = sum(1 for record in history if record.status == JobStatus.COMPLETED)
    cancelled = sum(1 for record in history if record.status == JobStatus.CANCELLED)

    on_time = sum(
        1
        for record in history
        if record.completed_at
        and record.scheduled_at
        and record.completed_at <= record.scheduled_at + ON_TIME_GRACE
    )
    on_time_rate = on_time / total * 100 if total > 0 else 100.0

    response_hours = [
        (record.started_at - record.assigned_at).total_seconds() / 3600
        for record in history
        if record.assigned_at and record.started_at
    ]
    response_avg = sum(response_hours) / len(response_hours) if response_hours else 0.0

    return TechnicianReliability(
        total_jobs=total,
        completed_jobs=completed,
        cancelled_jobs=cancelled,
        warranty_complaints=sum(record.warranty_issue_count for record in history),
        dispute_count=sum(record.dispute_count for record in history),
        average_rating=rating or 0.0,
        on_time_completion_rate=on_time_rate,
        response_time_avg_hours=response_avg,
    )


def compute_dealer_reliability(history: Sequence[JobHistoryRecord]) -> DealerReliability:
    """Aggregate the jobs a dealer posted."""
    total = len(history)
    disputes = sum(record.dispute_count for record in history)
    complaints = sum(record.warranty_issue_count for record in history)

    payments = [record for record in history if record.payment_captured_at is not None]
    # the payout is settled when the dealer approves a verified completion
    delayed = sum(
        1
        for record in payments
        if record.completion_requested_at
        and record.completed_at
        and record.completed_at > record.completion_requested_at + PAYMENT_DELAY_GRACE
    )
    cash = sum(1 for record in payments if record.payment_method == PaymentMethod.CASH)

    return DealerReliability(
        total_jobs_posted=total,
        dispute_frequency=disputes / total if total > 0 else 0.0,
        payment_delay_rate=_percent(delayed, len(payments)),
        cash_payment_frequency=_percent(cash, len(payments)),
        complaint_frequency=complaints / total if total > 0 else 0.0,
    )


def score_technician(metrics: TechnicianReliability) -> float:
    """Additive risk points for a technician, capped at 100."""
    score = 0

    if metrics.completion_rate < 80:
        score += 30
    elif metrics.completion_rate < 90:
        score += 15

    if metrics.cancellation_rate > 20:
        score += 20
    elif metrics.cancellation_rate > 10:
        score += 10

    if metrics.warranty_complaint_rate > 10:
        score += 25
    elif metrics.warranty_complaint_rate > 5:
        score += 15

    if metrics.dispute_rate > 15:
        score += 20
    elif metrics.dispute_rate > 8:
        score += 10

    if metrics.average_rating < 4.0:
        score += 15
    elif metrics.average_rating < 4.5:
        score += 8

    if metrics.on_time_completion_rate < 70:
        score += 10

    if metrics.response_time_avg_hours > 24:
        score += 10

    return float(min(score, 100))


def score_dealer(metrics: DealerReliability) -> float:
    """Additive risk points for a dealer, capped at 100."""
    score = 0

    if metrics.dispute_frequency > 0.2:
        score += 30
    elif metrics.dispute_frequency > 0.1:
        score += 15

    if metrics.payment_delay_rate > 30:
        score += 25
    elif metrics.payment_delay_rate > 15:
        score += 12

    if metrics.cash_payment_frequency > 50:
        score += 20
    elif metrics.cash_payment_frequency > 25:
        score += 10

    if metrics.complaint_frequency > 0.3:
        score += 25
    elif metrics.complaint_frequency > 0.15:
        score += 12

    return float(min(score, 100))


def recommended_hold_percentage(job_risk: float) -> int:
    """Hold percentage for a job risk score; non-decreasing in risk."""
    if job_risk >= 70:
        return 40
    if job_risk >= 50:
        return 30
    if job_risk >= 30:
        return 25
    if job_risk < 15:
        return 15
    return 20


def recommended_actions(
    technician_risk: float, dealer_risk: float, job_risk: float
) -> List[str]:
    actions = []
    if job_risk >= 70:
        actions.extend([ACTION_MANUAL_APPROVAL, ACTION_HOLD_40])
    elif job_risk >= 50:
        actions.extend([ACTION_MONITOR, ACTION_HOLD_30])
    if technician_risk >= 50:
        actions.append(ACTION_TECHNICIAN_RISK)
    if dealer_risk >= 50:
        actions.append(ACTION_DEALER_RISK)
    if job_risk < 15:
        actions.append(ACTION_AUTO_RELEASE)
    return actions


def assess(technician_risk: float, dealer_risk: float) -> RiskAssessment:
    job_risk = min((technician_risk + dealer_risk) / 2, 100.0)
    return RiskAssessment(
        technician_risk=technician_risk,
        dealer_risk=dealer_risk,
        job_risk=job_risk,
        recommended_hold_percentage=recommended_hold_percentage(job_risk),
        actions=recommended_actions(technician_risk, dealer_risk, job_risk),
    )


def check_sla(
    job: Job,
    now: Optional[datetime] = None,
    start_hours: int = 24,
    duration_multiplier: float = 1.5,
) -> List[SlaViolation]:
    """Flag a late start or an overrunning job."""
    now = now or datetime.now(timezone.utc)
    violations = []

    if job.status == JobStatus.ASSIGNED and job.assigned_at:
        hours_since_assignment = (now - job.assigned_at).total_seconds() / 3600
        if hours_since_assignment > start_hours:
            violations.append(
                SlaViolation(
                    job_id=job.id,
                    message=(
                        f"Technician has not started job within {start_hours} hours "
                        "of assignment"
                    ),
                )
            )

    if (
        job.status == JobStatus.IN_PROGRESS
        and job.started_at
        and job.estimated_duration_hours
    ):
        hours_since_start = (now - job.started_at).total_seconds() / 3600
        if hours_since_start > job.estimated_duration_hours * duration_multiplier:
            violations.append(
                SlaViolation(
                    job_id=job.id,
                    message=(
                        f"Job taking {hours_since_start:.1f} hours, "
                        f"estimated {job.estimated_duration_hours:g} hours"
                    ),
                )
            )

    return violations


class RiskEngine:
    """Loads history through repositories and applies the scoring tables."""

    def __init__(
        self,
        history_repo: JobHistoryRepositoryInterface,
        technician_repo: TechnicianRepositoryInterface,
        dealer_repo: DealerRepositoryInterface,
    ):
        self.history_repo = history_repo
        self.technician_repo = technician_repo
        self.dealer_repo = dealer_repo
        self.logger = logger

    async def technician_reliability(self, technician_id: UUID) -> TechnicianReliability:
        technician = await self.technician_repo.get_by_id(technician_id)
        if technician is None:
            raise TechnicianNotFoundError(technician_id)
        history = await self.history_repo.get_technician_history(technician_id)
        return compute_technician_reliability(history, technician.rating)

    async def dealer_reliability(self, dealer_id: UUID) -> DealerReliability:
        dealer = await self.dealer_repo.get_by_id(dealer_id)
        if dealer is None:
            raise DealerNotFoundError(dealer_id)
        history = await self.history_repo.get_dealer_history(dealer_id)
        return compute_dealer_reliability(history)

    async def analyze(self, job: Job, technician_id: UUID, dealer_id: UUID) -> RiskAssessment:
        """Score a job for its technician and dealer."""
        technician_metrics = await self.technician_reliability(technician_id)
        dealer_metrics = await self.dealer_reliability(dealer_id)

        assessment = assess(
            score_technician(technician_metrics), score_dealer(dealer_metrics)
        )

        self.logger.info(
            "Job risk analysed",
            job_id=str(job.id),
            technician_id=str(technician_id),
            dealer_id=str(dealer_id),
            technician_risk=assessment.technician_risk,
            dealer_risk=assessment.dealer_risk,
            job_risk=assessment.job_risk,
            recommended_hold_percentage=assessment.recommended_hold_percentage,
        )
        return assessment

"""
Unit tests for reliability metrics, risk scoring and SLA checks.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from techmarket.application.services.risk_engine import (
    ACTION_AUTO_RELEASE,
    ACTION_DEALER_RISK,
    ACTION_HOLD_30,
    ACTION_HOLD_40,
    ACTION_MANUAL_APPROVAL,
    ACTION_MONITOR,
    ACTION_TECHNICIAN_RISK,
    DealerReliability,
    TechnicianReliability,
    assess,
    check_sla,
    compute_dealer_reliability,
    compute_technician_reliability,
    recommended_hold_percentage,
    score_dealer,
    score_technician,
)
from techmarket.domain.entities.taxonomy import JobHistoryRecord
from techmarket.domain.exceptions.not_found_error import TechnicianNotFoundError
from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod


def _record(status=JobStatus.COMPLETED, **kwargs) -> JobHistoryRecord:
    return JobHistoryRecord(job_id=uuid4(), status=status, **kwargs)


class TestTechnicianReliability:
    def test_empty_history_is_clean(self):
        metrics = compute_technician_reliability([], rating=4.8)

        assert metrics.total_jobs == 0
        assert metrics.completion_rate == 100.0
        assert metrics.on_time_completion_rate == 100.0
        assert score_technician(metrics) == 0.0

    def test_missing_rating_counts_as_zero(self):
        metrics = compute_technician_reliability([], rating=None)
        assert metrics.average_rating == 0.0
        assert score_technician(metrics) == 15.0

    def test_aggregates_history(self, now):
        history = [
            _record(
                scheduled_at=now,
                completed_at=now + timedelta(hours=1),
                assigned_at=now - timedelta(hours=4),
                started_at=now - timedelta(hours=2),
                warranty_issue_count=1,
            ),
            _record(
                scheduled_at=now,
                completed_at=now + timedelta(hours=3),
                dispute_count=2,
            ),
            _record(status=JobStatus.CANCELLED),
        ]

        metrics = compute_technician_reliability(history, rating=4.6)

        assert metrics.total_jobs == 3
        assert metrics.completed_jobs == 2
        assert metrics.cancelled_jobs == 1
        assert metrics.warranty_complaints == 1
        assert metrics.dispute_count == 2
        assert metrics.on_time_completion_rate == pytest.approx(100 / 3)
        assert metrics.response_time_avg_hours == pytest.approx(2.0)

    def test_score_adds_points_per_table(self):
        metrics = TechnicianReliability(
            total_jobs=20,
            completed_jobs=17,
            cancelled_jobs=3,
            warranty_complaints=2,
            dispute_count=2,
            average_rating=4.2,
            on_time_completion_rate=80.0,
            response_time_avg_hours=30.0,
        )
        # 15 completion + 10 cancellation + 15 warranty + 10 dispute + 8 rating + 10 response
        assert score_technician(metrics) == 68.0

    def test_score_capped_at_100(self):
        metrics = TechnicianReliability(
            total_jobs=10,
            completed_jobs=5,
            cancelled_jobs=5,
            warranty_complaints=5,
            dispute_count=5,
            average_rating=2.0,
            on_time_completion_rate=10.0,
            response_time_avg_hours=48.0,
        )
        assert score_technician(metrics) == 100.0


class TestDealerReliability:
    def test_aggregates_payments(self, now):
        history = [
            _record(
                completion_requested_at=now,
                completed_at=now + timedelta(hours=30),
                payment_captured_at=now - timedelta(hours=5),
                payment_method=PaymentMethod.CASH,
                dispute_count=1,
            ),
            _record(
                completion_requested_at=now,
                completed_at=now + timedelta(hours=1),
                payment_captured_at=now - timedelta(hours=5),
                payment_method=PaymentMethod.ONLINE,
                warranty_issue_count=1,
            ),
            _record(status=JobStatus.PENDING),
            _record(status=JobStatus.CANCELLED),
        ]

        metrics = compute_dealer_reliability(history)

        assert metrics.total_jobs_posted == 4
        assert metrics.dispute_frequency == pytest.approx(0.25)
        assert metrics.complaint_frequency == pytest.approx(0.25)
        assert metrics.payment_delay_rate == pytest.approx(50.0)
        assert metrics.cash_payment_frequency == pytest.approx(50.0)

    def test_score(self):
        metrics = DealerReliability(
            total_jobs_posted=10,
            dispute_frequency=0.15,
            payment_delay_rate=20.0,
            cash_payment_frequency=60.0,
            complaint_frequency=0.2,
        )
        assert score_dealer(metrics) == 59.0

    def test_no_history_scores_zero(self):
        assert score_dealer(compute_dealer_reliability([])) == 0.0


class TestHoldPolicy:
    @pytest.mark.parametrize(
        "job_risk,expected",
        [(0, 15), (14.9, 15), (15, 20), (29.9, 20), (30, 25), (50, 30), (69.9, 30), (70, 40), (100, 40)],
    )
    def test_hold_table(self, job_risk, expected):
        assert recommended_hold_percentage(job_risk) == expected

    def test_hold_never_decreases_with_risk(self):
        holds = [recommended_hold_percentage(risk / 2) for risk in range(0, 201)]
        assert holds == sorted(holds)

    def test_assess_averages_and_recommends(self):
        assessment = assess(68.0, 59.0)

        assert assessment.job_risk == pytest.approx(63.5)
        assert assessment.recommended_hold_percentage == 30
        assert assessment.actions == [
            ACTION_MONITOR,
            ACTION_HOLD_30,
            ACTION_TECHNICIAN_RISK,
            ACTION_DEALER_RISK,
        ]
        assert assessment.auto_release_eligible is False

    def test_high_risk_actions(self):
        assessment = assess(100.0, 60.0)
        assert assessment.recommended_hold_percentage == 40
        assert assessment.actions[:2] == [ACTION_MANUAL_APPROVAL, ACTION_HOLD_40]

    def test_low_risk_is_auto_release_eligible(self):
        assessment = assess(10.0, 0.0)
        assert assessment.recommended_hold_percentage == 15
        assert assessment.auto_release_eligible is True
        assert assessment.actions == [ACTION_AUTO_RELEASE]


class TestCheckSla:
    def test_late_start(self, make_job, now):
        job = make_job(status=JobStatus.ASSIGNED, assigned_at=now - timedelta(hours=25))
        violations = check_sla(job, now)
        assert len(violations) == 1
        assert "within 24 hours" in violations[0].message

    def test_overrunning_job(self, make_job, now):
        job = make_job(
            status=JobStatus.IN_PROGRESS,
            started_at=now - timedelta(hours=4),
            estimated_duration_hours=2,
        )
        violations = check_sla(job, now)
        assert len(violations) == 1
        assert violations[0].message == "Job taking 4.0 hours, estimated 2 hours"

    def test_on_track_jobs(self, make_job, now):
        assigned = make_job(status=JobStatus.ASSIGNED, assigned_at=now - timedelta(hours=2))
        no_estimate = make_job(status=JobStatus.IN_PROGRESS, started_at=now - timedelta(days=3))
        assert check_sla(assigned, now) == []
        assert check_sla(no_estimate, now) == []


class TestRiskEngine:
    @pytest.mark.asyncio
    async def test_analyze(self, risk_engine, history_repo, make_job, technician, dealer, now):
        history_repo.technician_history[technician.id] = [
            _record(scheduled_at=now, completed_at=now) for _ in range(5)
        ]
        job = make_job(technician_id=technician.id)

        assessment = await risk_engine.analyze(job, technician.id, dealer.id)

        assert assessment.technician_risk == 0.0
        assert assessment.dealer_risk == 0.0
        assert assessment.recommended_hold_percentage == 15

    @pytest.mark.asyncio
    async def test_unknown_technician(self, risk_engine, make_job, dealer):
        with pytest.raises(TechnicianNotFoundError):
            await risk_engine.analyze(make_job(), uuid4(), dealer.id)

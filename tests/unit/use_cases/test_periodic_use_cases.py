"""
Unit tests for the periodic sweeps: timers, warranty holds and SLA.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from techmarket.application.use_cases.check_sla import CheckSlaUseCase
from techmarket.application.use_cases.release_holds import ReleaseExpiredHoldsUseCase
from techmarket.application.use_cases.sweep_timers import SweepExpiredTimersUseCase
from techmarket.domain.value_objects.job_status import JobStatus, TimeoutReason
from techmarket.domain.value_objects.notification_channel import NotificationChannel
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod


class TestSweepExpiredTimersUseCase:
    @pytest.mark.asyncio
    async def test_applies_lapsed_windows(
        self, controller, job_repo, transaction_service, make_job, dealer, now
    ):
        lapsed = make_job()
        fresh = make_job()
        waiting = make_job()
        for job in (lapsed, fresh, waiting):
            await job_repo.create(job)

        await controller.accept_job(lapsed.id, uuid4(), now - timedelta(minutes=2))
        await controller.accept_job(fresh.id, uuid4(), now)
        await controller.accept_job(waiting.id, uuid4(), now - timedelta(hours=1))
        await controller.confirm_soft_lock(waiting.id, dealer.id, now - timedelta(hours=1))

        sweep = SweepExpiredTimersUseCase(job_repo, controller, transaction_service)
        applied = await sweep.execute(now)

        assert applied == {"soft_lock": 1, "payment_deadline": 1, "negotiation": 0}
        assert job_repo.jobs[lapsed.id].status == JobStatus.PENDING
        assert job_repo.jobs[fresh.id].status == JobStatus.SOFT_LOCKED
        assert job_repo.jobs[waiting.id].timeout_reasons == [
            TimeoutReason.PAYMENT_DEADLINE_TIMEOUT
        ]

    @pytest.mark.asyncio
    async def test_second_sweep_is_a_no_op(
        self, controller, job_repo, transaction_service, make_job, now
    ):
        job = make_job()
        await job_repo.create(job)
        await controller.accept_job(job.id, uuid4(), now - timedelta(minutes=2))
        sweep = SweepExpiredTimersUseCase(job_repo, controller, transaction_service)

        await sweep.execute(now)
        applied = await sweep.execute(now)

        assert applied == {"soft_lock": 0, "payment_deadline": 0, "negotiation": 0}
        assert job_repo.jobs[job.id].timeout_reasons == [TimeoutReason.SOFT_LOCK_TIMEOUT]

    @pytest.mark.asyncio
    async def test_failure_on_one_job_rolls_back_and_continues(
        self, controller, job_repo, transaction_service, make_job, now
    ):
        jobs = [make_job(), make_job()]
        for job in jobs:
            await job_repo.create(job)
            await controller.accept_job(job.id, uuid4(), now - timedelta(minutes=2))

        real_handle_timer = controller.handle_timer
        calls = []

        async def flaky(job_id, kind, at):
            calls.append(job_id)
            if len(calls) == 1:
                raise RuntimeError("db hiccup")
            return await real_handle_timer(job_id, kind, at)

        controller.handle_timer = flaky
        rollbacks_before = transaction_service.rollbacks
        sweep = SweepExpiredTimersUseCase(job_repo, controller, transaction_service)

        applied = await sweep.execute(now)

        assert applied["soft_lock"] == 1
        assert len(calls) == 2
        assert transaction_service.rollbacks == rollbacks_before + 1


class TestReleaseExpiredHoldsUseCase:
    @pytest.mark.asyncio
    async def test_releases_due_holds_in_one_transaction(
        self, escrow_manager, transaction_service, make_job, now
    ):
        job = make_job(status=JobStatus.COMPLETED, technician_id=uuid4(), completed_at=now)
        await escrow_manager.create_split(job, Decimal("10000"), 20, 10, PaymentMethod.ONLINE, now)

        released = await ReleaseExpiredHoldsUseCase(
            escrow_manager, transaction_service
        ).execute(now + timedelta(days=10))

        assert len(released) == 1
        assert released[0].hold_status == HoldStatus.RELEASED
        assert transaction_service.commits == 1

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, escrow_manager, transaction_service, split_repo, now):
        split_repo.find_due_for_release = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await ReleaseExpiredHoldsUseCase(escrow_manager, transaction_service).execute(now)
        assert transaction_service.rollbacks == 1


class TestCheckSlaUseCase:
    @pytest.mark.asyncio
    async def test_notifies_dealer_by_email(self, job_repo, notifier, make_job, dealer, now):
        late = make_job(status=JobStatus.ASSIGNED, assigned_at=now - timedelta(hours=30))
        on_time = make_job(status=JobStatus.ASSIGNED, assigned_at=now - timedelta(hours=1))
        pending = make_job()
        for job in (late, on_time, pending):
            await job_repo.create(job)

        violations = await CheckSlaUseCase(job_repo, notifier).execute(now)

        assert [v.job_id for v in violations] == [late.id]
        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message["channel"] == NotificationChannel.EMAIL
        assert message["recipient"].user_id == dealer.id
        assert message["data"]["template"] == "sla_violation"
        assert message["data"]["job_number"] == late.job_number

    @pytest.mark.asyncio
    async def test_thresholds_are_configurable(self, job_repo, notifier, make_job, now):
        job = make_job(
            status=JobStatus.IN_PROGRESS,
            started_at=now - timedelta(hours=3, minutes=30),
            estimated_duration_hours=2,
        )
        await job_repo.create(job)

        assert await CheckSlaUseCase(job_repo, notifier, duration_multiplier=2).execute(now) == []
        assert len(await CheckSlaUseCase(job_repo, notifier).execute(now)) == 1

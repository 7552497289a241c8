"""
Unit tests for the Job entity's guarded transitions.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from techmarket.application.services.job_lifecycle import hash_otp
from techmarket.domain.exceptions.job_state_error import (
    InvalidTransitionError,
    JobNoLongerAvailableError,
    OtpMismatch,
)
from techmarket.domain.exceptions.validation_error import (
    InvalidAmount,
    InvalidFieldError,
    RequiredFieldError,
)
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import (
    ClosureReason,
    JobStatus,
    TimeoutReason,
    TimerKind,
)
from techmarket.domain.value_objects.payment import PaymentMethod


class TestJobCreation:
    def test_defaults(self, make_job):
        job = make_job()
        assert job.status == JobStatus.PENDING
        assert job.version == 0
        assert job.max_reposts == 3
        assert job.priority == "NORMAL"
        assert job.created_at is not None
        assert job.updated_at == job.created_at

    def test_job_number_format(self, make_job):
        prefix, millis, suffix = make_job().job_number.split("-")
        assert prefix == "JOB"
        assert millis.isdigit()
        assert len(suffix) == 9

    def test_blank_title_rejected(self, make_job):
        with pytest.raises(RequiredFieldError):
            make_job(title="   ")

    def test_negative_max_reposts_rejected(self, make_job):
        with pytest.raises(InvalidFieldError):
            make_job(max_reposts=-1)


class TestSoftLock:
    def test_first_accept_takes_lock(self, make_job, now):
        job = make_job()
        technician_id = uuid4()

        job.soft_lock(technician_id, now, 45)

        assert job.status == JobStatus.SOFT_LOCKED
        assert job.technician_id == technician_id
        assert job.soft_lock_expires_at == now + timedelta(seconds=45)
        assert job.final_price == Decimal("10000")

    def test_second_accept_rejected_without_changes(self, make_job, now):
        job = make_job()
        first = uuid4()
        job.soft_lock(first, now, 45)

        with pytest.raises(JobNoLongerAvailableError):
            job.soft_lock(uuid4(), now, 45)
        assert job.technician_id == first

    def test_reset_allowed_once_per_lock(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)

        later = now + timedelta(seconds=30)
        assert job.reset_soft_lock(later, 45, max_resets=1) is True
        assert job.soft_lock_expires_at == later + timedelta(seconds=45)
        assert job.reset_soft_lock(later, 45, max_resets=1) is False

    def test_expire_returns_job_to_pool(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)

        assert job.expire(TimerKind.SOFT_LOCK, now + timedelta(seconds=44)) is False
        assert job.expire(TimerKind.SOFT_LOCK, now + timedelta(seconds=45)) is True
        assert job.status == JobStatus.PENDING
        assert job.technician_id is None
        assert job.final_price is None
        assert job.timeout_reasons == [TimeoutReason.SOFT_LOCK_TIMEOUT]

    def test_confirm_locks_price_and_arms_payment_deadline(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)

        job.confirm_soft_lock(now, payment_minutes=30)

        assert job.status == JobStatus.WAITING_FOR_PAYMENT
        assert job.price_locked is True
        assert job.payment_deadline_at == now + timedelta(minutes=30)
        assert job.soft_lock_expires_at is None


class TestNegotiation:
    @pytest.fixture
    def locked_job(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)
        return job

    def test_dealer_opens_negotiation(self, locked_job, now):
        locked_job.propose_offer(Decimal("9000"), ActorRole.DEALER, now, 5, 2)

        assert locked_job.status == JobStatus.NEGOTIATION_PENDING
        assert locked_job.offer_amount == Decimal("9000")
        assert locked_job.negotiation_rounds == 1
        assert locked_job.soft_lock_expires_at is None

    def test_technician_cannot_open_negotiation(self, locked_job, now):
        with pytest.raises(InvalidTransitionError):
            locked_job.propose_offer(Decimal("9000"), ActorRole.TECHNICIAN, now, 5, 2)
        assert locked_job.status == JobStatus.SOFT_LOCKED

    def test_cannot_counter_own_offer(self, locked_job, now):
        locked_job.propose_offer(Decimal("9000"), ActorRole.DEALER, now, 5, 2)
        with pytest.raises(InvalidTransitionError):
            locked_job.propose_offer(Decimal("8500"), ActorRole.DEALER, now, 5, 2)

    def test_round_limit(self, locked_job, now):
        locked_job.propose_offer(Decimal("9000"), ActorRole.DEALER, now, 5, 2)
        locked_job.propose_offer(Decimal("9500"), ActorRole.TECHNICIAN, now, 5, 2)
        with pytest.raises(InvalidTransitionError):
            locked_job.propose_offer(Decimal("9200"), ActorRole.DEALER, now, 5, 2)
        assert locked_job.offer_amount == Decimal("9500")

    def test_non_positive_offer_rejected(self, locked_job, now):
        with pytest.raises(InvalidFieldError):
            locked_job.propose_offer(Decimal("0"), ActorRole.DEALER, now, 5, 2)

    def test_accept_offer_locks_final_price(self, locked_job, now):
        locked_job.propose_offer(Decimal("9000"), ActorRole.DEALER, now, 5, 2)
        locked_job.accept_offer(ActorRole.TECHNICIAN, now, payment_minutes=30)

        assert locked_job.status == JobStatus.WAITING_FOR_PAYMENT
        assert locked_job.final_price == Decimal("9000")
        assert locked_job.price_locked is True

    def test_decline_offer_returns_to_pool(self, locked_job, now):
        locked_job.propose_offer(Decimal("9000"), ActorRole.DEALER, now, 5, 2)
        locked_job.decline_offer(ActorRole.TECHNICIAN, now)

        assert locked_job.status == JobStatus.PENDING
        assert locked_job.technician_id is None
        assert locked_job.offer_amount is None


class TestPaymentAndCompletion:
    @pytest.fixture
    def waiting_job(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)
        job.confirm_soft_lock(now, 30)
        return job

    def test_cash_requires_proof(self, waiting_job, now):
        with pytest.raises(RequiredFieldError):
            waiting_job.lock_payment(PaymentMethod.CASH, now)
        assert waiting_job.status == JobStatus.WAITING_FOR_PAYMENT

    def test_locked_price_cannot_change_at_capture(self, waiting_job, now):
        with pytest.raises(InvalidFieldError):
            waiting_job.lock_payment(PaymentMethod.ONLINE, now, amount=Decimal("12000"))

    def test_lock_payment_assigns(self, waiting_job, now):
        waiting_job.lock_payment(PaymentMethod.CASH, now, proof="receipt-77")

        assert waiting_job.status == JobStatus.ASSIGNED
        assert waiting_job.captured_amount == Decimal("10000")
        assert waiting_job.assigned_at == now
        assert waiting_job.payment_deadline_at is None

    def test_otp_flow(self, waiting_job, now):
        waiting_job.lock_payment(PaymentMethod.ONLINE, now)
        waiting_job.start(now)

        with pytest.raises(OtpMismatch) as exc_info:
            waiting_job.verify_otp(hash_otp("123456"), now)
        assert exc_info.value.reason == "not issued"

        waiting_job.issue_otp(hash_otp("123456"), now + timedelta(minutes=30), now)
        with pytest.raises(OtpMismatch) as exc_info:
            waiting_job.verify_otp(hash_otp("000000"), now)
        assert exc_info.value.reason == "incorrect"
        assert waiting_job.status == JobStatus.IN_PROGRESS

        with pytest.raises(OtpMismatch) as exc_info:
            waiting_job.verify_otp(hash_otp("123456"), now + timedelta(minutes=31))
        assert exc_info.value.reason == "expired"

        waiting_job.verify_otp(hash_otp("123456"), now + timedelta(minutes=5))
        assert waiting_job.status == JobStatus.COMPLETION_PENDING_APPROVAL
        assert waiting_job.completion_otp_hash is None

    def test_resolve_approval_amount_prefers_explicit_then_final(self, make_job):
        job = make_job(estimated_price=None)
        with pytest.raises(InvalidAmount):
            job.resolve_approval_amount()
        assert job.resolve_approval_amount(Decimal("500")) == Decimal("500")

        job.final_price = Decimal("800")
        job.price_locked = True
        assert job.resolve_approval_amount() == Decimal("800")
        with pytest.raises(InvalidFieldError):
            job.resolve_approval_amount(Decimal("900"))


class TestRepost:
    def test_repost_counts_until_limit_then_closes(self, make_job, now):
        job = make_job(max_reposts=2)

        assert job.repost(now) is True
        assert job.repost(now) is True
        assert job.repost_count == 2

        assert job.repost(now) is False
        assert job.status == JobStatus.CANCELLED
        assert job.closure_reason == ClosureReason.REPOST_LIMIT_EXCEEDED
        assert job.is_permanently_rejected is True

    def test_repost_requires_pending(self, make_job, now):
        job = make_job()
        job.soft_lock(uuid4(), now, 45)
        with pytest.raises(InvalidTransitionError):
            job.repost(now)

    def test_cancel_is_not_permanent_rejection(self, make_job, now):
        job = make_job()
        job.cancel("customer called off", now)
        assert job.closure_reason == ClosureReason.DEALER_CANCELLED
        assert job.is_permanently_rejected is False

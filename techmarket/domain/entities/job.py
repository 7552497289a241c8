"""Job domain entity."""

import hmac
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID, uuid4

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
from techmarket.domain.value_objects.address import Address
from techmarket.domain.value_objects.geo_point import GeoPoint
from techmarket.domain.value_objects.job_status import (
    ClosureReason,
    JobStatus,
    TimeoutReason,
    TimerKind,
)
from techmarket.domain.value_objects.payment import PaymentMethod

_JOB_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_job_number(now: Optional[datetime] = None) -> str:
    """Build a job number of the form ``JOB-{epoch_ms}-{9 chars}``."""
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(_JOB_NUMBER_ALPHABET) for _ in range(9))
    return f"JOB-{int(now.timestamp() * 1000)}-{suffix}"


@dataclass
class Job:
    """Job domain entity.

    Mutating methods check the current status and raise before touching any
    field, so a failed guard leaves the entity unchanged. Persisting the
    result is the caller's job and must go through a compare-and-set on
    ``(status, version)``.
    """

    dealer_id: UUID
    title: str
    description: str
    work_details: str
    customer_name: str
    customer_phone: str
    address: Address
    service_domain_id: str
    service_category_id: str
    service_sub_category_id: str
    id: UUID = field(default_factory=uuid4)
    job_number: str = field(default_factory=generate_job_number)
    status: JobStatus = JobStatus.PENDING
    version: int = 0

    # Classification and scheduling
    skill_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    priority: str = "NORMAL"
    scheduled_at: Optional[datetime] = None
    estimated_duration_hours: Optional[float] = None

    # Pricing
    estimated_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    price_locked: bool = False
    warranty_days: Optional[int] = None

    # Assignment and timers
    technician_id: Optional[UUID] = None
    soft_lock_expires_at: Optional[datetime] = None
    soft_lock_resets: int = 0
    payment_deadline_at: Optional[datetime] = None

    # Negotiation
    offer_amount: Optional[Decimal] = None
    offer_by: Optional[ActorRole] = None
    negotiation_rounds: int = 0
    negotiation_expires_at: Optional[datetime] = None

    # Payment capture
    payment_method: Optional[PaymentMethod] = None
    payment_proof: Optional[str] = None
    captured_amount: Optional[Decimal] = None
    payment_captured_at: Optional[datetime] = None

    # Execution
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completion_otp_hash: Optional[str] = None
    otp_expires_at: Optional[datetime] = None
    completion_requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Reposting and closure
    repost_count: int = 0
    max_reposts: int = 3
    timeout_reasons: List[TimeoutReason] = field(default_factory=list)
    closure_reason: Optional[ClosureReason] = None
    status_note: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate job data."""
        if not self.title or not self.title.strip():
            raise RequiredFieldError("title")
        if not self.address:
            raise RequiredFieldError("address")
        if self.max_reposts < 0:
            raise InvalidFieldError("max_reposts", "must not be negative")

        if not self.created_at:
            self.created_at = datetime.now(timezone.utc)
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def location(self) -> Optional[GeoPoint]:
        """Valid coordinates of the job site, if any."""
        return GeoPoint.from_coordinates(self.latitude, self.longitude)

    @property
    def city(self) -> str:
        return self.address.city

    @property
    def is_permanently_rejected(self) -> bool:
        return (
            self.status == JobStatus.CANCELLED
            and self.closure_reason == ClosureReason.REPOST_LIMIT_EXCEEDED
        )

    @property
    def gross_amount(self) -> Optional[Decimal]:
        """Best known amount the dealer pays for the job."""
        if self.final_price is not None:
            return self.final_price
        return self.estimated_price

    def _ensure_status(self, operation: str, *allowed: JobStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(str(self.id), self.status.value, operation)

    def _move_to(self, target: JobStatus, operation: str, now: datetime) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError(str(self.id), self.status.value, operation)
        self.status = target
        self.updated_at = now

    def _clear_assignment(self) -> None:
        self.technician_id = None
        self.soft_lock_expires_at = None
        self.soft_lock_resets = 0
        self.payment_deadline_at = None
        self.offer_amount = None
        self.offer_by = None
        self.negotiation_rounds = 0
        self.negotiation_expires_at = None
        self.final_price = None
        self.price_locked = False

    # Soft lock

    def soft_lock(self, technician_id: UUID, now: datetime, lock_seconds: int) -> None:
        """Grant the soft lock to the first accepting technician."""
        if not self.status.is_open_for_acceptance() or self.technician_id is not None:
            raise JobNoLongerAvailableError(str(self.id))
        self._move_to(JobStatus.SOFT_LOCKED, "accept", now)
        self.technician_id = technician_id
        self.soft_lock_expires_at = now + timedelta(seconds=lock_seconds)
        self.soft_lock_resets = 0
        self.final_price = self.estimated_price
        self.price_locked = False

    def reset_soft_lock(self, now: datetime, lock_seconds: int, max_resets: int) -> bool:
        """Re-arm the soft lock once per lock instance.

        Returns False when the reset allowance for this lock is used up.
        """
        self._ensure_status("reset soft lock timer for", JobStatus.SOFT_LOCKED)
        if self.soft_lock_resets >= max_resets:
            return False
        self.soft_lock_expires_at = now + timedelta(seconds=lock_seconds)
        self.soft_lock_resets += 1
        self.updated_at = now
        return True

    def confirm_soft_lock(self, now: datetime, payment_minutes: int) -> None:
        self._ensure_status("confirm", JobStatus.SOFT_LOCKED)
        self._move_to(JobStatus.WAITING_FOR_PAYMENT, "confirm", now)
        if self.final_price is not None:
            self.price_locked = True
        self.payment_deadline_at = now + timedelta(minutes=payment_minutes)
        self.soft_lock_expires_at = None
        self.soft_lock_resets = 0

    # Timers

    def deadline_for(self, kind: TimerKind) -> Optional[datetime]:
        return {
            TimerKind.SOFT_LOCK: self.soft_lock_expires_at,
            TimerKind.PAYMENT_DEADLINE: self.payment_deadline_at,
            TimerKind.NEGOTIATION: self.negotiation_expires_at,
        }[kind]

    def is_expired(self, kind: TimerKind, now: datetime) -> bool:
        """Check if the timer's guarded window is still open and has lapsed."""
        deadline = self.deadline_for(kind)
        return (
            self.status == kind.guarded_status
            and deadline is not None
            and deadline <= now
        )

    def expire(self, kind: TimerKind, now: datetime) -> bool:
        """Apply a timeout if its window lapsed. Returns False on a stale timer."""
        if not self.is_expired(kind, now):
            return False
        self.release_to_pool(now, kind.timeout_reason)
        return True

    def release_to_pool(self, now: datetime, reason: Optional[TimeoutReason] = None) -> None:
        """Return the job to PENDING, dropping the technician and any price."""
        self._move_to(JobStatus.PENDING, "release", now)
        self._clear_assignment()
        if reason is not None:
            self.timeout_reasons.append(reason)

    # Negotiation

    def propose_offer(
        self,
        amount: Decimal,
        by_role: ActorRole,
        now: datetime,
        response_minutes: int,
        max_rounds: int,
    ) -> None:
        """Record a counter-offer and arm the counterparty's response timer."""
        if amount is None or amount <= 0:
            raise InvalidFieldError("amount", "counter-offer must be positive")

        if self.status == JobStatus.SOFT_LOCKED:
            if by_role != ActorRole.DEALER:
                raise InvalidTransitionError(
                    str(self.id), self.status.value, "open negotiation as technician on"
                )
            self._move_to(JobStatus.NEGOTIATION_PENDING, "counter offer", now)
            self.soft_lock_expires_at = None
        elif self.status == JobStatus.NEGOTIATION_PENDING:
            if by_role == self.offer_by:
                raise InvalidTransitionError(
                    str(self.id), self.status.value, "counter own offer on"
                )
            if self.negotiation_rounds >= max_rounds:
                raise InvalidTransitionError(
                    str(self.id),
                    self.status.value,
                    f"exceed {max_rounds} negotiation rounds on",
                )
            self.updated_at = now
        else:
            raise InvalidTransitionError(str(self.id), self.status.value, "counter offer")

        self.offer_amount = amount
        self.offer_by = by_role
        self.negotiation_rounds += 1
        self.negotiation_expires_at = now + timedelta(minutes=response_minutes)

    def accept_offer(self, by_role: ActorRole, now: datetime, payment_minutes: int) -> None:
        self._ensure_status("accept offer on", JobStatus.NEGOTIATION_PENDING)
        if by_role == self.offer_by:
            raise InvalidTransitionError(str(self.id), self.status.value, "accept own offer on")
        self._move_to(JobStatus.WAITING_FOR_PAYMENT, "accept offer", now)
        self.final_price = self.offer_amount
        self.price_locked = True
        self.payment_deadline_at = now + timedelta(minutes=payment_minutes)
        self.negotiation_expires_at = None

    def decline_offer(self, by_role: ActorRole, now: datetime) -> None:
        self._ensure_status("decline offer on", JobStatus.NEGOTIATION_PENDING)
        if by_role == self.offer_by:
            raise InvalidTransitionError(str(self.id), self.status.value, "decline own offer on")
        self.release_to_pool(now)

    # Payment and execution

    def lock_payment(
        self,
        method: PaymentMethod,
        now: datetime,
        proof: Optional[str] = None,
        amount: Optional[Decimal] = None,
    ) -> None:
        self._ensure_status("lock payment for", JobStatus.WAITING_FOR_PAYMENT)
        if method.requires_proof() and not proof:
            raise RequiredFieldError("payment_proof")
        captured = amount if amount is not None else self.gross_amount
        if captured is not None and captured <= 0:
            raise InvalidAmount(str(self.id), captured)
        if self.price_locked and amount is not None and amount != self.final_price:
            raise InvalidFieldError(
                "amount", f"price is locked at {self.final_price}"
            )
        self._move_to(JobStatus.ASSIGNED, "lock payment", now)
        self.payment_method = method
        self.payment_proof = proof
        self.captured_amount = captured
        self.payment_captured_at = now
        self.payment_deadline_at = None
        self.assigned_at = now

    def start(self, now: datetime) -> None:
        self._ensure_status("start", JobStatus.ASSIGNED)
        self._move_to(JobStatus.IN_PROGRESS, "start", now)
        self.started_at = now

    def issue_otp(self, otp_hash: str, expires_at: datetime, now: datetime) -> None:
        self._ensure_status("issue completion OTP for", JobStatus.IN_PROGRESS)
        self.completion_otp_hash = otp_hash
        self.otp_expires_at = expires_at
        self.updated_at = now

    def verify_otp(self, otp_hash: str, now: datetime) -> None:
        """Move to COMPLETION_PENDING_APPROVAL if the OTP digest matches."""
        self._ensure_status("verify completion OTP for", JobStatus.IN_PROGRESS)
        if not self.completion_otp_hash:
            raise OtpMismatch(str(self.id), "not issued")
        if self.otp_expires_at is None or self.otp_expires_at <= now:
            raise OtpMismatch(str(self.id), "expired")
        if not hmac.compare_digest(self.completion_otp_hash, otp_hash):
            raise OtpMismatch(str(self.id), "incorrect")
        self._move_to(JobStatus.COMPLETION_PENDING_APPROVAL, "verify OTP", now)
        self.completion_requested_at = now
        self.completion_otp_hash = None
        self.otp_expires_at = None

    # Approval

    def resolve_approval_amount(self, total_amount: Optional[Decimal] = None) -> Decimal:
        """Pick the amount to settle: explicit total, then final, then estimate."""
        if (
            self.price_locked
            and self.final_price is not None
            and total_amount is not None
            and total_amount != self.final_price
        ):
            raise InvalidFieldError(
                "total_amount", f"final price is locked at {self.final_price}"
            )
        amount = total_amount if total_amount is not None else self.gross_amount
        if amount is None or amount <= 0:
            raise InvalidAmount(str(self.id), amount)
        return amount

    def approve(self, amount: Decimal, now: datetime) -> None:
        self._ensure_status("approve", JobStatus.COMPLETION_PENDING_APPROVAL)
        self._move_to(JobStatus.COMPLETED, "approve", now)
        self.final_price = amount
        self.price_locked = True
        self.completed_at = now

    def reject_completion(self, note: Optional[str], now: datetime) -> None:
        self._ensure_status("reject completion of", JobStatus.COMPLETION_PENDING_APPROVAL)
        self._move_to(JobStatus.IN_PROGRESS, "reject completion", now)
        self.completion_requested_at = None
        self.status_note = note

    def warranty_ends_at(self, default_days: int) -> Optional[datetime]:
        if self.completed_at is None:
            return None
        days = self.warranty_days if self.warranty_days is not None else default_days
        return self.completed_at + timedelta(days=days)

    # Repost and closure

    def repost(self, now: datetime) -> bool:
        """Return the job to the pool again.

        Returns False, after closing the job for good, once ``max_reposts``
        reposts have been used.
        """
        self._ensure_status("repost", JobStatus.PENDING)
        if self.repost_count >= self.max_reposts:
            self._move_to(JobStatus.CANCELLED, "repost", now)
            self._clear_assignment()
            self.closure_reason = ClosureReason.REPOST_LIMIT_EXCEEDED
            return False
        self._clear_assignment()
        self.repost_count += 1
        self.updated_at = now
        return True

    def cancel(self, note: Optional[str], now: datetime) -> None:
        self._move_to(JobStatus.CANCELLED, "cancel", now)
        self.closure_reason = ClosureReason.DEALER_CANCELLED
        self.status_note = note
        self.soft_lock_expires_at = None
        self.payment_deadline_at = None
        self.negotiation_expires_at = None

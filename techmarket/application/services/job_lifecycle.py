"""
Job Lifecycle Controller.

Every status change, manual or timer-driven, follows the same path: load the
job, run the guarded entity method, persist with a compare-and-set on
``(status, version)``, commit, and only then publish events, schedule timers
and send notifications. Side effects after commit never fail the transition.
"""

import hashlib
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from techmarket.application.interfaces.repositories import (
    JobRepositoryInterface,
    WarrantyRepositoryInterface,
)
from techmarket.application.interfaces.services import (
    NotificationDispatcherInterface,
    Recipient,
    TimerSchedulerInterface,
)
from techmarket.application.services.candidate_notifier import CandidateNotifier
from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.risk_engine import RiskAssessment, RiskEngine
from techmarket.application.services.transaction_service import TransactionService
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.payment_split import PaymentSplit
from techmarket.domain.entities.warranty import Dispute, WarrantyRecord
from techmarket.domain.events.job_transitioned import JobTransitioned
from techmarket.domain.exceptions.job_state_error import (
    ConflictError,
    InvalidTransitionError,
    JobNoLongerAvailableError,
    RepostLimitExceeded,
)
from techmarket.domain.exceptions.not_found_error import (
    DisputeNotFoundError,
    JobNotFoundError,
    WarrantyRecordNotFoundError,
)
from techmarket.domain.exceptions.validation_error import (
    ActorMismatchError,
    InvalidFieldError,
)
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import JobStatus, TimeoutReason, TimerKind
from techmarket.domain.value_objects.notification_channel import NotificationChannel
from techmarket.domain.value_objects.payment import PaymentMethod
from techmarket.domain.value_objects.warranty_status import DisputeResolution
from techmarket.infrastructure.monitoring.metrics import (
    record_conflict,
    record_stale_timer,
    record_timeout,
    record_transition,
)

logger = get_logger(__name__)


def hash_otp(otp: str) -> str:
    """SHA-256 hex digest of a completion OTP."""
    return hashlib.sha256(otp.strip().encode("utf-8")).hexdigest()


def generate_otp(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass
class LifecyclePolicy:
    """Timer lengths and limits used by the controller."""

    soft_lock_seconds: int = 45
    soft_lock_max_resets: int = 1
    payment_deadline_minutes: int = 30
    negotiation_timeout_minutes: int = 5
    max_negotiation_rounds: int = 2
    default_warranty_days: int = 10
    default_hold_percentage: int = 20
    otp_length: int = 6
    otp_ttl_minutes: int = 30

    @classmethod
    def from_settings(cls, settings) -> "LifecyclePolicy":
        return cls(
            soft_lock_seconds=settings.SOFT_LOCK_SECONDS,
            soft_lock_max_resets=settings.SOFT_LOCK_MAX_RESETS,
            payment_deadline_minutes=settings.PAYMENT_DEADLINE_MINUTES,
            negotiation_timeout_minutes=settings.NEGOTIATION_TIMEOUT_MINUTES,
            max_negotiation_rounds=settings.MAX_NEGOTIATION_ROUNDS,
            default_warranty_days=settings.DEFAULT_WARRANTY_DAYS,
            default_hold_percentage=settings.DEFAULT_HOLD_PERCENTAGE,
            otp_length=settings.OTP_LENGTH,
            otp_ttl_minutes=settings.OTP_TTL_MINUTES,
        )


@dataclass
class ApprovalResult:
    """Outcome of a dealer approval."""

    job: Job
    split: PaymentSplit
    assessment: Optional[RiskAssessment] = None


TransitionListener = Callable[[JobTransitioned], None]


class JobLifecycleController:
    """Guarded transitions for one job at a time, serialized by CAS."""

    def __init__(
        self,
        job_repo: JobRepositoryInterface,
        warranty_repo: WarrantyRepositoryInterface,
        transaction_service: TransactionService,
        escrow_manager: EscrowManager,
        risk_engine: RiskEngine,
        notifier: NotificationDispatcherInterface,
        timer_scheduler: Optional[TimerSchedulerInterface] = None,
        candidate_notifier: Optional[CandidateNotifier] = None,
        policy: Optional[LifecyclePolicy] = None,
        otp_generator: Optional[Callable[[int], str]] = None,
    ):
        self.job_repo = job_repo
        self.warranty_repo = warranty_repo
        self.transaction_service = transaction_service
        self.escrow_manager = escrow_manager
        self.risk_engine = risk_engine
        self.notifier = notifier
        self.timer_scheduler = timer_scheduler
        self.candidate_notifier = candidate_notifier
        self.policy = policy or LifecyclePolicy()
        self.otp_generator = otp_generator or generate_otp
        self.logger = logger
        self._listeners: List[TransitionListener] = []

    def add_listener(self, listener: TransitionListener) -> None:
        """Register a callback for committed transitions."""
        self._listeners.append(listener)

    # Plumbing

    async def _load(self, job_id: UUID) -> Job:
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def _persist(
        self,
        job: Job,
        expected_status: JobStatus,
        expected_version: int,
        operation: str,
        conflict: Optional[Exception] = None,
        before_commit: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> bool:
        """CAS the job row and commit the unit of work.

        Raises ``conflict`` (a ``ConflictError`` by default) when the row moved
        underneath us; with ``conflict=False`` the loss is reported as False.
        """
        saved = await self.job_repo.compare_and_set(job, expected_status, expected_version)
        if not saved:
            await self.transaction_service.rollback()
            record_conflict(operation)
            self.logger.warning(
                "Job compare-and-set conflict",
                job_id=str(job.id),
                operation=operation,
                expected_status=expected_status.value,
                expected_version=expected_version,
            )
            if conflict is False:
                return False
            raise conflict or ConflictError(str(job.id))

        if before_commit is not None:
            try:
                await before_commit()
            except Exception:
                await self.transaction_service.rollback()
                raise

        await self.transaction_service.commit()
        return True

    def _published(
        self,
        job: Job,
        from_status: JobStatus,
        now: datetime,
        actor_id: Optional[UUID] = None,
        timeout_reason: Optional[TimeoutReason] = None,
        **metadata,
    ) -> JobTransitioned:
        event = JobTransitioned(
            job_id=job.id,
            job_number=job.job_number,
            from_status=from_status,
            to_status=job.status,
            occurred_at=now,
            actor_id=actor_id,
            timeout_reason=timeout_reason,
            metadata=metadata,
        )

        record_transition(from_status.value, job.status.value)
        if timeout_reason is not None:
            record_timeout(timeout_reason.value)
        self.logger.info(
            "Job transitioned",
            job_id=str(job.id),
            job_number=job.job_number,
            from_status=from_status.value,
            to_status=job.status.value,
            actor_id=str(actor_id) if actor_id else None,
            timeout_reason=timeout_reason.value if timeout_reason else None,
            version=job.version,
        )

        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                self.logger.error(
                    "Transition listener failed", job_id=str(job.id), error=str(e)
                )
        return event

    def _schedule(self, job: Job, kind: TimerKind) -> None:
        fire_at = job.deadline_for(kind)
        if self.timer_scheduler is None or fire_at is None:
            return
        try:
            self.timer_scheduler.schedule(job.id, kind, fire_at)
        except Exception as e:
            self.logger.error(
                "Timer scheduling failed, sweep will pick it up",
                job_id=str(job.id),
                kind=kind.value,
                fire_at=fire_at.isoformat(),
                error=str(e),
            )

    def _notify(
        self,
        role: ActorRole,
        user_id: Optional[UUID],
        job: Job,
        template: str,
        channel: NotificationChannel = NotificationChannel.IN_APP,
        **data,
    ) -> None:
        if user_id is None:
            return
        self.notifier.notify(
            Recipient.for_actor(role, user_id),
            channel,
            {
                "template": template,
                "job_id": str(job.id),
                "job_number": job.job_number,
                "status": job.status.value,
                **data,
            },
        )

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now or datetime.now(timezone.utc)

    @staticmethod
    def _require_dealer(job: Job, dealer_id: UUID) -> None:
        if job.dealer_id != dealer_id:
            raise ActorMismatchError(str(job.id), str(dealer_id), ActorRole.DEALER.value)

    @staticmethod
    def _require_technician(job: Job, technician_id: UUID) -> None:
        if job.technician_id is None or job.technician_id != technician_id:
            raise ActorMismatchError(
                str(job.id), str(technician_id), ActorRole.TECHNICIAN.value
            )

    def _require_party(self, job: Job, actor_id: UUID, role: ActorRole) -> None:
        if role == ActorRole.DEALER:
            self._require_dealer(job, actor_id)
        elif role == ActorRole.TECHNICIAN:
            self._require_technician(job, actor_id)
        elif role != ActorRole.ADMIN:
            raise ActorMismatchError(str(job.id), str(actor_id), "party")

    # Timeouts

    async def _apply_lapsed(self, job: Job, kind: TimerKind, now: datetime) -> bool:
        """Apply a lapsed window found while serving a manual action."""
        if not job.is_expired(kind, now):
            return False
        await self._expire(job, kind, now, conflict=None)
        return True

    async def _expire(
        self, job: Job, kind: TimerKind, now: datetime, conflict=None
    ) -> bool:
        from_status, version = job.status, job.version
        technician_id = job.technician_id

        job.expire(kind, now)
        saved = await self._persist(
            job, from_status, version, f"timeout:{kind.value}", conflict=conflict
        )
        if not saved:
            return False

        reason = kind.timeout_reason
        self._published(job, from_status, now, timeout_reason=reason)
        self.logger.info(
            "Job timeout applied",
            job_id=str(job.id),
            reason=reason.value,
            timeout_count=len(job.timeout_reasons),
        )
        self._notify(ActorRole.DEALER, job.dealer_id, job, "job_timeout", reason=reason.value)
        self._notify(
            ActorRole.TECHNICIAN, technician_id, job, "job_timeout", reason=reason.value
        )
        return True

    async def handle_timer(
        self, job_id: UUID, kind: TimerKind, now: Optional[datetime] = None
    ) -> Optional[Job]:
        """Timer entry point. A no-op unless the guarded window really lapsed."""
        now = self._now(now)
        job = await self.job_repo.get_by_id(job_id)
        if job is None:
            self.logger.warning("Timer fired for unknown job", job_id=str(job_id), kind=kind.value)
            return None

        if not job.is_expired(kind, now):
            record_stale_timer(kind.value)
            self.logger.info(
                "Stale timer ignored",
                job_id=str(job_id),
                kind=kind.value,
                status=job.status.value,
            )
            return job

        if not await self._expire(job, kind, now, conflict=False):
            record_stale_timer(kind.value)
            self.logger.info(
                "Timer lost race to another transition", job_id=str(job_id), kind=kind.value
            )
            return None
        return job

    # Acceptance and soft lock

    async def accept_job(
        self, job_id: UUID, technician_id: UUID, now: Optional[datetime] = None
    ) -> Job:
        """First technician to accept wins the soft lock; everyone else gets a conflict."""
        now = self._now(now)
        job = await self._load(job_id)
        await self._apply_lapsed(job, TimerKind.SOFT_LOCK, now)

        from_status, version = job.status, job.version
        job.soft_lock(technician_id, now, self.policy.soft_lock_seconds)
        await self._persist(
            job,
            from_status,
            version,
            "accept",
            conflict=JobNoLongerAvailableError(str(job.id)),
        )

        self._published(job, from_status, now, actor_id=technician_id)
        self._schedule(job, TimerKind.SOFT_LOCK)
        self._notify(
            ActorRole.DEALER,
            job.dealer_id,
            job,
            "job_soft_locked",
            technician_id=str(technician_id),
            expires_at=job.soft_lock_expires_at.isoformat(),
        )
        return job

    async def reset_soft_lock_timer(
        self, job_id: UUID, dealer_id: UUID, now: Optional[datetime] = None
    ) -> Job:
        """Give the dealer a fresh soft-lock window, at most once per lock."""
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)
        if await self._apply_lapsed(job, TimerKind.SOFT_LOCK, now):
            return job

        from_status, version = job.status, job.version
        if not job.reset_soft_lock(
            now, self.policy.soft_lock_seconds, self.policy.soft_lock_max_resets
        ):
            self.logger.info(
                "Soft lock reset allowance used",
                job_id=str(job.id),
                resets=job.soft_lock_resets,
            )
            return job

        await self._persist(job, from_status, version, "reset_soft_lock")
        self.logger.info(
            "Soft lock timer reset",
            job_id=str(job.id),
            expires_at=job.soft_lock_expires_at.isoformat(),
        )
        self._schedule(job, TimerKind.SOFT_LOCK)
        return job

    async def confirm_soft_lock(
        self, job_id: UUID, dealer_id: UUID, now: Optional[datetime] = None
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)
        if await self._apply_lapsed(job, TimerKind.SOFT_LOCK, now):
            return job

        from_status, version = job.status, job.version
        job.confirm_soft_lock(now, self.policy.payment_deadline_minutes)
        await self._persist(job, from_status, version, "confirm")

        self._published(job, from_status, now, actor_id=dealer_id)
        self._schedule(job, TimerKind.PAYMENT_DEADLINE)
        self._notify(
            ActorRole.TECHNICIAN,
            job.technician_id,
            job,
            "job_confirmed",
            payment_deadline_at=job.payment_deadline_at.isoformat(),
        )
        return job

    # Negotiation

    async def propose_counter_offer(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole,
        amount: Decimal,
        now: Optional[datetime] = None,
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_party(job, actor_id, role)
        if await self._apply_lapsed(job, TimerKind.SOFT_LOCK, now):
            return job
        if await self._apply_lapsed(job, TimerKind.NEGOTIATION, now):
            return job

        from_status, version = job.status, job.version
        job.propose_offer(
            amount,
            role,
            now,
            self.policy.negotiation_timeout_minutes,
            self.policy.max_negotiation_rounds,
        )
        await self._persist(job, from_status, version, "counter_offer")

        if from_status != job.status:
            self._published(job, from_status, now, actor_id=actor_id)
        self.logger.info(
            "Counter offer proposed",
            job_id=str(job.id),
            by_role=role.value,
            amount=str(amount),
            round=job.negotiation_rounds,
        )
        self._schedule(job, TimerKind.NEGOTIATION)

        counterparty_role, counterparty_id = (
            (ActorRole.TECHNICIAN, job.technician_id)
            if role == ActorRole.DEALER
            else (ActorRole.DEALER, job.dealer_id)
        )
        self._notify(
            counterparty_role,
            counterparty_id,
            job,
            "counter_offer",
            amount=str(amount),
            respond_by=job.negotiation_expires_at.isoformat(),
        )
        return job

    async def respond_to_offer(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole,
        accept: bool,
        now: Optional[datetime] = None,
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_party(job, actor_id, role)
        if await self._apply_lapsed(job, TimerKind.NEGOTIATION, now):
            return job

        from_status, version = job.status, job.version
        technician_id = job.technician_id
        if accept:
            job.accept_offer(role, now, self.policy.payment_deadline_minutes)
        else:
            job.decline_offer(role, now)
        await self._persist(job, from_status, version, "respond_offer")

        self._published(job, from_status, now, actor_id=actor_id, accepted=accept)
        template = "offer_accepted" if accept else "offer_declined"
        if accept:
            self._schedule(job, TimerKind.PAYMENT_DEADLINE)
        self._notify(ActorRole.DEALER, job.dealer_id, job, template)
        self._notify(ActorRole.TECHNICIAN, technician_id, job, template)
        return job

    # Payment and execution

    async def lock_payment(
        self,
        job_id: UUID,
        dealer_id: UUID,
        method: PaymentMethod,
        proof: Optional[str] = None,
        amount: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)
        if await self._apply_lapsed(job, TimerKind.PAYMENT_DEADLINE, now):
            return job

        from_status, version = job.status, job.version
        job.lock_payment(method, now, proof=proof, amount=amount)
        await self._persist(job, from_status, version, "lock_payment")

        self._published(job, from_status, now, actor_id=dealer_id, method=method.value)
        self._notify(ActorRole.TECHNICIAN, job.technician_id, job, "payment_locked")
        return job

    async def start_job(
        self, job_id: UUID, technician_id: UUID, now: Optional[datetime] = None
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_technician(job, technician_id)

        from_status, version = job.status, job.version
        job.start(now)
        await self._persist(job, from_status, version, "start")

        self._published(job, from_status, now, actor_id=technician_id)
        self._notify(ActorRole.DEALER, job.dealer_id, job, "job_started")
        return job

    async def issue_completion_otp(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole = ActorRole.TECHNICIAN,
        now: Optional[datetime] = None,
    ) -> Job:
        """Send a fresh completion code to the customer. Status does not change."""
        now = self._now(now)
        job = await self._load(job_id)
        self._require_party(job, actor_id, role)

        from_status, version = job.status, job.version
        otp = self.otp_generator(self.policy.otp_length)
        expires_at = now + timedelta(minutes=self.policy.otp_ttl_minutes)
        job.issue_otp(hash_otp(otp), expires_at, now)
        await self._persist(job, from_status, version, "issue_otp")

        self.logger.info(
            "Completion OTP issued", job_id=str(job.id), expires_at=expires_at.isoformat()
        )
        self.notifier.notify(
            Recipient(role="customer", address=job.customer_phone),
            NotificationChannel.MESSAGING,
            {
                "template": "completion_otp",
                "job_id": str(job.id),
                "job_number": job.job_number,
                "otp": otp,
                "expires_at": expires_at.isoformat(),
            },
        )
        return job

    async def resend_otp(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole = ActorRole.TECHNICIAN,
        now: Optional[datetime] = None,
    ) -> Job:
        return await self.issue_completion_otp(job_id, actor_id, role, now)

    async def verify_completion_otp(
        self, job_id: UUID, otp: str, now: Optional[datetime] = None
    ) -> Job:
        """Check the customer's code; a mismatch leaves the job untouched."""
        now = self._now(now)
        job = await self._load(job_id)

        from_status, version = job.status, job.version
        try:
            job.verify_otp(hash_otp(otp or ""), now)
        except Exception as e:
            self.logger.info(
                "Completion OTP rejected", job_id=str(job.id), error=str(e)
            )
            raise
        await self._persist(job, from_status, version, "verify_otp")

        self._published(job, from_status, now)
        self._notify(ActorRole.DEALER, job.dealer_id, job, "completion_pending_approval")
        return job

    # Approval

    async def approve_job(
        self,
        job_id: UUID,
        dealer_id: UUID,
        total_amount: Optional[Decimal] = None,
        hold_percentage: Optional[Decimal] = None,
        warranty_days: Optional[int] = None,
        payment_method: Optional[PaymentMethod] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalResult:
        """Complete the job and create its payment split in one unit of work."""
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)
        if job.status != JobStatus.COMPLETION_PENDING_APPROVAL:
            raise InvalidTransitionError(str(job.id), job.status.value, "approve")

        amount = job.resolve_approval_amount(total_amount)

        assessment = None
        if hold_percentage is not None:
            if hold_percentage < 0 or hold_percentage > 100:
                raise InvalidFieldError("hold_percentage", "must be between 0 and 100")
            percentage = hold_percentage
        else:
            try:
                assessment = await self.risk_engine.analyze(
                    job, job.technician_id, job.dealer_id
                )
                percentage = assessment.recommended_hold_percentage
            except Exception as e:
                percentage = self.policy.default_hold_percentage
                self.logger.warning(
                    "Risk scoring failed, using default hold percentage",
                    job_id=str(job.id),
                    hold_percentage=percentage,
                    error=str(e),
                )

        if warranty_days is None:
            warranty_days = (
                job.warranty_days
                if job.warranty_days is not None
                else self.policy.default_warranty_days
            )
        method = payment_method or job.payment_method or PaymentMethod.ONLINE

        from_status, version = job.status, job.version
        job.approve(amount, now)
        job.warranty_days = warranty_days

        created = {}

        async def create_split():
            created["split"] = await self.escrow_manager.create_split(
                job, amount, percentage, warranty_days, method, now
            )

        await self._persist(
            job, from_status, version, "approve", before_commit=create_split
        )
        split = created["split"]

        self._published(
            job,
            from_status,
            now,
            actor_id=dealer_id,
            total_amount=str(amount),
            hold_percentage=str(percentage),
        )
        self._notify(
            ActorRole.TECHNICIAN,
            job.technician_id,
            job,
            "job_approved",
            released_amount=str(
                self.escrow_manager.technician_net_amount(split.released_amount)
            ),
            hold_release_at=split.hold_release_at.isoformat(),
        )
        return ApprovalResult(job=job, split=split, assessment=assessment)

    async def reject_completion(
        self,
        job_id: UUID,
        dealer_id: UUID,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)

        from_status, version = job.status, job.version
        job.reject_completion(reason, now)
        await self._persist(job, from_status, version, "reject_completion")

        self._published(job, from_status, now, actor_id=dealer_id)
        self._notify(
            ActorRole.TECHNICIAN, job.technician_id, job, "completion_rejected", reason=reason
        )
        return job

    # Repost and cancel

    async def repost_job(
        self, job_id: UUID, dealer_id: UUID, now: Optional[datetime] = None
    ) -> Job:
        """Return the job to the pool, or close it for good past the repost limit."""
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)
        if job.is_permanently_rejected:
            raise RepostLimitExceeded(str(job.id), job.max_reposts)

        from_status, version = job.status, job.version
        reposted = job.repost(now)
        await self._persist(job, from_status, version, "repost")

        if not reposted:
            self._published(job, from_status, now, actor_id=dealer_id)
            self.logger.warning(
                "Job permanently rejected after repost limit",
                job_id=str(job.id),
                repost_count=job.repost_count,
                max_reposts=job.max_reposts,
            )
            self._notify(ActorRole.DEALER, job.dealer_id, job, "job_permanently_rejected")
            raise RepostLimitExceeded(str(job.id), job.max_reposts)

        self.logger.info(
            "Job reposted",
            job_id=str(job.id),
            repost_count=job.repost_count,
            max_reposts=job.max_reposts,
        )
        if self.candidate_notifier is not None:
            await self.candidate_notifier.announce(job, template="job_reposted")
        return job

    async def cancel_job(
        self,
        job_id: UUID,
        dealer_id: UUID,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Job:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_dealer(job, dealer_id)

        from_status, version = job.status, job.version
        job.cancel(reason, now)
        await self._persist(job, from_status, version, "cancel")

        self._published(job, from_status, now, actor_id=dealer_id)
        self._notify(ActorRole.TECHNICIAN, job.technician_id, job, "job_cancelled", reason=reason)
        return job

    # Disputes and warranty

    async def raise_dispute(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole,
        description: str,
        now: Optional[datetime] = None,
    ) -> Dispute:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_party(job, actor_id, role)
        if not job.status.is_payment_locked():
            raise InvalidTransitionError(str(job.id), job.status.value, "raise dispute on")

        dispute = Dispute(
            job_id=job.id,
            raised_by=actor_id,
            raised_by_role=role,
            description=description,
            created_at=now,
        )
        dispute = await self.transaction_service.execute_in_transaction(
            lambda: self.warranty_repo.create_dispute(dispute)
        )

        self.logger.info(
            "Dispute raised",
            job_id=str(job.id),
            dispute_id=str(dispute.id),
            raised_by_role=role.value,
        )
        self._notify(ActorRole.DEALER, job.dealer_id, job, "dispute_raised", dispute_id=str(dispute.id))
        self._notify(
            ActorRole.TECHNICIAN, job.technician_id, job, "dispute_raised", dispute_id=str(dispute.id)
        )
        return dispute

    async def resolve_dispute(
        self,
        dispute_id: UUID,
        resolution: DisputeResolution,
        now: Optional[datetime] = None,
    ) -> Dispute:
        """Close a dispute; FORFEIT also forfeits a still-held warranty amount."""
        now = self._now(now)
        dispute = await self.warranty_repo.get_dispute(dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(dispute_id)

        dispute.resolve(resolution, now)

        async def settle():
            await self.warranty_repo.update_dispute(dispute)
            if resolution == DisputeResolution.FORFEIT:
                await self.escrow_manager.forfeit_hold(dispute.job_id, now)
            return dispute

        await self.transaction_service.execute_in_transaction(settle)
        self.logger.info(
            "Dispute resolved",
            dispute_id=str(dispute.id),
            job_id=str(dispute.job_id),
            resolution=resolution.value,
        )
        return dispute

    async def report_warranty_issue(
        self,
        job_id: UUID,
        actor_id: UUID,
        role: ActorRole,
        description: str,
        now: Optional[datetime] = None,
    ) -> WarrantyRecord:
        now = self._now(now)
        job = await self._load(job_id)
        self._require_party(job, actor_id, role)
        if job.status != JobStatus.COMPLETED:
            raise InvalidTransitionError(
                str(job.id), job.status.value, "report warranty issue on"
            )
        ends_at = job.warranty_ends_at(self.policy.default_warranty_days)
        if ends_at is None or now > ends_at:
            raise InvalidFieldError("job_id", "warranty period has ended")
        if not description or not description.strip():
            raise InvalidFieldError("description", "warranty issue needs a description")

        record = WarrantyRecord(job_id=job.id, description=description, created_at=now)
        record = await self.transaction_service.execute_in_transaction(
            lambda: self.warranty_repo.create_record(record)
        )
        self.logger.info(
            "Warranty issue reported", job_id=str(job.id), record_id=str(record.id)
        )
        self._notify(
            ActorRole.TECHNICIAN, job.technician_id, job, "warranty_issue", record_id=str(record.id)
        )
        return record

    async def resolve_warranty_issue(
        self, record_id: UUID, now: Optional[datetime] = None
    ) -> WarrantyRecord:
        now = self._now(now)
        record = await self.warranty_repo.get_record(record_id)
        if record is None:
            raise WarrantyRecordNotFoundError(record_id)

        record.resolve(now)
        await self.transaction_service.execute_in_transaction(
            lambda: self.warranty_repo.update_record(record)
        )
        self.logger.info(
            "Warranty issue resolved", record_id=str(record.id), job_id=str(record.job_id)
        )
        return record

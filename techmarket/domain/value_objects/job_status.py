"""
Job status value objects.
"""

from enum import Enum
from typing import Dict, FrozenSet


class JobStatus(str, Enum):
    """Job lifecycle status enumeration."""

    PENDING = "PENDING"
    SOFT_LOCKED = "SOFT_LOCKED"
    NEGOTIATION_PENDING = "NEGOTIATION_PENDING"
    WAITING_FOR_PAYMENT = "WAITING_FOR_PAYMENT"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETION_PENDING_APPROVAL = "COMPLETION_PENDING_APPROVAL"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Check if the transition to ``target`` is allowed."""
        return target in VALID_TRANSITIONS[self]

    def is_final(self) -> bool:
        """Check if status is terminal."""
        return self in [self.COMPLETED, self.CANCELLED]

    def is_payment_locked(self) -> bool:
        """Check if payment has been captured for this status."""
        return self in [
            self.ASSIGNED,
            self.IN_PROGRESS,
            self.COMPLETION_PENDING_APPROVAL,
            self.COMPLETED,
        ]

    def is_open_for_acceptance(self) -> bool:
        """Check if technicians may accept the job."""
        return self == self.PENDING


VALID_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.SOFT_LOCKED, JobStatus.CANCELLED}),
    JobStatus.SOFT_LOCKED: frozenset(
        {
            JobStatus.WAITING_FOR_PAYMENT,
            JobStatus.NEGOTIATION_PENDING,
            JobStatus.PENDING,
            JobStatus.CANCELLED,
        }
    ),
    JobStatus.NEGOTIATION_PENDING: frozenset(
        {JobStatus.WAITING_FOR_PAYMENT, JobStatus.PENDING, JobStatus.CANCELLED}
    ),
    JobStatus.WAITING_FOR_PAYMENT: frozenset(
        {JobStatus.ASSIGNED, JobStatus.PENDING, JobStatus.CANCELLED}
    ),
    JobStatus.ASSIGNED: frozenset({JobStatus.IN_PROGRESS, JobStatus.CANCELLED}),
    JobStatus.IN_PROGRESS: frozenset(
        {JobStatus.COMPLETION_PENDING_APPROVAL, JobStatus.CANCELLED}
    ),
    JobStatus.COMPLETION_PENDING_APPROVAL: frozenset(
        {JobStatus.COMPLETED, JobStatus.IN_PROGRESS, JobStatus.CANCELLED}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


class TimeoutReason(str, Enum):
    """Reasons appended to a job's timeout log when a window lapses."""

    SOFT_LOCK_TIMEOUT = "SOFT_LOCK_TIMEOUT"
    PAYMENT_DEADLINE_TIMEOUT = "PAYMENT_DEADLINE_TIMEOUT"
    NEGOTIATION_TIMEOUT = "NEGOTIATION_TIMEOUT"


class TimerKind(str, Enum):
    """Single-shot timers armed by the lifecycle controller."""

    SOFT_LOCK = "soft_lock"
    PAYMENT_DEADLINE = "payment_deadline"
    NEGOTIATION = "negotiation"

    @property
    def guarded_status(self) -> JobStatus:
        """Status the job must still be in for the timer to apply."""
        return {
            TimerKind.SOFT_LOCK: JobStatus.SOFT_LOCKED,
            TimerKind.PAYMENT_DEADLINE: JobStatus.WAITING_FOR_PAYMENT,
            TimerKind.NEGOTIATION: JobStatus.NEGOTIATION_PENDING,
        }[self]

    @property
    def timeout_reason(self) -> TimeoutReason:
        return {
            TimerKind.SOFT_LOCK: TimeoutReason.SOFT_LOCK_TIMEOUT,
            TimerKind.PAYMENT_DEADLINE: TimeoutReason.PAYMENT_DEADLINE_TIMEOUT,
            TimerKind.NEGOTIATION: TimeoutReason.NEGOTIATION_TIMEOUT,
        }[self]


class ClosureReason(str, Enum):
    """Why a job ended up CANCELLED."""

    DEALER_CANCELLED = "DEALER_CANCELLED"
    REPOST_LIMIT_EXCEEDED = "REPOST_LIMIT_EXCEEDED"

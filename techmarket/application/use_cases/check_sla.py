"""SLA monitor use case."""

from datetime import datetime, timezone
from typing import List, Optional

from techmarket.application.interfaces.repositories import JobRepositoryInterface
from techmarket.application.interfaces.services import (
    NotificationDispatcherInterface,
    Recipient,
)
from techmarket.application.services.risk_engine import SlaViolation, check_sla
from techmarket.config.logging import get_logger
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.notification_channel import NotificationChannel

logger = get_logger(__name__)


class CheckSlaUseCase:
    """Scans active jobs and tells dealers about late or overrunning work."""

    def __init__(
        self,
        job_repo: JobRepositoryInterface,
        notifier: NotificationDispatcherInterface,
        start_hours: int = 24,
        duration_multiplier: float = 1.5,
    ):
        self.job_repo = job_repo
        self.notifier = notifier
        self.start_hours = start_hours
        self.duration_multiplier = duration_multiplier

    async def execute(self, now: Optional[datetime] = None) -> List[SlaViolation]:
        now = now or datetime.now(timezone.utc)
        jobs = await self.job_repo.find_active_for_sla()

        violations = []
        for job in jobs:
            for violation in check_sla(
                job, now, self.start_hours, self.duration_multiplier
            ):
                violations.append(violation)
                logger.warning(
                    "SLA violation",
                    job_id=str(job.id),
                    job_number=job.job_number,
                    status=job.status.value,
                    message=violation.message,
                )
                self.notifier.notify(
                    Recipient.for_actor(ActorRole.DEALER, job.dealer_id),
                    NotificationChannel.EMAIL,
                    {
                        "template": "sla_violation",
                        "job_id": str(job.id),
                        "job_number": job.job_number,
                        "message": violation.message,
                    },
                )

        logger.info("SLA check finished", jobs=len(jobs), violations=len(violations))
        return violations

"""
Announces open jobs to matched technicians.
"""

from typing import List

from techmarket.application.interfaces.repositories import TechnicianRepositoryInterface
from techmarket.application.interfaces.services import (
    NotificationDispatcherInterface,
    Recipient,
)
from techmarket.application.services.job_matching_engine import JobMatchingEngine
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.technician import Technician
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.notification_channel import NotificationChannel
from techmarket.infrastructure.monitoring.metrics import record_match_candidates

logger = get_logger(__name__)


class CandidateNotifier:
    """Runs the matcher for a job and fans out in-app notifications."""

    def __init__(
        self,
        technician_repo: TechnicianRepositoryInterface,
        matching_engine: JobMatchingEngine,
        notifier: NotificationDispatcherInterface,
    ):
        self.technician_repo = technician_repo
        self.matching_engine = matching_engine
        self.notifier = notifier
        self.logger = logger

    async def announce(self, job: Job, template: str = "job_available") -> List[Technician]:
        """Notify every eligible technician about ``job``.

        Runs after the job is committed, so failures are logged and an
        empty candidate list is returned.
        """
        try:
            technicians = await self.technician_repo.find_approved()
            candidates = await self.matching_engine.find_candidates(job, technicians)
        except Exception as e:
            self.logger.error(
                "Candidate matching failed",
                job_id=str(job.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        record_match_candidates(len(candidates))
        for technician in candidates:
            self.notifier.notify(
                Recipient.for_actor(ActorRole.TECHNICIAN, technician.id),
                NotificationChannel.IN_APP,
                {
                    "template": template,
                    "job_id": str(job.id),
                    "job_number": job.job_number,
                    "title": job.title,
                    "city": job.city,
                },
            )
        return candidates

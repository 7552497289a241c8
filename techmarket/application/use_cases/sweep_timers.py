"""Sweep expired job timers."""

from datetime import datetime, timezone
from typing import Dict, Optional

from techmarket.application.interfaces.repositories import JobRepositoryInterface
from techmarket.application.services.job_lifecycle import JobLifecycleController
from techmarket.application.services.transaction_service import TransactionService
from techmarket.config.logging import get_logger
from techmarket.domain.value_objects.job_status import TimerKind

logger = get_logger(__name__)


class SweepExpiredTimersUseCase:
    """Applies every lapsed soft-lock, payment and negotiation window.

    Backstop for timer messages that were lost or never scheduled; each job
    still goes through ``handle_timer`` so a late sweep is harmless.
    """

    def __init__(
        self,
        job_repo: JobRepositoryInterface,
        lifecycle: JobLifecycleController,
        transaction_service: TransactionService,
        batch_size: int = 100,
    ):
        self.job_repo = job_repo
        self.lifecycle = lifecycle
        self.transaction_service = transaction_service
        self.batch_size = batch_size

    async def execute(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or datetime.now(timezone.utc)
        applied = {}

        for kind in TimerKind:
            jobs = await self.job_repo.find_expired_timers(kind, now, limit=self.batch_size)
            count = 0
            for job in jobs:
                try:
                    result = await self.lifecycle.handle_timer(job.id, kind, now)
                except Exception as e:
                    # the session is shared by the whole batch
                    await self.transaction_service.rollback()
                    logger.error(
                        "Timer sweep failed for job",
                        job_id=str(job.id),
                        kind=kind.value,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue
                if result is not None and len(result.timeout_reasons) > len(job.timeout_reasons):
                    count += 1
            applied[kind.value] = count

        if any(applied.values()):
            logger.info("Timer sweep applied timeouts", **applied)
        return applied

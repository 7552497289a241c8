"""
Celery tasks for job timers.

``fire_job_timer_task`` is the single-shot timer scheduled at each deadline.
``sweep_expired_timers_task`` runs on beat and applies any window whose
timer message was lost. Both go through the lifecycle controller, so a
timer that fires late, or twice, changes nothing.
"""

import random
from uuid import UUID

from celery import current_app

from techmarket.config.logging import get_logger
from techmarket.infrastructure.monitoring.metrics import record_worker_task

from .runner import run_async_in_new_loop

logger = get_logger(__name__)


@current_app.task(bind=True, max_retries=3, name="fire_job_timer_task", acks_late=True)
def fire_job_timer_task(self, job_id: str, kind: str):
    """Apply one timer to one job."""
    from techmarket.config.database import task_session
    from techmarket.domain.value_objects.job_status import TimerKind
    from techmarket.infrastructure.factories import (
        build_lifecycle_controller,
        build_notification_dispatcher,
    )
    from techmarket.infrastructure.scheduling.celery_timer_scheduler import (
        CeleryTimerScheduler,
    )

    async def fire():
        notifier = build_notification_dispatcher()
        try:
            async with task_session() as session:
                controller = build_lifecycle_controller(
                    session, notifier, CeleryTimerScheduler()
                )
                job = await controller.handle_timer(UUID(job_id), TimerKind(kind))
                return job.status.value if job else None
        finally:
            await notifier.drain()

    try:
        status = run_async_in_new_loop(fire())
        record_worker_task("fire_job_timer", "success")
        return {"job_id": job_id, "kind": kind, "status": status}

    except Exception as e:
        record_worker_task("fire_job_timer", "error")
        logger.error(
            "Job timer task failed",
            job_id=job_id,
            kind=kind,
            error=str(e),
            error_type=type(e).__name__,
            attempt=self.request.retries + 1,
        )
        if self.request.retries < self.max_retries:
            delay = (2**self.request.retries) + random.random()
            raise self.retry(countdown=delay, max_retries=self.max_retries)
        # The beat sweep picks the job up on its next run
        return {"job_id": job_id, "kind": kind, "status": "failed"}


@current_app.task(bind=True, max_retries=0, name="sweep_expired_timers_task")
def sweep_expired_timers_task(self):
    """Apply every lapsed soft-lock, payment and negotiation window."""
    from techmarket.application.services.transaction_service import TransactionService
    from techmarket.application.use_cases.sweep_timers import SweepExpiredTimersUseCase
    from techmarket.config.database import task_session
    from techmarket.infrastructure.database.repositories import JobRepository
    from techmarket.infrastructure.factories import (
        build_lifecycle_controller,
        build_notification_dispatcher,
    )
    from techmarket.infrastructure.scheduling.celery_timer_scheduler import (
        CeleryTimerScheduler,
    )

    async def sweep():
        notifier = build_notification_dispatcher()
        try:
            async with task_session() as session:
                controller = build_lifecycle_controller(
                    session, notifier, CeleryTimerScheduler()
                )
                use_case = SweepExpiredTimersUseCase(
                    JobRepository(session), controller, TransactionService(session)
                )
                return await use_case.execute()
        finally:
            await notifier.drain()

    try:
        applied = run_async_in_new_loop(sweep())
        record_worker_task("sweep_expired_timers", "success")
        return {"status": "success", "applied": applied}
    except Exception as e:
        record_worker_task("sweep_expired_timers", "error")
        logger.error("Timer sweep task failed", error=str(e), error_type=type(e).__name__)
        return {"status": "error", "error": str(e)}

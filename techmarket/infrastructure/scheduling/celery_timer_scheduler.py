"""
Celery-backed single-shot job timers.
"""

from datetime import datetime
from uuid import UUID

from techmarket.application.interfaces.services import TimerSchedulerInterface
from techmarket.config.logging import get_logger
from techmarket.domain.value_objects.job_status import TimerKind

logger = get_logger(__name__)

FIRE_JOB_TIMER_TASK = "fire_job_timer_task"


class CeleryTimerScheduler(TimerSchedulerInterface):
    """Enqueues ``fire_job_timer_task`` with an ETA at the deadline.

    Delivery is at-least-once; the task re-enters the lifecycle controller,
    which ignores timers whose window is no longer open.
    """

    def __init__(self, app=None):
        if app is None:
            from techmarket.background.celery_app import celery_app

            app = celery_app
        self.app = app

    def schedule(self, job_id: UUID, kind: TimerKind, fire_at: datetime) -> None:
        self.app.send_task(
            FIRE_JOB_TIMER_TASK,
            args=[str(job_id), kind.value],
            eta=fire_at,
            queue="timers",
        )
        logger.debug(
            "Job timer scheduled",
            job_id=str(job_id),
            kind=kind.value,
            fire_at=fire_at.isoformat(),
        )

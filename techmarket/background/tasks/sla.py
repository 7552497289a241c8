"""
Celery task polling job SLAs.
"""

from celery import current_app

from techmarket.config.logging import get_logger
from techmarket.infrastructure.monitoring.metrics import record_worker_task

from .runner import run_async_in_new_loop

logger = get_logger(__name__)


@current_app.task(bind=True, max_retries=0, name="check_sla_task")
def check_sla_task(self):
    from techmarket.application.use_cases.check_sla import CheckSlaUseCase
    from techmarket.config.database import task_session
    from techmarket.config.settings import settings
    from techmarket.infrastructure.database.repositories import JobRepository
    from techmarket.infrastructure.factories import build_notification_dispatcher

    async def check():
        notifier = build_notification_dispatcher()
        try:
            async with task_session() as session:
                use_case = CheckSlaUseCase(
                    JobRepository(session),
                    notifier,
                    start_hours=settings.SLA_START_HOURS,
                    duration_multiplier=settings.SLA_DURATION_MULTIPLIER,
                )
                return await use_case.execute()
        finally:
            await notifier.drain()

    try:
        violations = run_async_in_new_loop(check())
        record_worker_task("check_sla", "success")
        return {"status": "success", "violations": len(violations)}
    except Exception as e:
        record_worker_task("check_sla", "error")
        logger.error("SLA check task failed", error=str(e), error_type=type(e).__name__)
        return {"status": "error", "error": str(e)}

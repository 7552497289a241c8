"""
Celery task releasing warranty holds.
"""

from celery import current_app

from techmarket.config.logging import get_logger
from techmarket.infrastructure.monitoring.metrics import record_worker_task

from .runner import run_async_in_new_loop

logger = get_logger(__name__)


@current_app.task(bind=True, max_retries=0, name="release_warranty_holds_task")
def release_warranty_holds_task(self):
    """Release held amounts whose warranty window ended, unless gated."""
    from techmarket.application.services.transaction_service import TransactionService
    from techmarket.application.use_cases.release_holds import ReleaseExpiredHoldsUseCase
    from techmarket.config.database import task_session
    from techmarket.infrastructure.factories import build_escrow_manager

    async def release():
        async with task_session() as session:
            use_case = ReleaseExpiredHoldsUseCase(
                build_escrow_manager(session), TransactionService(session)
            )
            released = await use_case.execute()
            return [str(split.job_id) for split in released]

    try:
        released = run_async_in_new_loop(release())
        record_worker_task("release_warranty_holds", "success")
        logger.info("Warranty hold release task finished", released=len(released))
        return {"status": "success", "released_job_ids": released}
    except Exception as e:
        record_worker_task("release_warranty_holds", "error")
        logger.error(
            "Warranty hold release task failed", error=str(e), error_type=type(e).__name__
        )
        return {"status": "error", "error": str(e)}

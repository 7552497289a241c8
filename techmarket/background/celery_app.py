"""
Celery application configuration and setup.
"""

from celery import Celery
from celery.signals import worker_process_init

from techmarket.config.logging import configure_logging
from techmarket.config.settings import settings

celery_app = Celery(
    "techmarket",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=[
        "techmarket.background.tasks.timers",
        "techmarket.background.tasks.warranty",
        "techmarket.background.tasks.sla",
    ],
)

celery_app.conf.update(
    # Task routing
    task_routes={
        "fire_job_timer_task": {"queue": "timers"},
        "sweep_expired_timers_task": {"queue": "timers"},
        "release_warranty_holds_task": {"queue": "maintenance"},
        "check_sla_task": {"queue": "maintenance"},
    },
    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,
    worker_disable_rate_limits=True,
    # Task configuration
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_ignore_result=False,
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    task_default_queue="default",
    # Beat scheduler configuration
    beat_schedule={
        # Backstop for lost or unscheduled timer messages
        "sweep-expired-timers": {
            "task": "sweep_expired_timers_task",
            "schedule": float(settings.TIMER_SWEEP_INTERVAL_SECONDS),
            "options": {"queue": "timers"},
        },
        "release-warranty-holds": {
            "task": "release_warranty_holds_task",
            "schedule": float(settings.WARRANTY_RELEASE_INTERVAL_MINUTES * 60),
            "options": {"queue": "maintenance"},
        },
        "check-sla": {
            "task": "check_sla_task",
            "schedule": float(settings.SLA_POLL_INTERVAL_MINUTES * 60),
            "options": {"queue": "maintenance"},
        },
    },
    # Task time limits
    task_soft_time_limit=settings.CELERY_TASK_SOFT_TIME_LIMIT,
    task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
    # Timers must survive a worker restart
    task_acks_late=True,
    task_reject_on_worker_lost=settings.CELERY_TASK_REJECT_ON_WORKER_LOST,
    worker_send_task_events=True,
    task_send_sent_event=True,
    worker_hijack_root_logger=False,
)


@worker_process_init.connect
def _configure_worker_logging(**kwargs):
    configure_logging()


if __name__ == "__main__":
    celery_app.start()

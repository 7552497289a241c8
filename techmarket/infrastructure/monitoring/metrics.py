"""
Prometheus metrics for system monitoring.
"""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)

from techmarket.config.logging import get_logger

logger = get_logger(__name__)

registry = CollectorRegistry()
prometheus_multiproc_dir = os.getenv("PROMETHEUS_MULTIPROC_DIR")

if prometheus_multiproc_dir:
    if os.path.isdir(prometheus_multiproc_dir) and os.access(
        prometheus_multiproc_dir, os.W_OK
    ):
        try:
            multiprocess.MultiProcessCollector(registry)
        except ValueError as e:
            logger.warning("Failed to initialize multiprocess collector", error=str(e))
            registry = CollectorRegistry()
    else:
        logger.warning(
            "PROMETHEUS_MULTIPROC_DIR is not a writable directory",
            path=prometheus_multiproc_dir,
        )


class DummyMetric:
    """No-op stand-in used when a metric cannot be registered."""

    def labels(self, *args, **kwargs):
        return self

    def inc(self, amount=1):
        pass

    def observe(self, value):
        pass


def get_registry() -> CollectorRegistry:
    """Get the current registry."""
    return registry


def _get_metric(metric_class, *args, **kwargs):
    try:
        return metric_class(*args, **kwargs, registry=get_registry())
    except ValueError as e:
        logger.warning(
            "Failed to create metric", metric=metric_class.__name__, error=str(e)
        )
        return DummyMetric()


JOBS_POSTED = _get_metric(
    Counter,
    "jobs_posted_total",
    "Total number of jobs posted",
    ["service_domain_id"],
)

JOB_TRANSITIONS = _get_metric(
    Counter,
    "job_transitions_total",
    "Committed job status transitions",
    ["from_status", "to_status"],
)

JOB_TIMEOUTS = _get_metric(
    Counter,
    "job_timeouts_total",
    "Timeouts applied to jobs",
    ["reason"],
)

STALE_TIMERS = _get_metric(
    Counter,
    "job_stale_timers_total",
    "Timers that fired after the job had moved on",
    ["kind"],
)

ASSIGNMENT_CONFLICTS = _get_metric(
    Counter,
    "job_cas_conflicts_total",
    "Compare-and-set failures on the job row",
    ["operation"],
)

MATCH_CANDIDATES = _get_metric(
    Histogram,
    "job_match_candidates",
    "Technicians matched per job",
    buckets=[0, 1, 2, 5, 10, 25, 50, 100, 250],
)

HOLDS_SETTLED = _get_metric(
    Counter,
    "warranty_holds_settled_total",
    "Warranty holds released or forfeited",
    ["hold_status"],
)

NOTIFICATIONS = _get_metric(
    Counter,
    "notifications_total",
    "Notification deliveries by outcome",
    ["channel", "status"],
)

GATEWAY_REQUESTS = _get_metric(
    Histogram,
    "notification_gateway_request_seconds",
    "Latency of calls to the notification gateway",
    ["outcome"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

WORKER_TASKS_PROCESSED = _get_metric(
    Counter,
    "worker_tasks_processed_total",
    "Total number of background tasks processed",
    ["task_type", "status"],
)

API_REQUESTS = _get_metric(
    Counter,
    "api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status_code"],
)

API_REQUEST_DURATION = _get_metric(
    Histogram,
    "api_request_duration_seconds",
    "Time spent processing API requests",
    ["method", "endpoint"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)


def record_job_posted(service_domain_id: str):
    JOBS_POSTED.labels(service_domain_id=service_domain_id or "unknown").inc()


def record_transition(from_status: str, to_status: str):
    JOB_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()


def record_timeout(reason: str):
    JOB_TIMEOUTS.labels(reason=reason).inc()


def record_stale_timer(kind: str):
    STALE_TIMERS.labels(kind=kind).inc()


def record_conflict(operation: str):
    ASSIGNMENT_CONFLICTS.labels(operation=operation).inc()


def record_match_candidates(count: int):
    MATCH_CANDIDATES.observe(count)


def record_hold_settled(hold_status: str):
    HOLDS_SETTLED.labels(hold_status=hold_status).inc()


def record_notification(channel: str, status: str):
    NOTIFICATIONS.labels(channel=channel, status=status).inc()


def record_gateway_request(outcome: str, duration: float):
    GATEWAY_REQUESTS.labels(outcome=outcome).observe(duration)


def record_worker_task(task_type: str, status: str):
    WORKER_TASKS_PROCESSED.labels(task_type=task_type, status=status).inc()


def record_api_request(method: str, endpoint: str, status_code: int, duration: float):
    API_REQUESTS.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
    API_REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics():
    """Get all metrics in Prometheus format."""
    return generate_latest(registry)


def get_metrics_content_type():
    """Get the content type for metrics."""
    return CONTENT_TYPE_LATEST

"""
Builders that wire repositories and services around one database session.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.services import (
    NotificationDispatcherInterface,
    TimerSchedulerInterface,
)
from techmarket.application.services.candidate_notifier import CandidateNotifier
from techmarket.application.services.commission import PercentageCommissionCalculator
from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.job_lifecycle import (
    JobLifecycleController,
    LifecyclePolicy,
)
from techmarket.application.services.job_matching_engine import JobMatchingEngine
from techmarket.application.services.notification_dispatcher import NotificationDispatcher
from techmarket.application.services.retry_handler import RetryHandler
from techmarket.application.services.risk_engine import RiskEngine
from techmarket.application.services.transaction_service import TransactionService
from techmarket.config.settings import Settings, settings as default_settings
from techmarket.infrastructure.database.repositories import (
    DealerRepository,
    JobHistoryRepository,
    JobRepository,
    PaymentSplitRepository,
    TaxonomyRepository,
    TechnicianRepository,
    WarrantyRepository,
)
from techmarket.infrastructure.notifications.transports import (
    LoggingNotificationTransport,
    WebhookNotificationTransport,
)


def build_notification_dispatcher(
    settings: Optional[Settings] = None,
) -> NotificationDispatcher:
    """Webhook delivery when a gateway URL is configured, log-only otherwise."""
    settings = settings or default_settings
    if settings.NOTIFICATION_WEBHOOK_URL:
        transport = WebhookNotificationTransport(
            settings.NOTIFICATION_WEBHOOK_URL, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS
        )
    else:
        transport = LoggingNotificationTransport()
    return NotificationDispatcher(
        transport, RetryHandler(), max_retries=settings.NOTIFICATION_MAX_RETRIES
    )


def build_matching_engine(
    session: AsyncSession, settings: Optional[Settings] = None
) -> JobMatchingEngine:
    settings = settings or default_settings
    return JobMatchingEngine(
        TaxonomyRepository(session), default_radius_km=settings.DEFAULT_SERVICE_RADIUS_KM
    )


def build_escrow_manager(
    session: AsyncSession, settings: Optional[Settings] = None
) -> EscrowManager:
    settings = settings or default_settings
    return EscrowManager(
        PaymentSplitRepository(session),
        WarrantyRepository(session),
        PercentageCommissionCalculator(settings.PLATFORM_COMMISSION_PERCENT),
    )


def build_risk_engine(session: AsyncSession) -> RiskEngine:
    return RiskEngine(
        JobHistoryRepository(session),
        TechnicianRepository(session),
        DealerRepository(session),
    )


def build_candidate_notifier(
    session: AsyncSession,
    notifier: NotificationDispatcherInterface,
    settings: Optional[Settings] = None,
) -> CandidateNotifier:
    return CandidateNotifier(
        TechnicianRepository(session), build_matching_engine(session, settings), notifier
    )


def build_lifecycle_controller(
    session: AsyncSession,
    notifier: NotificationDispatcherInterface,
    timer_scheduler: Optional[TimerSchedulerInterface] = None,
    settings: Optional[Settings] = None,
) -> JobLifecycleController:
    settings = settings or default_settings
    return JobLifecycleController(
        job_repo=JobRepository(session),
        warranty_repo=WarrantyRepository(session),
        transaction_service=TransactionService(session),
        escrow_manager=build_escrow_manager(session, settings),
        risk_engine=build_risk_engine(session),
        notifier=notifier,
        timer_scheduler=timer_scheduler,
        candidate_notifier=build_candidate_notifier(session, notifier, settings),
        policy=LifecyclePolicy.from_settings(settings),
    )

"""
FastAPI dependency injection container.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.job_lifecycle import JobLifecycleController
from techmarket.application.services.notification_dispatcher import NotificationDispatcher
from techmarket.application.services.risk_engine import RiskEngine
from techmarket.application.services.transaction_service import TransactionService
from techmarket.application.use_cases.list_jobs import ListJobsUseCase
from techmarket.application.use_cases.post_job import PostJobUseCase
from techmarket.config.database import get_db_session
from techmarket.config.logging import get_logger
from techmarket.config.settings import settings
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.infrastructure.database.repositories import (
    DealerRepository,
    JobRepository,
    TaxonomyRepository,
    TechnicianRepository,
)
from techmarket.infrastructure.factories import (
    build_candidate_notifier,
    build_escrow_manager,
    build_lifecycle_controller,
    build_matching_engine,
    build_notification_dispatcher,
    build_risk_engine,
)
from techmarket.infrastructure.monitoring.health_checks import HealthChecker
from techmarket.infrastructure.scheduling.celery_timer_scheduler import (
    CeleryTimerScheduler,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """Caller identity asserted by the upstream auth layer."""

    role: ActorRole
    id: Optional[UUID] = None


# Caller identity
async def get_actor(
    x_actor_role: Annotated[Optional[str], Header()] = None,
    x_actor_id: Annotated[Optional[str], Header()] = None,
) -> Actor:
    """Read ``X-Actor-Role`` and ``X-Actor-Id``; only admins may omit the id."""
    if not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Actor-Role header"
        )
    try:
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown actor role '{x_actor_role}'",
        )

    actor_id = None
    if x_actor_id:
        try:
            actor_id = UUID(x_actor_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="X-Actor-Id must be a UUID"
            )
    elif role != ActorRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Actor-Id header"
        )

    return Actor(role=role, id=actor_id)


def require_role(*roles: ActorRole):
    """Dependency factory that admits only callers with one of ``roles``."""

    async def dependency(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{actor.role.value}' may not perform this action",
            )
        return actor

    return dependency


# Database Dependencies
async def get_job_repository(
    db: AsyncSession = Depends(get_db_session),
) -> JobRepository:
    """Get job repository instance."""
    return JobRepository(db)


# Process-wide services
@lru_cache(maxsize=None)
def get_notification_dispatcher() -> NotificationDispatcher:
    """One dispatcher per process; deliveries run on the server's event loop."""
    return build_notification_dispatcher(settings)


@lru_cache(maxsize=None)
def get_timer_scheduler() -> CeleryTimerScheduler:
    return CeleryTimerScheduler()


# Service Dependencies
async def get_escrow_manager(
    db: AsyncSession = Depends(get_db_session),
) -> EscrowManager:
    """Get escrow manager instance."""
    return build_escrow_manager(db, settings)


async def get_risk_engine(
    db: AsyncSession = Depends(get_db_session),
) -> RiskEngine:
    """Get risk engine instance."""
    return build_risk_engine(db)


async def get_lifecycle_controller(
    db: AsyncSession = Depends(get_db_session),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
    timer_scheduler: CeleryTimerScheduler = Depends(get_timer_scheduler),
) -> JobLifecycleController:
    """Get lifecycle controller bound to the request's session."""
    return build_lifecycle_controller(db, notifier, timer_scheduler, settings)


async def get_post_job_use_case(
    db: AsyncSession = Depends(get_db_session),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> PostJobUseCase:
    return PostJobUseCase(
        job_repo=JobRepository(db),
        dealer_repo=DealerRepository(db),
        taxonomy_repo=TaxonomyRepository(db),
        transaction_service=TransactionService(db),
        candidate_notifier=build_candidate_notifier(db, notifier, settings),
        max_reposts=settings.DEFAULT_MAX_REPOSTS,
    )


async def get_list_jobs_use_case(
    db: AsyncSession = Depends(get_db_session),
) -> ListJobsUseCase:
    return ListJobsUseCase(
        job_repo=JobRepository(db),
        technician_repo=TechnicianRepository(db),
        dealer_repo=DealerRepository(db),
        matching_engine=build_matching_engine(db, settings),
        escrow_manager=build_escrow_manager(db, settings),
    )


async def get_health_checker(
    db: AsyncSession = Depends(get_db_session),
) -> HealthChecker:
    """Get health checker instance."""
    return HealthChecker(db)


# Type aliases for cleaner dependency injection
ActorDep = Annotated[Actor, Depends(get_actor)]
DealerActorDep = Annotated[Actor, Depends(require_role(ActorRole.DEALER))]
TechnicianActorDep = Annotated[Actor, Depends(require_role(ActorRole.TECHNICIAN))]
AdminActorDep = Annotated[Actor, Depends(require_role(ActorRole.ADMIN))]
JobRepositoryDep = Annotated[JobRepository, Depends(get_job_repository)]
EscrowManagerDep = Annotated[EscrowManager, Depends(get_escrow_manager)]
RiskEngineDep = Annotated[RiskEngine, Depends(get_risk_engine)]
LifecycleControllerDep = Annotated[
    JobLifecycleController, Depends(get_lifecycle_controller)
]
PostJobUseCaseDep = Annotated[PostJobUseCase, Depends(get_post_job_use_case)]
ListJobsUseCaseDep = Annotated[ListJobsUseCase, Depends(get_list_jobs_use_case)]
HealthCheckerDep = Annotated[HealthChecker, Depends(get_health_checker)]

"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from techmarket.application.services.candidate_notifier import CandidateNotifier
from techmarket.application.services.commission import PercentageCommissionCalculator
from techmarket.application.services.escrow_manager import EscrowManager
from techmarket.application.services.job_lifecycle import (
    JobLifecycleController,
    LifecyclePolicy,
)
from techmarket.application.services.job_matching_engine import JobMatchingEngine
from techmarket.application.services.risk_engine import RiskEngine
from techmarket.domain.entities.dealer import Dealer
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.technician import Technician
from techmarket.domain.value_objects.address import Address
from techmarket.domain.value_objects.approval_status import ApprovalStatus
from techmarket.infrastructure.database.models import Base
from tests.fakes import (
    FakeTransactionService,
    InMemoryDealerRepository,
    InMemoryHistoryRepository,
    InMemoryJobRepository,
    InMemoryPaymentSplitRepository,
    InMemoryTaxonomyRepository,
    InMemoryTechnicianRepository,
    InMemoryWarrantyRepository,
    RecordingNotifier,
    RecordingTimerScheduler,
)

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FIXED_OTP = "424242"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def now():
    """A fixed point in time so timer arithmetic is deterministic."""
    return datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def dealer():
    """Approved dealer account."""
    return Dealer(
        id=uuid4(),
        business_name="Acme Appliances",
        contact_name="Priya Nair",
        phone="+91-98450-00001",
        email="ops@acme.example",
        approval_status=ApprovalStatus.APPROVED,
    )


@pytest.fixture
def technician():
    """Approved technician based in Bangalore with an electrical skill."""
    return Technician(
        id=uuid4(),
        name="Ravi Kumar",
        phone="+91-98450-00002",
        email="ravi@example.com",
        approval_status=ApprovalStatus.APPROVED,
        latitude=12.9716,
        longitude=77.5946,
        place_name="Bangalore",
        service_radius_km=25,
        primary_skills=[{"skillId": "sk-wiring", "domainId": "dom-electrical", "skill": "Wiring"}],
        service_categories=["Electrical"],
        rating=4.8,
    )


@pytest.fixture
def make_job(dealer):
    """Factory for PENDING jobs owned by ``dealer``; keyword overrides win."""

    def factory(**overrides) -> Job:
        values = dict(
            dealer_id=dealer.id,
            title="Fix ceiling fan",
            description="Fan wobbles and hums at high speed",
            work_details="Rebalance blades and replace capacitor if needed",
            customer_name="Anita Rao",
            customer_phone="+91-98450-12345",
            address=Address(
                street="12 MG Road", city="Bangalore", state="Karnataka", pincode="560001"
            ),
            service_domain_id="dom-electrical",
            service_category_id="cat-fans",
            service_sub_category_id="sub-ceiling-fans",
            latitude=12.9750,
            longitude=77.6050,
            estimated_price=Decimal("10000"),
        )
        values.update(overrides)
        return Job(**values)

    return factory


@pytest.fixture
def job_repo():
    return InMemoryJobRepository()


@pytest.fixture
def technician_repo(technician):
    return InMemoryTechnicianRepository([technician])


@pytest.fixture
def dealer_repo(dealer):
    return InMemoryDealerRepository([dealer])


@pytest.fixture
def taxonomy_repo():
    return InMemoryTaxonomyRepository(
        domains={"dom-electrical": "Electrical", "dom-plumbing": "Plumbing"},
        categories={"cat-fans": "Fans", "cat-pipes": "Pipes"},
        warranty_days={"sub-ceiling-fans": 15},
    )


@pytest.fixture
def history_repo():
    return InMemoryHistoryRepository()


@pytest.fixture
def split_repo():
    return InMemoryPaymentSplitRepository()


@pytest.fixture
def warranty_repo():
    return InMemoryWarrantyRepository()


@pytest.fixture
def transaction_service():
    return FakeTransactionService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def timer_scheduler():
    return RecordingTimerScheduler()


@pytest.fixture
def escrow_manager(split_repo, warranty_repo):
    return EscrowManager(split_repo, warranty_repo, PercentageCommissionCalculator(5))


@pytest.fixture
def risk_engine(history_repo, technician_repo, dealer_repo):
    return RiskEngine(history_repo, technician_repo, dealer_repo)


@pytest.fixture
def matching_engine(taxonomy_repo):
    return JobMatchingEngine(taxonomy_repo, default_radius_km=50)


@pytest.fixture
def candidate_notifier(technician_repo, matching_engine, notifier):
    return CandidateNotifier(technician_repo, matching_engine, notifier)


@pytest.fixture
def controller(
    job_repo,
    warranty_repo,
    transaction_service,
    escrow_manager,
    risk_engine,
    notifier,
    timer_scheduler,
    candidate_notifier,
):
    """Lifecycle controller wired to in-memory collaborators."""
    return JobLifecycleController(
        job_repo=job_repo,
        warranty_repo=warranty_repo,
        transaction_service=transaction_service,
        escrow_manager=escrow_manager,
        risk_engine=risk_engine,
        notifier=notifier,
        timer_scheduler=timer_scheduler,
        candidate_notifier=candidate_notifier,
        policy=LifecyclePolicy(),
        otp_generator=lambda length: FIXED_OTP,
    )

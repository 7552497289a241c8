"""
Unit tests for role-scoped job listing and redaction.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio

from techmarket.application.services.job_privacy import job_view
from techmarket.application.use_cases.list_jobs import ListJobsRequest, ListJobsUseCase
from techmarket.domain.exceptions.not_found_error import (
    JobNotFoundError,
    TechnicianNotFoundError,
)
from techmarket.domain.exceptions.validation_error import ActorMismatchError
from techmarket.domain.value_objects.actor_role import ActorRole
from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod

MUMBAI = dict(latitude=19.0760, longitude=72.8777)


class TestJobView:
    def test_technician_sees_net_amount_only(self, make_job, technician, dealer):
        job = make_job()

        view = job_view(
            job,
            ActorRole.TECHNICIAN,
            actor_id=technician.id,
            dealer=dealer,
            net_amount_for=lambda gross: gross * Decimal("0.95"),
        )

        assert view["net_amount"] == Decimal("9500")
        assert view["estimated_price"] is None
        assert view["final_price"] is None
        assert view["customer_phone"] is None
        assert view["street"] is None
        assert view["dealer"] is None
        assert view["city"] == "Bangalore"

    def test_technician_sees_contacts_once_payment_locked(self, make_job, technician, dealer):
        job = make_job(
            status=JobStatus.ASSIGNED,
            technician_id=technician.id,
            payment_method=PaymentMethod.ONLINE,
        )

        view = job_view(job, ActorRole.TECHNICIAN, actor_id=technician.id, dealer=dealer)

        assert view["customer_phone"] == job.customer_phone
        assert view["street"] == "12 MG Road"
        assert view["dealer"]["business_name"] == "Acme Appliances"

    def test_other_technician_never_sees_contacts(self, make_job, technician):
        job = make_job(status=JobStatus.IN_PROGRESS, technician_id=technician.id)

        view = job_view(job, ActorRole.TECHNICIAN, actor_id=uuid4())

        assert view["customer_name"] is None

    def test_technician_offer_is_net(self, make_job, technician):
        job = make_job(
            status=JobStatus.NEGOTIATION_PENDING,
            technician_id=technician.id,
            offer_amount=Decimal("9000"),
        )

        view = job_view(
            job,
            ActorRole.TECHNICIAN,
            actor_id=technician.id,
            net_amount_for=lambda gross: None if gross is None else gross - 100,
        )

        assert view["offer_amount"] == Decimal("8900")

    @pytest.mark.parametrize(
        "status,visible",
        [
            (JobStatus.SOFT_LOCKED, False),
            (JobStatus.WAITING_FOR_PAYMENT, False),
            (JobStatus.ASSIGNED, True),
            (JobStatus.COMPLETED, True),
        ],
    )
    def test_dealer_sees_technician_after_payment(
        self, make_job, technician, dealer, status, visible
    ):
        job = make_job(status=status, technician_id=technician.id)

        view = job_view(job, ActorRole.DEALER, actor_id=dealer.id, technician=technician)

        assert (view["technician"] is not None) is visible
        assert view["estimated_price"] == Decimal("10000")
        assert view["customer_phone"] == job.customer_phone

    def test_permanent_rejection_flag(self, make_job, now):
        job = make_job(max_reposts=0)
        job.repost(now)

        assert job_view(job, ActorRole.DEALER)["permanently_rejected"] is True


class TestListJobsUseCase:
    """Test cases for ListJobsUseCase."""

    @pytest.fixture
    def use_case(self, job_repo, technician_repo, dealer_repo, matching_engine, escrow_manager):
        return ListJobsUseCase(
            job_repo, technician_repo, dealer_repo, matching_engine, escrow_manager
        )

    @pytest_asyncio.fixture
    async def seeded(self, job_repo, make_job, technician):
        other_dealer_job = make_job(dealer_id=uuid4(), title="Leaking tap")
        jobs = {
            "near": make_job(),
            "far": make_job(**MUMBAI),
            "assigned": make_job(status=JobStatus.ASSIGNED, technician_id=technician.id),
            "other_dealer": other_dealer_job,
        }
        for job in jobs.values():
            await job_repo.create(job)
        return jobs

    @pytest.mark.asyncio
    async def test_dealer_sees_own_jobs(self, use_case, seeded, dealer):
        views = await use_case.execute(ListJobsRequest(role=ActorRole.DEALER, actor_id=dealer.id))

        assert {v["id"] for v in views} == {
            seeded["near"].id,
            seeded["far"].id,
            seeded["assigned"].id,
        }

    @pytest.mark.asyncio
    async def test_dealer_status_filter(self, use_case, seeded, dealer):
        views = await use_case.execute(
            ListJobsRequest(
                role=ActorRole.DEALER, actor_id=dealer.id, statuses=[JobStatus.ASSIGNED]
            )
        )
        assert [v["id"] for v in views] == [seeded["assigned"].id]
        assert views[0]["technician"]["name"] == "Ravi Kumar"

    @pytest.mark.asyncio
    async def test_technician_available_jobs_are_matched(self, use_case, seeded, technician):
        views = await use_case.execute(
            ListJobsRequest(role=ActorRole.TECHNICIAN, actor_id=technician.id, available=True)
        )

        ids = {v["id"] for v in views}
        assert seeded["near"].id in ids
        assert seeded["far"].id not in ids
        assert seeded["assigned"].id not in ids
        assert all(v["customer_phone"] is None for v in views)
        assert all(v["net_amount"] == Decimal("9500.00") for v in views)

    @pytest.mark.asyncio
    async def test_available_jobs_page_past_ineligible_ones(
        self,
        job_repo,
        technician_repo,
        dealer_repo,
        matching_engine,
        escrow_manager,
        make_job,
        technician,
    ):
        far_jobs = [make_job(**MUMBAI) for _ in range(5)]
        near = [make_job(), make_job()]
        for job in far_jobs + near:
            await job_repo.create(job)
        use_case = ListJobsUseCase(
            job_repo,
            technician_repo,
            dealer_repo,
            matching_engine,
            escrow_manager,
            page_size=2,
        )

        views = await use_case.execute(
            ListJobsRequest(role=ActorRole.TECHNICIAN, actor_id=technician.id, available=True)
        )
        assert [v["id"] for v in views] == [job.id for job in near]

        capped = await use_case.execute(
            ListJobsRequest(
                role=ActorRole.TECHNICIAN, actor_id=technician.id, available=True, limit=1
            )
        )
        assert [v["id"] for v in capped] == [near[0].id]

    @pytest.mark.asyncio
    async def test_technician_own_jobs(self, use_case, seeded, technician):
        views = await use_case.execute(
            ListJobsRequest(role=ActorRole.TECHNICIAN, actor_id=technician.id)
        )

        assert [v["id"] for v in views] == [seeded["assigned"].id]
        assert views[0]["customer_phone"] == seeded["assigned"].customer_phone

    @pytest.mark.asyncio
    async def test_unknown_technician_cannot_browse(self, use_case, seeded):
        with pytest.raises(TechnicianNotFoundError):
            await use_case.execute(
                ListJobsRequest(role=ActorRole.TECHNICIAN, actor_id=uuid4(), available=True)
            )

    @pytest.mark.asyncio
    async def test_admin_sees_everything(self, use_case, seeded):
        views = await use_case.execute(ListJobsRequest(role=ActorRole.ADMIN))
        assert len(views) == 4

    @pytest.mark.asyncio
    async def test_get_one_scoping(self, use_case, seeded, dealer, technician):
        view = await use_case.get_one(seeded["near"].id, ActorRole.DEALER, dealer.id)
        assert view["id"] == seeded["near"].id

        with pytest.raises(ActorMismatchError):
            await use_case.get_one(seeded["other_dealer"].id, ActorRole.DEALER, dealer.id)

        # open jobs are browsable, assigned ones only by their technician
        await use_case.get_one(seeded["near"].id, ActorRole.TECHNICIAN, uuid4())
        with pytest.raises(ActorMismatchError):
            await use_case.get_one(seeded["assigned"].id, ActorRole.TECHNICIAN, uuid4())
        await use_case.get_one(seeded["assigned"].id, ActorRole.TECHNICIAN, technician.id)

    @pytest.mark.asyncio
    async def test_get_one_missing(self, use_case):
        with pytest.raises(JobNotFoundError):
            await use_case.get_one(uuid4(), ActorRole.ADMIN, None)

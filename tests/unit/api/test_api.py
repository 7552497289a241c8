"""
API tests: caller identity, routing and error mapping.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from techmarket.api import dependencies
from techmarket.api.app import create_app
from techmarket.application.use_cases.list_jobs import ListJobsUseCase
from techmarket.application.use_cases.post_job import PostJobUseCase
from techmarket.domain.value_objects.job_status import JobStatus
from techmarket.domain.value_objects.payment import PaymentMethod

PREFIX = "/api/v1"


def headers(role, actor_id=None):
    values = {"X-Actor-Role": role}
    if actor_id is not None:
        values["X-Actor-Id"] = str(actor_id)
    return values


@pytest.fixture
def app(
    controller,
    escrow_manager,
    risk_engine,
    job_repo,
    dealer_repo,
    technician_repo,
    taxonomy_repo,
    transaction_service,
    candidate_notifier,
    matching_engine,
):
    app = create_app()
    overrides = {
        dependencies.get_lifecycle_controller: lambda: controller,
        dependencies.get_escrow_manager: lambda: escrow_manager,
        dependencies.get_risk_engine: lambda: risk_engine,
        dependencies.get_job_repository: lambda: job_repo,
        dependencies.get_post_job_use_case: lambda: PostJobUseCase(
            job_repo, dealer_repo, taxonomy_repo, transaction_service, candidate_notifier
        ),
        dependencies.get_list_jobs_use_case: lambda: ListJobsUseCase(
            job_repo, technician_repo, dealer_repo, matching_engine, escrow_manager
        ),
    }
    app.dependency_overrides.update(overrides)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def store(job_repo, make_job):
    """Put a job straight into the in-memory repository."""

    def factory(**overrides):
        job = make_job(**overrides)
        job_repo.jobs[job.id] = job
        return job

    return factory


class TestHealth:
    def test_liveness(self, client):
        response = client.get(f"{PREFIX}/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_request_id_is_echoed(self, client):
        response = client.get(f"{PREFIX}/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in response.headers

    def test_metrics(self, client):
        response = client.get(f"{PREFIX}/health/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")


class TestActorHeaders:
    def test_missing_role(self, client):
        response = client.get(f"{PREFIX}/jobs/")

        assert response.status_code == 401
        assert response.json()["message"] == "Missing X-Actor-Role header"

    def test_unknown_role(self, client):
        response = client.get(f"{PREFIX}/jobs/", headers=headers("customer", uuid4()))
        assert response.status_code == 400

    def test_malformed_actor_id(self, client):
        response = client.get(f"{PREFIX}/jobs/", headers=headers("dealer", "not-a-uuid"))
        assert response.status_code == 400

    def test_dealer_needs_actor_id(self, client):
        response = client.get(f"{PREFIX}/jobs/", headers=headers("dealer"))
        assert response.status_code == 401

    def test_admin_may_omit_actor_id(self, client, store):
        store()
        response = client.get(f"{PREFIX}/jobs/", headers=headers("ADMIN"))

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_wrong_role_is_forbidden(self, client, store, dealer):
        job = store()

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/accept", headers=headers("dealer", dealer.id)
        )

        assert response.status_code == 403
        assert response.json()["type"] == "http_error"


class TestJobRoutes:
    def test_post_job(self, client, dealer, technician, notifier):
        response = client.post(
            f"{PREFIX}/jobs/",
            headers=headers("dealer", dealer.id),
            json={
                "title": "Fix ceiling fan",
                "description": "Fan wobbles",
                "work_details": "Rebalance blades",
                "customer_name": "Anita Rao",
                "customer_phone": "+91-98450-12345",
                "street": "12 MG Road",
                "city": "Bangalore",
                "state": "Karnataka",
                "pincode": "560001",
                "service_domain_id": "dom-electrical",
                "service_category_id": "cat-fans",
                "service_sub_category_id": "sub-ceiling-fans",
                "latitude": 12.975,
                "longitude": 77.605,
                "priority": "high",
                "estimated_price": "10000",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["notified_technicians"] == 1
        assert body["job"]["status"] == "PENDING"
        assert body["job"]["priority"] == "HIGH"
        assert body["job"]["warranty_days"] == 15
        assert notifier.templates() == ["job_available"]

    def test_post_job_rejects_unknown_priority(self, client, dealer):
        response = client.post(
            f"{PREFIX}/jobs/",
            headers=headers("dealer", dealer.id),
            json={"title": "Fix fan", "priority": "whenever"},
        )
        assert response.status_code == 422

    def test_blank_field_is_a_validation_error(self, client, dealer):
        payload = {
            field: "x"
            for field in (
                "title", "description", "work_details", "customer_name",
                "customer_phone", "street", "city", "state", "pincode",
                "service_domain_id", "service_category_id", "service_sub_category_id",
            )
        }
        payload["title"] = "   "

        response = client.post(
            f"{PREFIX}/jobs/", headers=headers("dealer", dealer.id), json=payload
        )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_technician_browse_is_redacted(self, client, store, technician):
        store()

        response = client.get(
            f"{PREFIX}/jobs/",
            params={"available": "true"},
            headers=headers("technician", technician.id),
        )

        assert response.status_code == 200
        [job] = response.json()
        assert job["customer_phone"] is None
        assert job["estimated_price"] is None
        assert Decimal(job["net_amount"]) == Decimal("9500")

    def test_status_filter(self, client, store, dealer):
        store()
        assigned = store(status=JobStatus.ASSIGNED, technician_id=uuid4())

        response = client.get(
            f"{PREFIX}/jobs/",
            params={"status": "ASSIGNED"},
            headers=headers("dealer", dealer.id),
        )

        assert [job["id"] for job in response.json()] == [str(assigned.id)]

    def test_get_job_not_found(self, client, dealer):
        response = client.get(
            f"{PREFIX}/jobs/{uuid4()}", headers=headers("dealer", dealer.id)
        )

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_foreign_dealer_is_forbidden(self, client, store):
        job = store()

        response = client.get(f"{PREFIX}/jobs/{job.id}", headers=headers("dealer", uuid4()))

        assert response.status_code == 403
        assert response.json()["type"] == "actor_mismatch"

    def test_accept_then_conflict(self, client, store, technician, timer_scheduler):
        job = store()

        first = client.post(
            f"{PREFIX}/jobs/{job.id}/accept", headers=headers("technician", technician.id)
        )
        second = client.post(
            f"{PREFIX}/jobs/{job.id}/accept", headers=headers("technician", uuid4())
        )

        assert first.status_code == 200
        assert first.json()["status"] == "SOFT_LOCKED"
        assert second.status_code == 409
        assert second.json()["type"] == "conflict"
        assert len(timer_scheduler.scheduled) == 1

    def test_invalid_transition(self, client, store, dealer):
        job = store()

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/confirm", headers=headers("dealer", dealer.id)
        )

        assert response.status_code == 409
        assert response.json()["current_status"] == "PENDING"

    def test_cash_payment_needs_proof(self, client, store, dealer):
        job = store(status=JobStatus.WAITING_FOR_PAYMENT, technician_id=uuid4())

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/lock-payment",
            headers=headers("dealer", dealer.id),
            json={"method": "cash"},
        )

        assert response.status_code == 400

    def test_lock_payment(self, client, store, dealer, job_repo):
        job = store(status=JobStatus.WAITING_FOR_PAYMENT, technician_id=uuid4())

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/lock-payment",
            headers=headers("dealer", dealer.id),
            json={"method": "cash", "proof": "RCPT-1001"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ASSIGNED"
        assert job_repo.jobs[job.id].payment_method == PaymentMethod.CASH

    def test_wrong_otp_offers_resend(self, client, store, technician):
        job = store(
            status=JobStatus.IN_PROGRESS,
            technician_id=technician.id,
            payment_method=PaymentMethod.ONLINE,
        )
        client.post(
            f"{PREFIX}/jobs/{job.id}/otp", headers=headers("technician", technician.id)
        )

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/otp/verify",
            headers=headers("technician", technician.id),
            json={"otp": "000000"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "otp_mismatch"
        assert body["resend_available"] is True

    def test_repost_limit_is_gone(self, client, store, dealer, job_repo):
        job = store(max_reposts=0)

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/repost", headers=headers("dealer", dealer.id)
        )

        assert response.status_code == 410
        assert response.json()["permanently_rejected"] is True
        assert job_repo.jobs[job.id].status == JobStatus.CANCELLED

    def test_approve_splits_payment(self, client, store, dealer, technician):
        job = store(
            status=JobStatus.COMPLETION_PENDING_APPROVAL,
            technician_id=technician.id,
            payment_method=PaymentMethod.ONLINE,
            final_price=Decimal("10000"),
            warranty_days=10,
        )

        response = client.post(
            f"{PREFIX}/jobs/{job.id}/approve",
            headers=headers("dealer", dealer.id),
            json={"hold_percentage": "20"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["job"]["status"] == "COMPLETED"
        assert Decimal(body["split"]["held_amount"]) == Decimal("2000")
        assert body["split"]["hold_status"] == "HELD"


class TestAdminRoutes:
    def test_risk_is_admin_only(self, client, technician, dealer):
        response = client.get(
            f"{PREFIX}/risk/technicians/{technician.id}", headers=headers("dealer", dealer.id)
        )
        assert response.status_code == 403

    def test_technician_risk(self, client, technician):
        response = client.get(
            f"{PREFIX}/risk/technicians/{technician.id}", headers=headers("admin")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["technician_id"] == str(technician.id)
        assert body["total_jobs"] == 0

    def test_unassigned_job_has_no_risk(self, client, store):
        job = store()

        response = client.get(f"{PREFIX}/risk/jobs/{job.id}", headers=headers("admin"))

        assert response.status_code == 400

    def test_unknown_dispute(self, client):
        response = client.post(
            f"{PREFIX}/disputes/{uuid4()}/resolve",
            headers=headers("admin"),
            json={"resolution": "FORFEIT"},
        )
        assert response.status_code == 404


class TestServerErrors:
    @pytest.fixture
    def failing_client(self, app):
        class Failing:
            def __init__(self, error):
                self.error = error

            async def execute(self, request):
                raise self.error

        def install(error):
            app.dependency_overrides[dependencies.get_list_jobs_use_case] = lambda: Failing(
                error
            )
            return TestClient(app, raise_server_exceptions=False)

        return install

    def test_database_error(self, failing_client):
        response = failing_client(SQLAlchemyError("connection reset")).get(
            f"{PREFIX}/jobs/", headers=headers("admin")
        )

        assert response.status_code == 500
        assert response.json()["type"] == "database_error"

    def test_unexpected_error(self, failing_client):
        response = failing_client(RuntimeError("boom")).get(
            f"{PREFIX}/jobs/", headers=headers("admin")
        )

        assert response.status_code == 500
        assert response.json()["message"] == "An unexpected error occurred"

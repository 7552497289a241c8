"""
Unit tests for geo and skill matching.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from techmarket.application.services.job_matching_engine import (
    JobMatchingEngine,
    TaxonomySnapshot,
    evaluate,
    match,
    match_location,
    match_skill,
)
from techmarket.domain.entities.taxonomy import Skill
from techmarket.domain.entities.technician import Technician
from techmarket.domain.value_objects.approval_status import ApprovalStatus

MUMBAI = (19.0760, 72.8777)


def make_technician(**overrides) -> Technician:
    values = dict(
        id=uuid4(),
        name="Test Technician",
        approval_status=ApprovalStatus.APPROVED,
        latitude=12.9716,
        longitude=77.5946,
        place_name="Bangalore",
        service_radius_km=25,
        primary_skills=[{"skillId": "sk-wiring", "domainId": "dom-electrical"}],
    )
    values.update(overrides)
    return Technician(**values)


@pytest.fixture
def taxonomy():
    return TaxonomySnapshot(
        domain_titles={"dom-electrical": "Electrical"},
        category_titles={"cat-fans": "Fans"},
        skills={"sk-wiring": Skill(id="sk-wiring", title="Wiring", domain_id="dom-electrical")},
        domain_skills={
            "dom-electrical": [
                Skill(id="sk-wiring", title="Wiring", domain_id="dom-electrical"),
                Skill(id="sk-fans", title="Fan Repair", domain_id="dom-electrical"),
            ]
        },
    )


class TestMatchLocation:
    """Location rules, in priority order."""

    def test_within_radius(self, make_job):
        matched, reason = match_location(make_job(), make_technician())
        assert matched is True
        assert reason.startswith("distance:")

    def test_outside_radius(self, make_job):
        technician = make_technician(latitude=MUMBAI[0], longitude=MUMBAI[1])
        matched, reason = match_location(make_job(), technician)
        assert matched is False
        assert "exceeds radius: 25km" in reason

    def test_missing_radius_uses_default(self, make_job):
        # ~60 km north of the job site
        technician = make_technician(latitude=13.51, longitude=77.60, service_radius_km=None)
        assert match_location(make_job(), technician, default_radius_km=50)[0] is False
        assert match_location(make_job(), technician, default_radius_km=100)[0] is True

    def test_city_fallback_is_case_insensitive(self, make_job):
        job = make_job(latitude=None, longitude=None)
        technician = make_technician(place_name="  bangalore ")
        matched, reason = match_location(job, technician)
        assert matched is True
        assert reason == "city match: Bangalore"

    def test_city_mismatch(self, make_job):
        job = make_job(latitude=None, longitude=None)
        matched, reason = match_location(job, make_technician(place_name="Mumbai"))
        assert matched is False
        assert reason == 'city mismatch: "Bangalore" vs "Mumbai"'

    def test_zero_coordinates_count_as_missing(self, make_job):
        job = make_job(latitude=0, longitude=0)
        technician = make_technician(latitude=0, longitude=0, place_name=None)
        matched, reason = match_location(job, technician)
        assert matched is True
        assert reason == "neither has location data - allowing match"

    def test_technician_without_location_fails_open(self, make_job):
        technician = make_technician(latitude=None, longitude=None, place_name=None)
        matched, reason = match_location(make_job(), technician)
        assert matched is True
        assert "technician location not set" in reason


class TestMatchSkill:
    """Skill rules; the first rule that succeeds wins."""

    def test_domain_id_match(self, make_job, taxonomy):
        assert match_skill(make_job(), make_technician(), taxonomy) == (
            True,
            "skill domain match: Electrical",
        )

    def test_domain_title_match(self, make_job, taxonomy):
        technician = make_technician(primary_skills=[{"skill": "Anything", "domain": "Electrical"}])
        assert match_skill(make_job(), technician, taxonomy)[0] is True

    def test_skill_listed_in_domain(self, make_job, taxonomy):
        technician = make_technician(primary_skills=["Fan Repair"])
        matched, reason = match_skill(make_job(), technician, taxonomy)
        assert matched is True
        assert reason == "skill in domain Electrical: Fan Repair"

    def test_category_label_contains_domain_title(self, make_job, taxonomy):
        technician = make_technician(
            primary_skills=["Carpentry"], service_categories=["Electrical Work"]
        )
        matched, reason = match_skill(make_job(), technician, taxonomy)
        assert matched is True
        assert reason == "service category matches domain: Electrical"

    def test_exact_category_title(self, make_job, taxonomy):
        job = make_job(service_domain_id="dom-unknown")
        technician = make_technician(primary_skills=["Carpentry"], service_categories=["Fans"])
        assert match_skill(job, technician, taxonomy) == (True, "service category match: Fans")

    def test_explicit_skill_id(self, make_job, taxonomy):
        job = make_job(service_domain_id="dom-unknown", skill_id="sk-wiring")
        technician = make_technician(primary_skills=[{"skillId": "sk-wiring"}])
        assert match_skill(job, technician, taxonomy) == (True, "skill match: Wiring")

    def test_unresolved_domain_disables_domain_rule(self, make_job, taxonomy):
        job = make_job(service_domain_id="dom-unknown")
        technician = make_technician(primary_skills=[{"domainId": "dom-unknown"}])
        assert match_skill(job, technician, taxonomy) == (False, "no skill match")

    def test_skill_less_technician_sees_skill_less_jobs(self, make_job, taxonomy):
        job = make_job(service_domain_id="dom-unknown")
        technician = make_technician(primary_skills=None)
        matched, _ = match_skill(job, technician, taxonomy)
        assert matched is True

        job_with_skill = make_job(service_domain_id="dom-unknown", skill_id="sk-wiring")
        assert match_skill(job_with_skill, technician, taxonomy)[0] is False


class TestEvaluate:
    def test_location_ignored_when_job_has_no_coordinates(self, make_job, taxonomy):
        job = make_job(latitude=None, longitude=None)
        technician = make_technician(place_name="Chennai")

        decision = evaluate(job, technician, taxonomy)

        assert decision.location_match is False
        assert decision.skill_match is True
        assert decision.eligible is True

    def test_location_required_when_job_has_coordinates(self, make_job, taxonomy):
        technician = make_technician(latitude=MUMBAI[0], longitude=MUMBAI[1])
        assert evaluate(make_job(), technician, taxonomy).eligible is False

    def test_match_preserves_order(self, make_job, taxonomy):
        near = make_technician(name="near")
        far = make_technician(name="far", latitude=MUMBAI[0], longitude=MUMBAI[1])
        other_near = make_technician(name="other")

        result = match(make_job(), [near, far, other_near], taxonomy)

        assert [t.name for t in result] == ["near", "other"]


class TestJobMatchingEngine:
    """Test cases for JobMatchingEngine."""

    @pytest.mark.asyncio
    async def test_find_candidates(self, matching_engine, make_job):
        near = make_technician()
        far = make_technician(latitude=MUMBAI[0], longitude=MUMBAI[1])

        candidates = await matching_engine.find_candidates(make_job(), [near, far])

        assert candidates == [near]

    @pytest.mark.asyncio
    async def test_taxonomy_loaded_once_per_run(self, matching_engine, taxonomy_repo, make_job):
        jobs = [make_job(), make_job(), make_job(skill_id="sk-wiring")]

        await matching_engine.filter_jobs_for_technician(make_technician(), jobs)

        assert sorted(taxonomy_repo.calls) == ["categories", "domain_skills", "domains", "skills"]

    @pytest.mark.asyncio
    async def test_failed_lookup_treated_as_non_matching(self, taxonomy_repo, make_job):
        taxonomy_repo.get_domain_titles = AsyncMock(side_effect=RuntimeError("db down"))
        engine = JobMatchingEngine(taxonomy_repo)
        technician = make_technician(primary_skills=[{"domainId": "dom-electrical"}])

        candidates = await engine.find_candidates(make_job(), [technician])

        assert candidates == []

    @pytest.mark.asyncio
    async def test_filter_jobs_for_technician(self, matching_engine, make_job):
        near_job = make_job()
        far_job = make_job(latitude=MUMBAI[0], longitude=MUMBAI[1])

        jobs = await matching_engine.filter_jobs_for_technician(
            make_technician(), [near_job, far_job]
        )

        assert jobs == [near_job]

"""
Unit tests for value objects.
"""

import pytest

from techmarket.domain.value_objects.address import Address
from techmarket.domain.value_objects.geo_point import GeoPoint, haversine_km
from techmarket.domain.value_objects.job_status import JobStatus, TimerKind
from techmarket.domain.value_objects.payment import HoldStatus, PaymentMethod
from techmarket.domain.value_objects.skill_ref import (
    SkillRef,
    parse_category_labels,
    parse_skill_refs,
)

BANGALORE = (12.9716, 77.5946)
MUMBAI = (19.0760, 72.8777)


class TestGeoPoint:
    """Test GeoPoint and haversine distance."""

    def test_haversine_is_symmetric(self):
        there = haversine_km(*BANGALORE, *MUMBAI)
        back = haversine_km(*MUMBAI, *BANGALORE)
        assert there == pytest.approx(back)

    def test_haversine_zero_for_same_point(self):
        assert haversine_km(*BANGALORE, *BANGALORE) == pytest.approx(0.0)

    def test_bangalore_to_mumbai_distance(self):
        assert 820 < haversine_km(*BANGALORE, *MUMBAI) < 870

    @pytest.mark.parametrize(
        "latitude,longitude",
        [(None, 77.5), (12.9, None), (0, 77.5), (12.9, 0), ("abc", 77.5), (float("nan"), 1.0)],
    )
    def test_from_coordinates_treats_unusable_values_as_absent(self, latitude, longitude):
        assert GeoPoint.from_coordinates(latitude, longitude) is None

    def test_from_coordinates_accepts_numeric_strings(self):
        point = GeoPoint.from_coordinates("12.97", "77.59")
        assert point == GeoPoint(latitude=12.97, longitude=77.59)


class TestAddress:
    """Test Address value object."""

    def test_full_address(self):
        address = Address(street="12 MG Road", city="Bangalore", state="KA", pincode="560001")
        assert address.full_address == "12 MG Road, Bangalore, KA 560001"

    @pytest.mark.parametrize("field", ["street", "city", "state", "pincode"])
    def test_blank_field_rejected(self, field):
        values = {"street": "1 Main", "city": "Pune", "state": "MH", "pincode": "411001"}
        values[field] = "  "
        with pytest.raises(ValueError):
            Address(**values)


class TestJobStatus:
    """Test JobStatus transitions."""

    def test_final_statuses_have_no_exits(self):
        for status in (JobStatus.COMPLETED, JobStatus.CANCELLED):
            assert status.is_final() is True
            assert not any(status.can_transition_to(target) for target in JobStatus)

    def test_pending_only_moves_to_soft_lock_or_cancel(self):
        allowed = {t for t in JobStatus if JobStatus.PENDING.can_transition_to(t)}
        assert allowed == {JobStatus.SOFT_LOCKED, JobStatus.CANCELLED}

    def test_payment_locked_statuses(self):
        assert JobStatus.ASSIGNED.is_payment_locked() is True
        assert JobStatus.COMPLETED.is_payment_locked() is True
        assert JobStatus.WAITING_FOR_PAYMENT.is_payment_locked() is False
        assert JobStatus.PENDING.is_payment_locked() is False

    def test_timer_kinds_guard_their_status(self):
        assert TimerKind.SOFT_LOCK.guarded_status == JobStatus.SOFT_LOCKED
        assert TimerKind.PAYMENT_DEADLINE.guarded_status == JobStatus.WAITING_FOR_PAYMENT
        assert TimerKind.NEGOTIATION.guarded_status == JobStatus.NEGOTIATION_PENDING


class TestPayment:
    def test_only_cash_requires_proof(self):
        assert PaymentMethod.CASH.requires_proof() is True
        assert PaymentMethod.ONLINE.requires_proof() is False
        assert PaymentMethod.BANK_TRANSFER.requires_proof() is False

    def test_hold_final_states(self):
        assert HoldStatus.HELD.is_final() is False
        assert HoldStatus.RELEASED.is_final() is True
        assert HoldStatus.FORFEITED.is_final() is True


class TestSkillRef:
    """Test skill payload normalization."""

    def test_parses_camel_case_objects(self):
        refs = parse_skill_refs(
            [{"skillId": "sk-1", "domainId": "dom-1", "skill": "Wiring", "domain": "Electrical"}]
        )
        assert refs == [
            SkillRef(skill_id="sk-1", domain_id="dom-1", title="Wiring", domain_title="Electrical")
        ]

    def test_parses_snake_case_and_bare_strings(self):
        refs = parse_skill_refs([{"skill_id": "sk-2", "service_domain_id": "dom-2"}, "Plumbing"])
        assert refs[0].skill_id == "sk-2"
        assert refs[0].domain_id == "dom-2"
        assert refs[1] == SkillRef(title="Plumbing")

    def test_parses_json_string_payload(self):
        refs = parse_skill_refs('[{"skillId": "sk-3"}]')
        assert refs == [SkillRef(skill_id="sk-3")]

    def test_drops_unusable_entries(self):
        assert parse_skill_refs([{}, None, 42, "  ", {"skill": "Tiling"}]) == [
            SkillRef(title="Tiling")
        ]

    def test_unsupported_shape_yields_nothing(self):
        assert parse_skill_refs(3.14) == []
        assert parse_skill_refs(None) == []

    def test_category_labels_stripped(self):
        assert parse_category_labels([" Electrical ", "", None, "Fans"]) == ["Electrical", "Fans"]
        assert parse_category_labels('["HVAC"]') == ["HVAC"]
        assert parse_category_labels("Plumbing") == ["Plumbing"]

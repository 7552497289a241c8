"""
Technician domain entity.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional
from uuid import UUID

from techmarket.domain.value_objects.approval_status import ApprovalStatus
from techmarket.domain.value_objects.geo_point import GeoPoint
from techmarket.domain.value_objects.skill_ref import (
    SkillRef,
    parse_category_labels,
    parse_skill_refs,
)


class Technician:
    """Technician entity representing a field technician account."""

    def __init__(
        self,
        id: UUID,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        approval_status: ApprovalStatus = ApprovalStatus.PENDING,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        place_name: Optional[str] = None,
        service_radius_km: Optional[float] = None,
        primary_skills: Any = None,
        service_categories: Optional[Iterable[Any]] = None,
        rating: Optional[float] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.phone = phone
        self.email = email
        self.approval_status = ApprovalStatus(approval_status)
        self.latitude = latitude
        self.longitude = longitude
        self.place_name = place_name
        self.service_radius_km = service_radius_km
        self.primary_skills: List[SkillRef] = parse_skill_refs(primary_skills)
        self.service_categories: List[str] = parse_category_labels(service_categories)
        self.rating = rating
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    @property
    def location(self) -> Optional[GeoPoint]:
        """Valid coordinates of the technician, if any."""
        return GeoPoint.from_coordinates(self.latitude, self.longitude)

    @property
    def is_approved(self) -> bool:
        return self.approval_status.is_active()

    def effective_radius_km(self, default_km: float) -> float:
        """Service radius, falling back to ``default_km`` when unset or zero."""
        return self.service_radius_km or default_km

    def has_skills(self) -> bool:
        return bool(self.primary_skills)

    def to_dict(self) -> dict:
        """Convert technician to dictionary."""
        return {
            "id": str(self.id),
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "approval_status": self.approval_status.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "place_name": self.place_name,
            "service_radius_km": self.service_radius_km,
            "primary_skills": [ref.to_dict() for ref in self.primary_skills],
            "service_categories": list(self.service_categories),
            "rating": self.rating,
        }

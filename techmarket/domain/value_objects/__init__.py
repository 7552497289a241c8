"""
Domain value objects package.
"""

from .actor_role import ActorRole
from .address import Address
from .approval_status import ApprovalStatus
from .geo_point import GeoPoint, haversine_km
from .job_status import ClosureReason, JobStatus, TimeoutReason, TimerKind
from .notification_channel import NotificationChannel
from .payment import HoldStatus, PaymentMethod
from .skill_ref import SkillRef, parse_category_labels, parse_skill_refs
from .warranty_status import DisputeResolution, DisputeStatus, WarrantyStatus

__all__ = [
    "ActorRole",
    "Address",
    "ApprovalStatus",
    "ClosureReason",
    "DisputeResolution",
    "DisputeStatus",
    "GeoPoint",
    "HoldStatus",
    "JobStatus",
    "NotificationChannel",
    "PaymentMethod",
    "SkillRef",
    "TimeoutReason",
    "TimerKind",
    "WarrantyStatus",
    "haversine_km",
    "parse_category_labels",
    "parse_skill_refs",
]

"""
Account approval status value object.
"""

from enum import Enum


class ApprovalStatus(str, Enum):
    """Platform approval state of a dealer or technician account."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"

    def is_active(self) -> bool:
        return self == self.APPROVED

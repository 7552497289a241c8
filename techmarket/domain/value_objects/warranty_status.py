"""
Warranty and dispute status value objects.
"""

from enum import Enum


class WarrantyStatus(str, Enum):
    """Warranty record status."""

    ISSUE_REPORTED = "ISSUE_REPORTED"
    RESOLVED = "RESOLVED"

    def blocks_release(self) -> bool:
        """Check if the record keeps the escrow hold locked."""
        return self == self.ISSUE_REPORTED


class DisputeStatus(str, Enum):
    """Dispute status."""

    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class DisputeResolution(str, Enum):
    """Outcome applied to the held amount when a dispute closes."""

    RELEASE_TO_TECHNICIAN = "RELEASE_TO_TECHNICIAN"
    FORFEIT = "FORFEIT"

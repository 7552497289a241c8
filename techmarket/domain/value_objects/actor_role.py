"""
Actor role value object.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Role of the caller, as asserted by the upstream auth layer."""

    DEALER = "dealer"
    TECHNICIAN = "technician"
    ADMIN = "admin"

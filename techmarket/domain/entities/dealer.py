"""
Dealer domain entity.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from techmarket.domain.value_objects.approval_status import ApprovalStatus


class Dealer:
    """Dealer entity: the account that posts jobs and pays into escrow."""

    def __init__(
        self,
        id: UUID,
        business_name: str,
        contact_name: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        approval_status: ApprovalStatus = ApprovalStatus.PENDING,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.business_name = business_name
        self.contact_name = contact_name
        self.phone = phone
        self.email = email
        self.approval_status = ApprovalStatus(approval_status)
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    @property
    def is_approved(self) -> bool:
        return self.approval_status.is_active()

    def to_dict(self) -> dict:
        """Convert dealer to dictionary."""
        return {
            "id": str(self.id),
            "business_name": self.business_name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "approval_status": self.approval_status.value,
        }

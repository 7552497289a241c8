"""
Dealer SQLAlchemy model.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from . import BaseModel


class DealerModel(BaseModel):
    """Dealer database model."""

    __tablename__ = "dealers"

    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255))
    phone = Column(String(20))
    email = Column(String(255))
    approval_status = Column(String(20), default="PENDING", nullable=False, index=True)

    jobs = relationship("JobModel", back_populates="dealer")

    def __repr__(self) -> str:
        return f"<Dealer(id={self.id}, business_name={self.business_name})>"

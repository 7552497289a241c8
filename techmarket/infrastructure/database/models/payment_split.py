"""
Payment split SQLAlchemy model.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from . import BaseModel


class PaymentSplitModel(BaseModel):
    """One split per job; amounts are written once."""

    __tablename__ = "payment_splits"

    job_id = Column(
        Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, unique=True, index=True
    )
    technician_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    dealer_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    hold_percentage = Column(Numeric(5, 2), nullable=False)
    held_amount = Column(Numeric(12, 2), nullable=False)
    released_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)

    warranty_days = Column(Integer, nullable=False)
    hold_release_at = Column(DateTime(timezone=True), nullable=False, index=True)
    hold_status = Column(String(20), nullable=False, default="HELD", index=True)
    hold_settled_at = Column(DateTime(timezone=True))

    job = relationship("JobModel", back_populates="payment_split")

    def __repr__(self) -> str:
        return (
            f"<PaymentSplit(job_id={self.job_id}, held={self.held_amount}, "
            f"status={self.hold_status})>"
        )

"""
Job SQLAlchemy model.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from . import BaseModel


class JobModel(BaseModel):
    """Job database model.

    ``version`` is bumped by every compare-and-set; ``status`` and
    ``version`` together guard each transition.
    """

    __tablename__ = "jobs"

    job_number = Column(String(32), nullable=False, unique=True, index=True)
    status = Column(String(40), nullable=False, default="PENDING", index=True)
    version = Column(Integer, nullable=False, default=0)

    dealer_id = Column(Uuid(as_uuid=True), ForeignKey("dealers.id"), nullable=False, index=True)
    technician_id = Column(Uuid(as_uuid=True), ForeignKey("technicians.id"), index=True)

    # Description
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    work_details = Column(Text, nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)

    # Address fields
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    pincode = Column(String(10), nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)

    # Classification
    service_domain_id = Column(String(64), nullable=False, index=True)
    service_category_id = Column(String(64), nullable=False)
    service_sub_category_id = Column(String(64), nullable=False)
    skill_id = Column(String(64))
    priority = Column(String(20), default="NORMAL")
    scheduled_at = Column(DateTime(timezone=True))
    estimated_duration_hours = Column(Float)

    # Pricing
    estimated_price = Column(Numeric(12, 2))
    final_price = Column(Numeric(12, 2))
    price_locked = Column(Boolean, nullable=False, default=False)
    warranty_days = Column(Integer)

    # Timers
    soft_lock_expires_at = Column(DateTime(timezone=True), index=True)
    soft_lock_resets = Column(Integer, nullable=False, default=0)
    payment_deadline_at = Column(DateTime(timezone=True), index=True)

    # Negotiation
    offer_amount = Column(Numeric(12, 2))
    offer_by = Column(String(20))
    negotiation_rounds = Column(Integer, nullable=False, default=0)
    negotiation_expires_at = Column(DateTime(timezone=True), index=True)

    # Payment capture
    payment_method = Column(String(20))
    payment_proof = Column(String(500))
    captured_amount = Column(Numeric(12, 2))
    payment_captured_at = Column(DateTime(timezone=True))

    # Execution
    assigned_at = Column(DateTime(timezone=True))
    started_at = Column(DateTime(timezone=True))
    completion_otp_hash = Column(String(64))
    otp_expires_at = Column(DateTime(timezone=True))
    completion_requested_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))

    # Reposting and closure
    repost_count = Column(Integer, nullable=False, default=0)
    max_reposts = Column(Integer, nullable=False, default=3)
    timeout_reasons = Column(JSON, nullable=False, default=list)
    closure_reason = Column(String(40))
    status_note = Column(Text)

    # Relationships
    dealer = relationship("DealerModel", back_populates="jobs")
    technician = relationship("TechnicianModel", back_populates="assigned_jobs")
    payment_split = relationship(
        "PaymentSplitModel", back_populates="job", uselist=False
    )
    warranty_records = relationship("WarrantyRecordModel", back_populates="job")
    disputes = relationship("DisputeModel", back_populates="job")

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, job_number={self.job_number}, status={self.status})>"

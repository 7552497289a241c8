"""
Warranty record and dispute SQLAlchemy models.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from . import BaseModel


class WarrantyRecordModel(BaseModel):
    __tablename__ = "warranty_records"

    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="ISSUE_REPORTED", index=True)
    resolved_at = Column(DateTime(timezone=True))

    job = relationship("JobModel", back_populates="warranty_records")


class DisputeModel(BaseModel):
    __tablename__ = "disputes"

    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id"), nullable=False, index=True)
    raised_by = Column(Uuid(as_uuid=True), nullable=False)
    raised_by_role = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="OPEN", index=True)
    resolution = Column(String(40))
    resolved_at = Column(DateTime(timezone=True))

    job = relationship("JobModel", back_populates="disputes")

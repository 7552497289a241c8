"""
Technician SQLAlchemy model.
"""

from sqlalchemy import JSON, Column, Float, String
from sqlalchemy.orm import relationship

from . import BaseModel


class TechnicianModel(BaseModel):
    """Technician database model."""

    __tablename__ = "technicians"

    name = Column(String(255), nullable=False)
    phone = Column(String(20))
    email = Column(String(255))
    approval_status = Column(String(20), default="PENDING", nullable=False, index=True)

    # Location
    latitude = Column(Float)
    longitude = Column(Float)
    place_name = Column(String(100))
    service_radius_km = Column(Float)

    # Skills arrive in several shapes and are normalised on read
    primary_skills = Column(JSON, nullable=True)
    service_categories = Column(JSON, nullable=True)
    rating = Column(Float)

    assigned_jobs = relationship("JobModel", back_populates="technician")

    def __repr__(self) -> str:
        return f"<Technician(id={self.id}, name={self.name})>"

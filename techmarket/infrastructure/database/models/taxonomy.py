"""
Service taxonomy SQLAlchemy models.
"""

from sqlalchemy import Column, ForeignKey, Integer, String

from . import BaseModel


class ServiceDomainModel(BaseModel):
    """Top-level service domain, e.g. "Electrical"."""

    __tablename__ = "service_domains"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)


class ServiceCategoryModel(BaseModel):
    __tablename__ = "service_categories"

    id = Column(String(64), primary_key=True)
    domain_id = Column(String(64), ForeignKey("service_domains.id"), index=True)
    title = Column(String(255), nullable=False)
    warranty_days = Column(Integer)


class ServiceSubCategoryModel(BaseModel):
    __tablename__ = "service_sub_categories"

    id = Column(String(64), primary_key=True)
    category_id = Column(String(64), ForeignKey("service_categories.id"), index=True)
    title = Column(String(255), nullable=False)
    warranty_days = Column(Integer)


class SkillModel(BaseModel):
    __tablename__ = "skills"

    id = Column(String(64), primary_key=True)
    domain_id = Column(String(64), ForeignKey("service_domains.id"), index=True)
    title = Column(String(255), nullable=False)

"""
Database models package.
"""

from .base import Base, BaseModel, as_utc
from .dealer import DealerModel
from .job import JobModel
from .payment_split import PaymentSplitModel
from .taxonomy import (
    ServiceCategoryModel,
    ServiceDomainModel,
    ServiceSubCategoryModel,
    SkillModel,
)
from .technician import TechnicianModel
from .warranty import DisputeModel, WarrantyRecordModel

__all__ = [
    "Base",
    "BaseModel",
    "as_utc",
    "DealerModel",
    "DisputeModel",
    "JobModel",
    "PaymentSplitModel",
    "ServiceCategoryModel",
    "ServiceDomainModel",
    "ServiceSubCategoryModel",
    "SkillModel",
    "TechnicianModel",
    "WarrantyRecordModel",
]

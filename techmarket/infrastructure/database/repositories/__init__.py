"""
Database repositories package.
"""

from .dealer_repository import DealerRepository
from .history_repository import JobHistoryRepository
from .job_repository import JobRepository
from .payment_split_repository import PaymentSplitRepository
from .taxonomy_repository import TaxonomyRepository
from .technician_repository import TechnicianRepository
from .warranty_repository import WarrantyRepository

__all__ = [
    "DealerRepository",
    "JobHistoryRepository",
    "JobRepository",
    "PaymentSplitRepository",
    "TaxonomyRepository",
    "TechnicianRepository",
    "WarrantyRepository",
]

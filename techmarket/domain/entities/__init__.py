"""
Domain entities package.
"""

from .dealer import Dealer
from .job import Job, generate_job_number
from .payment_split import PaymentSplit
from .taxonomy import JobHistoryRecord, Skill
from .technician import Technician
from .warranty import Dispute, WarrantyRecord

__all__ = [
    "Dealer",
    "Dispute",
    "Job",
    "JobHistoryRecord",
    "PaymentSplit",
    "Skill",
    "Technician",
    "WarrantyRecord",
    "generate_job_number",
]

"""
Lookup-related domain exceptions.
"""


class NotFoundError(Exception):
    """Base exception for missing aggregates."""

    entity_name = "Entity"

    def __init__(self, entity_id):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity_name} {self.entity_id} not found")


class JobNotFoundError(NotFoundError):
    entity_name = "Job"


class TechnicianNotFoundError(NotFoundError):
    entity_name = "Technician"


class DealerNotFoundError(NotFoundError):
    entity_name = "Dealer"


class DisputeNotFoundError(NotFoundError):
    entity_name = "Dispute"


class WarrantyRecordNotFoundError(NotFoundError):
    entity_name = "Warranty record"

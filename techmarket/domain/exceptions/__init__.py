"""
Domain exceptions package.
"""

from .job_state_error import (
    ConflictError,
    InvalidTransitionError,
    JobNoLongerAvailableError,
    JobStateError,
    OtpMismatch,
    RepostLimitExceeded,
)
from .not_found_error import (
    DealerNotFoundError,
    DisputeNotFoundError,
    JobNotFoundError,
    NotFoundError,
    TechnicianNotFoundError,
    WarrantyRecordNotFoundError,
)
from .validation_error import (
    ActorMismatchError,
    InvalidAmount,
    InvalidFieldError,
    RequiredFieldError,
    ValidationError,
)

__all__ = [
    "ActorMismatchError",
    "ConflictError",
    "DealerNotFoundError",
    "DisputeNotFoundError",
    "InvalidAmount",
    "InvalidFieldError",
    "InvalidTransitionError",
    "JobNoLongerAvailableError",
    "JobNotFoundError",
    "JobStateError",
    "NotFoundError",
    "OtpMismatch",
    "RepostLimitExceeded",
    "RequiredFieldError",
    "TechnicianNotFoundError",
    "ValidationError",
    "WarrantyRecordNotFoundError",
]

"""
Validation-related domain exceptions.
"""


class ValidationError(Exception):
    """Base exception for validation errors."""

    pass


class RequiredFieldError(ValidationError):
    """Raised when required field is missing."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Required field '{field_name}' is missing")


class InvalidFieldError(ValidationError):
    """Raised when a field value is out of range or malformed."""

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Field '{field_name}' is invalid: {reason}")


class InvalidAmount(ValidationError):
    """Raised when approval has no usable final or estimated price."""

    def __init__(self, job_id: str, amount=None):
        self.job_id = job_id
        self.amount = amount
        super().__init__("Set final price first")


class ActorMismatchError(ValidationError):
    """Raised when the caller is not the party allowed to act on the job."""

    def __init__(self, job_id: str, actor_id: str, expected_role: str):
        self.job_id = job_id
        self.actor_id = actor_id
        self.expected_role = expected_role
        super().__init__(
            f"Actor {actor_id} is not the {expected_role} for job {job_id}"
        )

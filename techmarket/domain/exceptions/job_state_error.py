"""
Job lifecycle domain exceptions.
"""


class JobStateError(Exception):
    """Base exception for lifecycle failures."""

    pass


class InvalidTransitionError(JobStateError):
    """Raised when the job's current status does not allow the operation."""

    def __init__(self, job_id: str, current_status: str, operation: str):
        self.job_id = job_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} job {job_id} in status '{current_status}'"
        )


class ConflictError(JobStateError):
    """Raised when a compare-and-set on the job row loses a race."""

    def __init__(self, job_id: str, message: str = None):
        self.job_id = job_id
        super().__init__(message or f"Job {job_id} was modified concurrently")


class JobNoLongerAvailableError(ConflictError):
    """Raised when a technician tries to accept a job someone else holds."""

    def __init__(self, job_id: str):
        super().__init__(job_id, f"Job {job_id} is no longer available")


class RepostLimitExceeded(JobStateError):
    """Raised when a job has used up its reposts and is permanently closed."""

    def __init__(self, job_id: str, max_reposts: int):
        self.job_id = job_id
        self.max_reposts = max_reposts
        super().__init__(
            f"Job {job_id} reached the maximum of {max_reposts} reposts "
            "and has been permanently rejected"
        )


class OtpMismatch(JobStateError):
    """Raised when the completion OTP is wrong, expired or never issued."""

    def __init__(self, job_id: str, reason: str = "invalid"):
        self.job_id = job_id
        self.reason = reason
        super().__init__(
            f"Completion OTP for job {job_id} is {reason}; request a new code"
        )

"""
Common API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body returned by every error handler."""

    error: str
    message: str
    type: str
    resend_available: Optional[bool] = None
    permanently_rejected: Optional[bool] = None


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

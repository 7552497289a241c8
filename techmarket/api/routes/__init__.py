"""
API routes package.
"""

from .disputes import router as disputes_router
from .health import router as health_router
from .jobs import router as jobs_router
from .risk import router as risk_router

__all__ = [
    "disputes_router",
    "health_router",
    "jobs_router",
    "risk_router",
]

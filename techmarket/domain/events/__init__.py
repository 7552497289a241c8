"""
Domain events package.
"""

from .job_transitioned import JobTransitioned

__all__ = ["JobTransitioned"]

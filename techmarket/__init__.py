"""
Technician marketplace service.

Matching, job lifecycle, risk scoring and escrow for a two-sided
dealer/technician marketplace.
"""

__version__ = "0.1.0"

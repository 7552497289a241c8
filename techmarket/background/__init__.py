"""Background processing package."""

"""
Infrastructure package: persistence, scheduling, notifications, monitoring.
"""

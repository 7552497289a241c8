"""
Use cases package.
"""

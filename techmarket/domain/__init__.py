"""
Domain package.
"""

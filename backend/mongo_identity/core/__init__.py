"""
Core utilities: error types and logging setup.
"""
